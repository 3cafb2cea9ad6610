import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from orbi.adapters.telegram import TelegramAdapter
from orbi.backends.factory import build_backend_from_env
from orbi.config import Settings, get_settings
from orbi.db import DatabaseManager
from orbi.exceptions import (
    AuthError,
    BackendConfigError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    RelayError,
)
from orbi.infra.logging_config import LoggingConfig, get_logger
from orbi.routers import chats_router, messages_router, system
from orbi.services.gateway import Gateway
from orbi.services.message_store import MessageStore
from orbi.workers.dispatcher import UpdateDispatcher
from orbi.workers.sweeper import RetentionSweeper

logger = get_logger()


def _log_task_exit(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Telegram dispatcher stopped: %s", exc, exc_info=exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    store: MessageStore = app.state.store

    store.init_schema()

    transport: Optional[TelegramAdapter] = None
    dispatcher: Optional[UpdateDispatcher] = None
    if settings.telegram_enabled:
        if not settings.telegram_bot_token:
            raise BackendConfigError(
                "TELEGRAM_BOT_TOKEN is required when TELEGRAM_ENABLED"
            )
        backend = build_backend_from_env(settings)
        gateway = Gateway.from_settings(store, backend, settings)
        transport = TelegramAdapter(settings.telegram_bot_token)
        await transport.start()
        dispatcher = UpdateDispatcher.from_settings(transport, gateway, store, settings)
        app.state.dispatcher = dispatcher
    else:
        logger.info("Telegram bot disabled; serving HTTP API only")

    sweeper = RetentionSweeper.from_settings(store, settings)
    sweeper.start()
    app.state.sweeper = sweeper

    bot_task: Optional[asyncio.Task] = None
    if dispatcher is not None:
        bot_task = asyncio.create_task(dispatcher.run())
        bot_task.add_done_callback(_log_task_exit)

    try:
        yield
    finally:
        if bot_task is not None:
            bot_task.cancel()
            # Failures were already logged by _log_task_exit
            await asyncio.gather(bot_task, return_exceptions=True)
        if transport is not None:
            await transport.stop()
        await sweeper.stop()


def _error_body(error: str, details: str) -> dict:
    return {"error": error, "details": details}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=_error_body(
                "Message not found",
                "The requested message does not exist or has been removed",
            ),
        )

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        return JSONResponse(
            status_code=401, content=_error_body("Unauthorized", str(exc))
        )

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        return JSONResponse(
            status_code=409, content=_error_body("Conflict", "Please try again")
        )

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError):
        logger.error("Storage failure on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content=_error_body("Internal error", "Storage is unavailable"),
        )

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        logger.error("Unhandled relay error on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content=_error_body("Internal error", "Unexpected failure"),
        )


def mount_frontend(app: FastAPI, dist_path: str) -> bool:
    """Serve the built mini-app with index.html fallback for client-side routes."""
    root = Path(dist_path).resolve()
    index = root / "index.html"
    if not index.is_file():
        logger.info("No front-end build at %s; static files disabled", root)
        return False

    @app.get("/{full_path:path}", include_in_schema=False)
    def serve_frontend(full_path: str):
        if full_path.startswith("api/"):
            raise HTTPException(status_code=404, detail="Not Found")
        candidate = (root / full_path).resolve()
        if full_path and candidate.is_file() and candidate.is_relative_to(root):
            return FileResponse(candidate)
        return FileResponse(index)

    return True


def create_app(
    testing: bool = False,
    settings: Optional[Settings] = None,
    store: Optional[MessageStore] = None,
) -> FastAPI:
    settings = settings or get_settings()
    LoggingConfig(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        lifespan=None if testing else lifespan,
    )
    app.state.settings = settings
    app.state.store = store or MessageStore.from_manager(
        DatabaseManager(settings.database_url)
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Telegram-Init-Data"],
        max_age=86400,
    )

    register_exception_handlers(app)

    app.include_router(system.router)
    app.include_router(messages_router.messages_router)
    app.include_router(chats_router.chats_router)

    # Catch-all route, registered last
    mount_frontend(app, settings.frontend_dist_path)

    return app


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(create_app(settings=settings), host=settings.host, port=settings.port)
