"""
Telegram Web App initData validation.

The mini-app sends the raw initData query string in X-Telegram-Init-Data. Its
signature is HMAC-SHA256 over the sorted key=value lines (hash excluded), keyed
with HMAC-SHA256("WebAppData", bot_token).
"""

from __future__ import annotations

import hashlib
import hmac
import json
from typing import Iterable, Optional, Tuple
from urllib.parse import parse_qsl

from orbi.exceptions import AuthError
from orbi.infra.logging_config import get_logger

logger = get_logger("init_data")

WEB_APP_KEY = b"WebAppData"


def _parse(init_data: str) -> dict[str, str]:
    try:
        return dict(parse_qsl(init_data, keep_blank_values=True, strict_parsing=True))
    except ValueError as e:
        raise AuthError(f"Malformed init data: {e}") from e


def compute_init_data_hash(pairs: Iterable[Tuple[str, str]], bot_token: str) -> str:
    check_string = "\n".join(
        f"{key}={value}" for key, value in sorted(pairs) if key != "hash"
    )
    secret = hmac.new(WEB_APP_KEY, bot_token.encode("utf-8"), hashlib.sha256).digest()
    return hmac.new(secret, check_string.encode("utf-8"), hashlib.sha256).hexdigest()


def validate_init_data(init_data: str, bot_token: str) -> bool:
    try:
        params = _parse(init_data)
    except AuthError:
        return False
    received = params.get("hash")
    if not received:
        return False
    expected = compute_init_data_hash(params.items(), bot_token)
    return hmac.compare_digest(received, expected)


def extract_user_id(init_data: str) -> int:
    user_json = _parse(init_data).get("user")
    if not user_json:
        raise AuthError("user not found in init data")
    try:
        user = json.loads(user_json)
    except ValueError as e:
        raise AuthError(f"user is not valid JSON: {e}") from e
    user_id = user.get("id") if isinstance(user, dict) else None
    if not isinstance(user_id, int) or user_id == 0:
        raise AuthError("invalid user id in init data")
    return user_id


def authenticate(
    init_data: Optional[str], bot_token: Optional[str], disable_auth: bool = False
) -> int:
    """Return the Telegram user id carried by a valid initData string."""
    if not init_data:
        raise AuthError("Missing init data")
    if not disable_auth:
        if not bot_token or not validate_init_data(init_data, bot_token):
            logger.warning("Rejected init data with an invalid signature")
            raise AuthError("Invalid init data")
    return extract_user_id(init_data)
