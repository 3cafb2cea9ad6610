"""
Content addressing for message bodies.

A body hash is the first 8 hex chars of sha256(content + instant), where the
instant is a strictly increasing nanosecond timestamp read at insert time. The
same content stored twice gets two different hashes.
"""

from __future__ import annotations

import hashlib
import re
import threading
import time
from typing import Optional

HASH_LENGTH = 8
START_PAYLOAD_PREFIX = "msg_"
TELEGRAM_LINK = "https://t.me/{bot_username}?start={payload}"

_HASH_RE = re.compile(r"^[0-9a-f]{%d}$" % HASH_LENGTH)

_clock_lock = threading.Lock()
_last_instant = 0


def now_nanos() -> int:
    """Wall-clock nanoseconds, never repeating within the process."""
    global _last_instant
    with _clock_lock:
        instant = max(time.time_ns(), _last_instant + 1)
        _last_instant = instant
        return instant


def derive_hash(content: str, instant_ns: int) -> str:
    digest = hashlib.sha256(f"{content}{instant_ns}".encode("utf-8")).hexdigest()
    return digest[:HASH_LENGTH]


def is_valid_hash(value: str) -> bool:
    return bool(_HASH_RE.match(value or ""))


def build_webapp_url(webapp_base: str, message_hash: str) -> str:
    """Mini-app page showing the full body: <base>/message/<hash>."""
    return f"{webapp_base.rstrip('/')}/message/{message_hash}"


def build_start_link(bot_username: str, message_hash: str) -> str:
    """t.me deep link that reopens the bot with /start msg_<hash> (used in groups)."""
    return TELEGRAM_LINK.format(
        bot_username=bot_username, payload=f"{START_PAYLOAD_PREFIX}{message_hash}"
    )


def parse_start_payload(text: Optional[str]) -> Optional[str]:
    """Return the hash from '/start msg_<hash>', or None for anything else."""
    if not text or not text.startswith("/start"):
        return None
    parts = text.split(START_PAYLOAD_PREFIX, 1)
    if len(parts) != 2:
        return None
    message_hash = parts[1].strip()
    return message_hash or None
