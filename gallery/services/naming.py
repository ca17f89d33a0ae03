"""Storage names for uploaded files.

Stored names look like ``<millis>-<token>-<sanitized original name>``. The
sanitized part only ever contains ``[A-Za-z0-9.-]`` so a client-supplied name
cannot introduce path separators or shell metacharacters.
"""
import random
import re
import time

UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
TOKEN_MAX = 10**9
PUBLIC_PREFIX = "/uploads"


def sanitize_filename(original: str) -> str:
    return UNSAFE_CHARS.sub("_", original)


def build_storage_name(original: str, now_ms: int | None = None, token: int | None = None) -> str:
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    if token is None:
        token = random.randint(0, TOKEN_MAX)
    return f"{now_ms}-{token}-{sanitize_filename(original)}"


def public_path(filename: str) -> str:
    return f"{PUBLIC_PREFIX}/{filename}"
