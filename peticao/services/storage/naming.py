"""Storage key generation.

Keys look like ``{prefix}/{epoch-millis}-{random}-{sanitized-base}.{ext}``. The
millisecond timestamp keeps keys roughly ordered inside a prefix and the random
base36 suffix makes collisions between concurrent callers practically impossible.
"""

import re
import secrets
import string
import time

_INVALID_CHARS_RE = re.compile(r"[^A-Za-z0-9\-_]")
_REPEATED_UNDERSCORES_RE = re.compile(r"_+")

BASE36_ALPHABET = string.digits + string.ascii_lowercase
RANDOM_SUFFIX_LENGTH = 6
MAX_BASE_LENGTH = 100


def split_filename(name: str) -> tuple[str, str | None]:
    """Split on the last dot. Names without a dot have no extension."""
    base, dot, ext = name.rpartition(".")
    if not dot:
        return name, None
    return base, ext


def _sanitize_base(base: str) -> str:
    cleaned = _INVALID_CHARS_RE.sub("_", base)
    cleaned = _REPEATED_UNDERSCORES_RE.sub("_", cleaned)
    return cleaned[:MAX_BASE_LENGTH]


def sanitize_filename(name: str) -> str:
    """Make *name* safe for use inside a storage key, keeping its extension."""
    base, ext = split_filename(name)
    sanitized = _sanitize_base(base)
    return f"{sanitized}.{ext}" if ext is not None else sanitized


def random_suffix(length: int = RANDOM_SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(BASE36_ALPHABET) for _ in range(length))


def generate_storage_key(original_name: str, prefix: str | None = None) -> str:
    """Derive a collision-resistant storage key for *original_name*."""
    key = f"{int(time.time() * 1000)}-{random_suffix()}-{sanitize_filename(original_name)}"
    return f"{prefix}/{key}" if prefix else key
