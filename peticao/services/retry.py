import asyncio
import logging
from collections.abc import Awaitable
from collections.abc import Callable
from typing import TypeVar
from uuid import uuid4

from pydantic import BaseModel
from pydantic import Field
from tenacity import AsyncRetrying
from tenacity import RetryCallState
from tenacity import retry_if_exception
from tenacity import stop_after_attempt
from tenacity import wait_exponential

from peticao.core.config import settings
from peticao.core.exceptions import ConflictError
from peticao.core.exceptions import NotFoundError
from peticao.core.exceptions import StorageIOError
from peticao.core.exceptions import TerminalIOError
from peticao.core.exceptions import TransientIOError

# Configure module logger
logger = logging.getLogger(__name__)

T = TypeVar("T")

# HTTP statuses (as strings) plus PostgREST's "service temporarily unavailable"
RETRYABLE_CODES: frozenset[str] = frozenset({"500", "502", "503", "504", "408", "PGRST301"})

TRANSIENT_MESSAGE_PATTERNS: tuple[str, ...] = (
    "fetch failed",
    "network",
    "timeout",
    "timed out",
    "econnreset",
    "etimedout",
    "connection reset",
)


class RetryConfig(BaseModel):
    max_retries: int = Field(default=3, ge=0)
    initial_delay_ms: int = Field(default=1000, ge=0)
    max_delay_ms: int = Field(default=10000, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0)

    @classmethod
    def from_settings(cls) -> "RetryConfig":
        return cls(
            max_retries=settings.retry_max_retries,
            initial_delay_ms=settings.retry_initial_delay_ms,
            max_delay_ms=settings.retry_max_delay_ms,
            backoff_multiplier=settings.retry_backoff_multiplier,
        )


def is_retryable_error(exc: BaseException) -> bool:
    """Decide whether *exc* is transient, looking only at its structured fields.

    An explicit ``kind`` wins. An error carrying a ``code`` or ``status_code`` is
    retryable only when one of them is a known transient status. Only errors
    with neither fall back to the message, which may embed user filenames.
    """
    kind = getattr(exc, "kind", None)
    if kind == "transient":
        return True
    if kind == "terminal":
        return False

    markers = [getattr(exc, attr, None) for attr in ("code", "status_code")]
    markers = [str(value) for value in markers if value is not None]
    if markers:
        return any(value in RETRYABLE_CODES for value in markers)

    message = str(getattr(exc, "message", None) or exc).lower()
    return any(pattern in message for pattern in TRANSIENT_MESSAGE_PATTERNS)


NOT_FOUND_CODES: frozenset[str] = frozenset({"404", "NoSuchKey", "NoSuchBucket", "PGRST116"})
CONFLICT_CODES: frozenset[str] = frozenset({"409", "412", "PreconditionFailed", "ConditionalRequestConflict", "23505"})


def storage_error(
    message: str,
    *,
    code: str | None = None,
    status_code: int | None = None,
    transient: bool | None = None,
) -> StorageIOError:
    """Build the typed error for a backend failure described by its fields."""
    markers = {str(code), str(status_code)}
    if markers & NOT_FOUND_CODES:
        return NotFoundError(message, code=code, status_code=status_code)
    if markers & CONFLICT_CODES:
        return ConflictError(message, code=code, status_code=status_code)
    if transient is None:
        transient = is_retryable_error(StorageIOError(message, code=code, status_code=status_code))
    cls = TransientIOError if transient else TerminalIOError
    return cls(message, code=code, status_code=status_code)


def _log_before_sleep(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        "Retry attempt %d after %.0fms: %s",
        retry_state.attempt_number,
        delay * 1000,
        exc,
    )


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run *operation*, retrying transient failures with exponential backoff.

    Attempts are strictly sequential; at most ``max_retries`` retries follow the
    first call. Between attempts the calling task sleeps for the current delay,
    which starts at ``initial_delay_ms`` and is multiplied by
    ``backoff_multiplier`` after every retry, capped at ``max_delay_ms``.
    Terminal errors propagate immediately. When retries are exhausted the last
    error is raised, with the attempt count recorded on storage errors.
    """
    cfg = config or RetryConfig()
    op_id = str(uuid4())[:8]
    retrying = AsyncRetrying(
        stop=stop_after_attempt(cfg.max_retries + 1),
        wait=wait_exponential(
            multiplier=cfg.initial_delay_ms / 1000,
            exp_base=cfg.backoff_multiplier,
            max=cfg.max_delay_ms / 1000,
        ),
        retry=retry_if_exception(is_retryable_error),
        before_sleep=_log_before_sleep,
        sleep=sleep,
        reraise=True,
    )

    try:
        async for attempt in retrying:
            with attempt:
                result = await operation()
    except Exception as exc:
        attempts = retrying.statistics.get("attempt_number", 1)
        if isinstance(exc, StorageIOError):
            exc.attempts = attempts
        logger.error("[%s] Operation failed after %d attempt(s): %s", op_id, attempts, exc)
        raise
    return result
