import pytest

from peticao.core.exceptions import ConflictError
from peticao.core.exceptions import NotFoundError
from peticao.core.exceptions import StorageIOError
from peticao.core.exceptions import TerminalIOError
from peticao.core.exceptions import TransientIOError
from peticao.core.exceptions import ValidationError
from peticao.services.retry import RetryConfig
from peticao.services.retry import is_retryable_error
from peticao.services.retry import storage_error
from peticao.services.retry import with_retry


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FlakyOperation:
    """Fails with the queued errors, then returns ``result``."""

    def __init__(self, errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


DEFAULT = RetryConfig()


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("code", ["500", "502", "503", "504", "408", "PGRST301"])
def test_retryable_codes(code):
    assert is_retryable_error(StorageIOError("boom", code=code)) is True


@pytest.mark.parametrize("status", [500, 503, 408])
def test_retryable_status_codes(status):
    assert is_retryable_error(StorageIOError("boom", status_code=status)) is True


@pytest.mark.parametrize(
    "message",
    ["fetch failed", "Network unreachable", "request TIMEOUT", "read ECONNRESET", "connect ETIMEDOUT"],
)
def test_retryable_messages(message):
    assert is_retryable_error(StorageIOError(message)) is True


@pytest.mark.parametrize("code", ["403", "404", "23505", "AccessDenied"])
def test_terminal_codes(code):
    assert is_retryable_error(StorageIOError("denied", code=code)) is False


@pytest.mark.parametrize("filename", ["timeout_report.pdf", "network_diagram.pdf", "fetch failed.docx"])
def test_code_outranks_transient_words_in_message(filename):
    message = f"Upload of case-1/1-abc123-{filename} failed: Access Denied"
    assert is_retryable_error(StorageIOError(message, code="AccessDenied", status_code=403)) is False
    assert isinstance(storage_error(message, code="AccessDenied", status_code=403), TerminalIOError)
    assert not isinstance(storage_error(message, code="AccessDenied", status_code=403), TransientIOError)


def test_explicit_kind_wins():
    assert is_retryable_error(TransientIOError("odd failure")) is True
    assert is_retryable_error(TerminalIOError("timeout while denied", code="503")) is False
    assert is_retryable_error(ValidationError("network")) is False


def test_plain_exception_classified_by_message():
    assert is_retryable_error(RuntimeError("connection reset by peer")) is True
    assert is_retryable_error(RuntimeError("bad input")) is False


def test_storage_error_builds_typed_errors():
    assert isinstance(storage_error("x", code="NoSuchKey"), NotFoundError)
    assert isinstance(storage_error("x", code="PGRST116"), NotFoundError)
    assert isinstance(storage_error("x", code="PreconditionFailed", status_code=412), ConflictError)
    assert isinstance(storage_error("x", code="23505"), ConflictError)
    assert isinstance(storage_error("x", code="SlowDown", status_code=503), TransientIOError)
    assert isinstance(storage_error("x", code="AccessDenied", status_code=403), TerminalIOError)
    assert isinstance(storage_error("x", transient=True), TransientIOError)


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_success_first_try_does_not_sleep():
    sleep = RecordingSleep()
    op = FlakyOperation([])
    assert await with_retry(op, DEFAULT, sleep=sleep) == "ok"
    assert op.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_two_transient_failures_then_success():
    sleep = RecordingSleep()
    op = FlakyOperation([StorageIOError("down", code="503"), StorageIOError("down", code="503")])

    assert await with_retry(op, DEFAULT, sleep=sleep) == "ok"
    assert op.calls == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_terminal_error_is_not_retried():
    sleep = RecordingSleep()
    op = FlakyOperation([TerminalIOError("permission denied", code="403")])

    with pytest.raises(TerminalIOError):
        await with_retry(op, DEFAULT, sleep=sleep)
    assert op.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_exhaustion_raises_last_error_with_attempt_count():
    sleep = RecordingSleep()
    errors = [TransientIOError(f"timeout #{i}") for i in range(4)]
    op = FlakyOperation(errors)

    with pytest.raises(TransientIOError) as exc:
        await with_retry(op, DEFAULT, sleep=sleep)

    assert op.calls == 4
    assert exc.value.message == "timeout #3"
    assert exc.value.attempts == 4
    assert "after 4 attempts" in str(exc.value)
    assert sleep.delays == [1.0, 2.0, 4.0]


@pytest.mark.asyncio
async def test_delay_is_capped():
    sleep = RecordingSleep()
    cfg = RetryConfig(max_retries=5, initial_delay_ms=1000, max_delay_ms=3000, backoff_multiplier=2.0)
    op = FlakyOperation([TransientIOError("timeout")] * 5)

    assert await with_retry(op, cfg, sleep=sleep) == "ok"
    assert sleep.delays == [1.0, 2.0, 3.0, 3.0, 3.0]


@pytest.mark.asyncio
async def test_zero_retries_means_single_attempt():
    sleep = RecordingSleep()
    op = FlakyOperation([TransientIOError("timeout")])

    with pytest.raises(TransientIOError):
        await with_retry(op, RetryConfig(max_retries=0), sleep=sleep)
    assert op.calls == 1


def test_retry_config_from_settings(monkeypatch):
    from peticao.services import retry as retry_module

    monkeypatch.setattr(retry_module.settings, "retry_max_retries", 1)
    monkeypatch.setattr(retry_module.settings, "retry_initial_delay_ms", 250)
    cfg = RetryConfig.from_settings()
    assert cfg.max_retries == 1
    assert cfg.initial_delay_ms == 250
