"""Core custom exceptions for the application."""


class PetitionError(Exception):
    """Base exception for petition assembly and storage errors."""


class ConfigurationError(PetitionError):
    """Exception for configuration-related errors (e.g., missing bucket or database settings)."""


class ValidationError(PetitionError):
    """Raised when an upload candidate is rejected before any I/O happens.

    The message is user-facing and is surfaced verbatim.
    """

    kind = "terminal"


class AssemblyError(PetitionError):
    """Raised when the static template table is malformed."""


class StorageIOError(PetitionError):
    """Failure talking to the object store or the metadata store.

    Carries the structured fields used by the retry classifier: ``code`` is the
    backend error code (S3 error code, PostgREST code, or an HTTP status rendered
    as a string), ``status_code`` the HTTP status when known and ``kind`` an
    explicit ``"transient"``/``"terminal"`` marker. ``attempts`` is filled in by
    the retry executor once retries are exhausted.
    """

    kind: str | None = None

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
        kind: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        if kind is not None:
            self.kind = kind
        self.attempts = 1

    def __str__(self) -> str:
        if self.attempts > 1:
            return f"{self.message} (after {self.attempts} attempts)"
        return self.message


class TransientIOError(StorageIOError):
    """Network or server hiccup worth retrying."""

    kind = "transient"


class TerminalIOError(StorageIOError):
    """Permission, not-found or conflict failure. Never retried."""

    kind = "terminal"


class NotFoundError(TerminalIOError):
    """Requested record or object does not exist."""


class ConflictError(TerminalIOError):
    """Write rejected because the target already exists."""


class CompensationFailure(PetitionError):
    """A best-effort rollback step failed. Logged, never raised to callers."""
