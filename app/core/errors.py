"""Error kinds raised by the chat core, plus the overload classifier used by the retry loop."""
import re

# Provider messages that mean "try again later" rather than "this request is wrong"
OVERLOAD_PATTERN = re.compile(r"503|overload(ed)?", re.IGNORECASE)


class ChatError(Exception):
    """Base class for failures surfaced by the chat endpoint."""


class ConfigurationError(ChatError):
    pass


class ModelUnavailable(ChatError):
    """Preferred model could not be instantiated and no fallback was discovered.

    The message is the original instantiation error so callers report the real cause.
    """

    def __init__(self, model_id: str, cause: BaseException | None = None):
        self.model_id = model_id
        self.cause = cause
        super().__init__(error_message(cause) if cause is not None else f"Model {model_id!r} is unavailable")


NoModelAvailable = ModelUnavailable


class CatalogUnavailable(ChatError):
    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class UpstreamError(ChatError):
    """Any failure from a generation call."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class Overloaded(UpstreamError):
    pass


def _chain(exc: BaseException):
    seen: set[int] = set()
    cur: BaseException | None = exc
    while cur is not None and id(cur) not in seen:
        seen.add(id(cur))
        yield cur
        cur = cur.__cause__ or cur.__context__


def status_code_of(exc: BaseException) -> int | None:
    """First HTTP status found on the exception or its causes (`status_code`, or google-genai's `code`)."""
    for e in _chain(exc):
        for attr in ("status_code", "code"):
            value = getattr(e, attr, None)
            if isinstance(value, int) and 100 <= value <= 599:
                return value
    return None


def is_transient(exc: BaseException) -> bool:
    """True when the failure looks like upstream capacity trouble (HTTP 503 / "overloaded")."""
    if isinstance(exc, Overloaded):
        return True
    if status_code_of(exc) == 503:
        return True
    return any(OVERLOAD_PATTERN.search(str(e)) for e in _chain(exc))


def error_message(exc: BaseException) -> str:
    msg = str(exc).strip()
    return msg or type(exc).__name__
