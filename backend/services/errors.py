"""Error taxonomy for the chat assistant.

Only ``ValidationError`` is meant to reach the HTTP boundary. Everything else
is absorbed into a degraded but successful reply by the resolver chain or the
conversation store.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ErrorInfo:
    """Structured error payload, logged as `error_code` / `error_details`."""
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


class ChatServiceError(Exception):
    """Base exception carrying an ErrorInfo."""

    code = "CHAT_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.error = ErrorInfo(code=self.code, message=message, details=details or {})
        super().__init__(message)

    def log_extra(self) -> Dict[str, Any]:
        return {"error_code": self.error.code, "error_details": self.error.details}


class ValidationError(ChatServiceError):
    """Required input is missing."""
    code = "VALIDATION_ERROR"


class RecoverableRemoteError(ChatServiceError):
    """Rate limiting, 5xx, transport failure or poller timeout."""
    code = "REMOTE_UNAVAILABLE"


class RunFailed(RecoverableRemoteError):
    """The remote assistant run ended in a failed or expired state."""
    code = "RUN_FAILED"


class RunTimedOut(RecoverableRemoteError):
    """The poller gave up before the run reached a terminal state."""
    code = "RUN_TIMED_OUT"


class RequestError(ChatServiceError):
    """The remote endpoint rejected the request; retrying would not help."""
    code = "REQUEST_ERROR"


class ProtocolViolation(ChatServiceError):
    """The remote service broke its own contract."""
    code = "PROTOCOL_VIOLATION"


class AssistantResponseMissing(ProtocolViolation):
    """A run completed but the thread holds no assistant message."""
    code = "ASSISTANT_RESPONSE_MISSING"


class PersistenceError(ChatServiceError):
    """The conversation store failed."""
    code = "PERSISTENCE_ERROR"
