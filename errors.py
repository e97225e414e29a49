"""Error taxonomy for the chat API. Each HTTP-facing error knows its status code."""

from typing import Any, Dict, Optional


class ConfigError(Exception):
    """Configuration error, raised before the server starts"""
    pass


class ChatError(Exception):
    """Base exception translated into a JSON error response"""

    status_code = 500

    def __init__(self, message: str, **extra: Any):
        self.message = message
        self.extra: Dict[str, Any] = extra
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.message}
        body.update(self.extra)
        return body


class ValidationFailed(ChatError):
    status_code = 400


class AuthenticationRequired(ChatError):
    status_code = 401


class InvalidCredentials(ChatError):
    status_code = 401


class InvalidToken(ChatError):
    status_code = 403


class AccessDenied(ChatError):
    status_code = 403


class NotFound(ChatError):
    status_code = 404


class Conflict(ChatError):
    """Unique constraint violation; `field` names the offending attribute"""

    status_code = 409

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, field=field)
        self.field = field


class InternalFault(ChatError):
    status_code = 500

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message, error=error)
