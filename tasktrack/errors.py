from typing import Optional


class TaskTrackError(Exception):
    """Base class for domain errors mapped to HTTP responses.

    Each subclass pins an HTTP ``status_code`` and a stable ``code``; the
    message is what clients see in the ``error`` field.
    """

    status_code: int = 400
    code: str = "VALIDATION_ERROR"
    default_message: str = "Bad request"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict:
        return {"error": self.message, "code": self.code}


class ValidationError(TaskTrackError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class EmailTaken(TaskTrackError):
    status_code = 400
    code = "EMAIL_TAKEN"
    default_message = "Email already exists"


class InvalidCredentials(TaskTrackError):
    status_code = 401
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid credentials"


class NoToken(TaskTrackError):
    status_code = 401
    code = "NO_TOKEN"
    default_message = "No token provided"


class InvalidToken(TaskTrackError):
    status_code = 401
    code = "INVALID_TOKEN"
    default_message = "Invalid token"


class NotFound(TaskTrackError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Task not found"


class StoreError(TaskTrackError):
    status_code = 500
    code = "STORE_ERROR"
    default_message = "Internal server error"


class ConfigError(RuntimeError):
    """Raised at startup when required configuration is missing or unsafe."""
