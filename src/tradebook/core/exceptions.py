"""Application-level exceptions."""


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    """Raised when a requested resource is not found (or is not owned by the caller)."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class ConflictError(AppError):
    """Raised on an invalid state transition or a concurrent modification."""

    def __init__(self, message: str):
        super().__init__(message, code="CONFLICT")


class DuplicateIdError(ConflictError):
    """Raised by a repository when a generated identifier is already taken."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} id already exists: {identifier}")
        self.resource = resource
        self.identifier = identifier


class InvariantViolation(AppError):
    """Raised when an operation would break a bookkeeping invariant."""

    def __init__(self, message: str):
        super().__init__(message, code="INVARIANT_VIOLATION")
