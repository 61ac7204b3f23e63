"""
portal/exceptions.py
Domain exceptions raised by the service layer

Services stay free of HTTP types; the handler registered in portal.main
turns any PortalException into the standard error envelope.
"""
from portal.errors import ErrorCode


class PortalException(Exception):
    """Base exception for the CoTBE portal"""
    status_code: int = 500
    error: str = "Internal Error"
    code: str = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, status_code: int = None, code: str = None):
        self.message = message
        if status_code:
            self.status_code = status_code
        if code:
            self.code = code
        super().__init__(self.message)


class NotFoundError(PortalException):
    """
    Raised when a referenced record does not exist.
    """
    status_code = 404
    error = "Not Found"
    code = ErrorCode.NOT_FOUND

    def __init__(self, resource: str, identifier=None):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with id '{identifier}' not found"
        super().__init__(message)


class RegistrationError(PortalException):
    """
    Raised when a registration request breaks an enrollment rule.

    Examples:
    - Student already registered or waitlisted
    - Course is full
    - Registration window closed
    """
    status_code = 409
    error = "Conflict"
    code = ErrorCode.ALREADY_REGISTERED


class RuleViolationError(PortalException):
    """
    Raised for requests that are well-formed but not allowed.
    """
    status_code = 400
    error = "Bad Request"
    code = ErrorCode.INVALID_INPUT


class PermissionDeniedError(PortalException):
    status_code = 403
    error = "Forbidden"
    code = ErrorCode.FORBIDDEN


class AIServiceError(PortalException):
    """Raised when the generative model call fails."""
    status_code = 502
    error = "AI Service Error"
    code = ErrorCode.AI_SERVICE_ERROR


class AINotConfiguredError(PortalException):
    status_code = 503
    error = "Service Unavailable"
    code = ErrorCode.AI_SERVICE_UNAVAILABLE

    def __init__(self, message: str = "AI assistant is not configured. Set GEMINI_API_KEY to enable it."):
        super().__init__(message)


class AIInputRejectedError(PortalException):
    """Raised when assistant input is oversized or attempts to override instructions."""
    status_code = 400
    error = "Bad Request"
    code = ErrorCode.AI_INPUT_REJECTED
