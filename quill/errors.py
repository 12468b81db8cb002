"""
Service-level error taxonomy.

Services raise these instead of ``HTTPException`` so they stay usable
outside a request; the handler installed in ``quill.main`` turns each one
into a JSON body carrying only the message.
"""


class ServiceError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    status_code = 400
    default_message = "Invalid request payload"


class InvalidCredentials(ValidationError):
    default_message = "Incorrect email or password"


class Unauthorized(ServiceError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(ServiceError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(ServiceError):
    status_code = 404
    default_message = "Not found"


class Conflict(ServiceError):
    status_code = 409
    default_message = "Conflict"


class InternalError(ServiceError):
    status_code = 500
