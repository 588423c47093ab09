"""Error taxonomy shared by the services, the auth guard and the HTTP layer."""

from fastapi import status


class ApiError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class RequestValidationFailed(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation error"

    def __init__(self, errors: list[dict], message: str | None = None) -> None:
        super().__init__(message)
        self.errors = errors


class Unauthenticated(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class MissingToken(Unauthenticated):
    message = "Token not provided. Include token in Authorization header: Bearer <token>"


class InvalidToken(Unauthenticated):
    message = "Invalid token"


class TokenExpired(Unauthenticated):
    message = "Token expired"


class InvalidCredentials(Unauthenticated):
    message = "Invalid credentials"


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "You do not have permission to access this resource"


class AccountInactive(Forbidden):
    message = "User inactive. Contact administrator"


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource not found"


class Conflict(ApiError):
    # Duplicate registrations answer 400, not 409.
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Resource already exists"


class DuplicateEmail(Conflict):
    message = "Email already registered"


class InternalError(ApiError):
    pass
