# main/errors.py
"""
Error taxonomy shared by every service.

Services raise these; the JSON layer (main.http.json_errors) maps each one to
its HTTP status and a {"message": ...} body.
"""


class ServiceError(Exception):
    status = 400
    default_message = "Request failed."

    def __init__(self, message: str | None = None, *, status: int | None = None, **extra):
        self.message = message or self.default_message
        if status is not None:
            self.status = status
        self.extra = extra
        super().__init__(self.message)

    def payload(self) -> dict:
        return {"message": self.message, **self.extra}


class ValidationError(ServiceError):
    status = 400
    default_message = "Invalid input."


class AuthError(ServiceError):
    status = 401
    default_message = "Authentication required."


class InvalidCredential(AuthError):
    default_message = "Invalid credentials."


class Forbidden(AuthError):
    status = 403
    default_message = "Access denied."


class NotFoundError(ServiceError):
    status = 404
    default_message = "Not found."


class UserNotFound(NotFoundError):
    default_message = "User not found."


class ConflictError(ServiceError):
    status = 409
    default_message = "Conflict."


class InvalidState(ConflictError):
    # wrong state transition, e.g. approving a request that is no longer pending
    status = 400
    default_message = "Invalid state for this operation."


class InsufficientFunds(ServiceError):
    status = 400
    default_message = "Insufficient balance."


class PersistenceError(ServiceError):
    status = 500
    default_message = "Internal server error."
