# app/common/errors.py


class SocialNetError(Exception):
    """Base class for errors that carry a user-facing message and an HTTP status."""

    status_code = 400
    default_message = "An error occurred"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthError(SocialNetError):
    status_code = 401
    default_message = "Authentication failed"


class InvalidCredentials(AuthError):
    default_message = "Invalid login credentials"


class EmailNotConfirmed(AuthError):
    default_message = "Email not confirmed"


class InvalidToken(AuthError):
    default_message = "Could not validate credentials"


class InvalidOtp(AuthError):
    default_message = "Token has expired or is invalid"


class UserAlreadyExists(SocialNetError):
    status_code = 409
    default_message = "User already registered"


class ProvisioningError(SocialNetError):
    status_code = 500
    default_message = "Database error saving new user"


class PolicyViolation(SocialNetError):
    status_code = 403
    default_message = "You are not allowed to perform this action"


class NotFound(SocialNetError):
    status_code = 404
    default_message = "Not found"


class ConflictError(SocialNetError):
    status_code = 409
    default_message = "Conflict"


class BadRequest(SocialNetError):
    status_code = 400
    default_message = "Bad request"
