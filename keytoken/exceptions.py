"""Auth exceptions."""


class AuthException(Exception):
    """Base auth exception with HTTP status."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class DuplicateAccount(AuthException):
    def __init__(self, message: str = "Email already registered"):
        super().__init__(message, status_code=409)


class InvalidCredentials(AuthException):
    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message, status_code=401)


class InvalidToken(AuthException):
    def __init__(self, message: str = "Invalid token"):
        super().__init__(message, status_code=401)


class ReuseDetected(AuthException):
    """A rotated-out refresh token was presented again; the session is gone."""

    def __init__(self, message: str = "Refresh token reuse detected, please sign in again"):
        super().__init__(message, status_code=403)


class PersistenceError(AuthException):
    def __init__(self, message: str = "Storage failure"):
        super().__init__(message, status_code=500)


class KeyMaterialError(AuthException):
    def __init__(self, message: str = "Unusable key material"):
        super().__init__(message, status_code=500)


class RotationConflict(Exception):
    """Raised by a key token store when the expected current token no longer matches."""


class TokenVerificationError(Exception):
    """Base class for signer verification outcomes."""


class MalformedToken(TokenVerificationError):
    pass


class InvalidSignature(TokenVerificationError):
    pass


class TokenExpired(TokenVerificationError):
    pass
