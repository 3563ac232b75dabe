class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    code: str = 'ERROR'

    def __init__(self, message: str, status_code: int = 500, *, code: str | None = None) -> None:
        self.message = message
        self.status_code = status_code
        if code is not None:
            self.code = code
        super().__init__(message)


class DomainError(CustomBaseError):
    code = 'DOMAIN_ERROR'

    def __init__(self, message: str, status_code: int = 400, *, code: str | None = None) -> None:
        super().__init__(message, status_code, code=code)


class AuthenticationError(CustomBaseError):
    code = 'NOT_AUTHENTICATED'

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message, 401, code=code)


class ForbiddenError(CustomBaseError):
    code = 'FORBIDDEN'

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message, 403, code=code)


class NotFoundError(CustomBaseError):
    code = 'NOT_FOUND'

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message, 404, code=code)


class ConflictError(CustomBaseError):
    code = 'CONFLICT'

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message, 409, code=code)


class ExternalServiceError(CustomBaseError):
    code = 'EXTERNAL_SERVICE_ERROR'

    def __init__(self, message: str, status_code: int = 502, *, code: str | None = None) -> None:
        super().__init__(message, status_code, code=code)
