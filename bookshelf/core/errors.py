"""
Error taxonomy shared by the data-access layer, the session gate and the routes.
"""


class LibraryError(Exception):
    """Base exception class for library errors"""
    status_code = 500
    retryable = False

    def __init__(self, message: str = None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__

    def to_dict(self):
        return {'error': self.message, 'retryable': self.retryable}


class NotFoundError(LibraryError):
    """Resource not found"""
    status_code = 404


class ConflictError(LibraryError):
    """Resource already exists"""
    status_code = 409


class InvalidArgumentError(LibraryError):
    """Invalid request"""
    status_code = 400


class UnauthorizedError(LibraryError):
    """Authentication required"""
    status_code = 401


class StoreUnavailableError(LibraryError):
    """Database is unavailable, try again later"""
    status_code = 503
    retryable = True
