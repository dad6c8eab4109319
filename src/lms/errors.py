"""
Domain errors raised by the service layer and rendered by the API
"""


class LMSError(Exception):
    """Base error; carries the HTTP status it maps to."""
    status_code: int = 500

    def __init__(self, message: str = "Internal Server Error", status_code: int = None):
        self.message = message
        if status_code:
            self.status_code = status_code
        super().__init__(self.message)


class BadRequestError(LMSError):
    status_code = 400

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message, self.status_code)


class ForbiddenError(LMSError):
    status_code = 403

    def __init__(self, message: str = "Access forbidden"):
        super().__init__(message, self.status_code)


class NotFoundError(LMSError):
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, self.status_code)


class ConflictError(LMSError):
    """Uniqueness violation: duplicate enrollment, submission or email."""
    status_code = 409

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message, self.status_code)


class StorageError(LMSError):
    """Object storage collaborator failed."""
    status_code = 500

    def __init__(self, message: str = "File storage failed"):
        super().__init__(message, self.status_code)
