"""Exceptions raised by the journal client collaborators."""


class ClientError(Exception):
    """Base exception for all client errors."""

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


class TransportError(ClientError):
    """Raised when the request never produced a response (network, timeout)."""

    pass


class ApiError(ClientError):
    """Raised when the API returns a non-2xx response or `success: false`."""

    def __init__(self, message: str, status_code: int, *args, server_message: str | None = None, **kwargs):
        self.status_code = status_code
        self.server_message = server_message
        super().__init__(message, *args, **kwargs)


class AuthenticationError(ApiError):
    """Raised on 401; the stored token has already been evicted."""

    def __init__(self, message: str = "Session expired. Please login again."):
        super().__init__(message, status_code=401)


class NotFoundError(ApiError):
    """Raised when the API returns a 404 not found response."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class UploadError(ClientError):
    """Raised by the upload collaborator; carries no structured code."""

    pass


class ValidationError(ClientError):
    """Raised when local validation rejects input before any request is made."""

    def __init__(self, message: str, errors: dict[str, str] | None = None, *args, **kwargs):
        self.errors = errors or {}
        super().__init__(message, *args, **kwargs)
