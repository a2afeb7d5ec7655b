from typing import Optional


class GiftTrackerClientError(Exception):
    """Base class for errors raised on the client side."""


class NetworkError(GiftTrackerClientError):
    """The request went out but no response came back."""


class AuthorizationError(GiftTrackerClientError):
    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class ApiError(GiftTrackerClientError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ClientValidationError(GiftTrackerClientError):
    """A request body failed validation before it was sent."""


class StorageQuotaExceeded(GiftTrackerClientError):
    """The local key-value store refused a write because it is full."""
