"""Backend API client and its error types."""

from .client import ReservationApiClient
from .errors import ApiError, NetworkError, RequestTimeout, extract_error_message

__all__ = [
    "ReservationApiClient",
    "ApiError",
    "NetworkError",
    "RequestTimeout",
    "extract_error_message",
]
