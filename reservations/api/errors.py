"""Error types raised by the backend client."""

from __future__ import annotations

from typing import Any, Optional

from tracking import t

GENERIC_REQUEST_ERROR = "Erro na requisição"
TIMEOUT_MESSAGE = "Tempo de requisição excedido."
NETWORK_MESSAGE = "Não foi possível conectar ao servidor."

# 4xx answers that say "try again later" rather than "no"
TRANSIENT_CLIENT_STATUSES = frozenset({408, 429})


class ApiError(Exception):
    """A backend call that did not produce a 2xx response.

    ``status`` is the HTTP status code, or ``0`` when no response arrived.
    """

    def __init__(self, message: str, *, status: int = 0, payload: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload

    @property
    def error_code(self) -> Optional[str]:
        """Machine-readable code from the payload, if the backend sent one."""
        payload = self.payload
        if not isinstance(payload, dict):
            return None
        code = payload.get("errorCode") or payload.get("code")
        if code is None and isinstance(payload.get("error"), dict):
            code = payload["error"].get("code")
        return str(code) if code else None

    @property
    def is_transport_failure(self) -> bool:
        return self.status == 0

    @property
    def is_definitive_refusal(self) -> bool:
        """4xx answers mean the server looked and said no, except timeouts and rate limits."""
        return 400 <= self.status < 500 and self.status not in TRANSIENT_CLIENT_STATUSES

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(status={self.status}, message={self.message!r})"


class RequestTimeout(ApiError):
    def __init__(self) -> None:
        super().__init__(TIMEOUT_MESSAGE, status=0)


class NetworkError(ApiError):
    def __init__(self, detail: str = "") -> None:
        super().__init__(NETWORK_MESSAGE, status=0, payload={"detail": detail} if detail else None)


def extract_error_message(payload: Any, reason: str = "") -> str:
    """Pick the most specific human message a failed response carries."""
    t('reservations.api.errors.extract_error_message')

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if payload.get("message"):
            return str(payload["message"])
        if error and not isinstance(error, dict):
            return str(error)
        return reason or GENERIC_REQUEST_ERROR
    if isinstance(payload, str) and payload.strip():
        return payload.strip()
    return reason or GENERIC_REQUEST_ERROR
