"""Exception types raised by the proxy and the renderer."""

from __future__ import annotations

from typing import Any, Dict, Optional


class ProxyError(Exception):
    """Base class for failures surfaced by the feed proxy."""

    status_code = 500
    error_label = "Internal Server Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def error_kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error_label, "message": self.message}


class BadRequest(ProxyError):
    status_code = 400
    error_label = "Bad Request"


class UpstreamError(ProxyError):
    """The feed server answered, but with a non-2xx status."""

    error_label = "Feed Fetch Failed"

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["statusCode"] = self.status_code
        return payload


class Unreachable(ProxyError):
    status_code = 503
    error_label = "Service Unavailable"


class Internal(ProxyError):
    status_code = 500
    error_label = "Internal Server Error"


class RenderError(Exception):
    """Base class for failures while turning feed XML into a view."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ParseError(RenderError):
    pass


class UnrecognizedFormat(RenderError):
    pass


class StorageError(Exception):
    """Raised by storage backends when a read or write cannot be completed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class ViewerError(Exception):
    """The proxy could not be reached or answered with an error payload."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
