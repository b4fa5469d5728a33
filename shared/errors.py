"""
Shared error handling for the RES promoter.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import promotion_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    promotion_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class PromoterException(Exception):
    """Base exception for promoter operations."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            promotion_id=promotion_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class TransportError(PromoterException):
    """Non-success HTTP status or socket failure."""

    def __init__(self, method: str, url: str, status_line: Optional[str] = None,
                 message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.method = method
        self.url = url
        self.status_line = status_line
        payload = {"method": method, "url": url, "status_line": status_line}
        payload.update(details or {})
        if message is None:
            message = f"Method execution failed: {method} {url}: {status_line}"
        super().__init__("TRANSPORT_ERROR", message, payload)


class ProtocolError(PromoterException):
    """Response body is not the document we expected."""

    def __init__(self, message: str = "Unexpected response document", details: Optional[Dict[str, Any]] = None):
        super().__init__("PROTOCOL_ERROR", message, details)


class StorageError(PromoterException):
    """Staging directory read/write failure."""

    def __init__(self, path: str, message: str = "Staging failure", details: Optional[Dict[str, Any]] = None):
        self.path = path
        payload = {"path": path}
        payload.update(details or {})
        super().__init__("STORAGE_ERROR", message, payload)
