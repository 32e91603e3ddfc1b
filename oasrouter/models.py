"""
Core request and response models for the OpenAPI router.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .exceptions import ResponseAlreadySentError

# Request-scoped context keys populated by the path matcher.
SPEC_CONTEXT_KEY = "spec"
REQUESTED_PATH_CONTEXT_KEY = "requested_path"


class HTTPMethod(Enum):
    """Enumeration of the HTTP methods an OpenAPI path item can declare."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"


@dataclass
class Request:
    """Represents an HTTP request."""

    method: HTTPMethod
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None
    query_params: Optional[Dict[str, str]] = None
    path_params: Optional[Dict[str, str]] = None
    context: Dict[str, Any] = field(default_factory=dict)

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get a header value, matching the name case-insensitively."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default

    def get_content_type(self) -> Optional[str]:
        """Get the Content-Type header."""
        return self.get_header("Content-Type")


class BaseResponse(ABC):
    """The response-emission interface handed to operation handlers.

    Handlers set ``status_code`` (or call ``status()``) and finish the request
    with exactly one call to ``send()``.
    """

    @property
    @abstractmethod
    def status_code(self) -> int:
        pass

    @status_code.setter
    @abstractmethod
    def status_code(self, value: int) -> None:
        pass

    @property
    @abstractmethod
    def headers(self) -> Dict[str, str]:
        pass

    @property
    @abstractmethod
    def sent(self) -> bool:
        pass

    @abstractmethod
    def send(self, payload: Any = None) -> None:
        """Emit the payload as the terminal response."""
        pass

    def status(self, code: int) -> "BaseResponse":
        """Set the status code and return self for chaining."""
        self.status_code = int(code)
        return self

    def set_header(self, name: str, value: str) -> "BaseResponse":
        """Set a response header and return self for chaining."""
        self.headers[name] = value
        return self


class Response(BaseResponse):
    """The real response sink.

    The payload passed to ``send()`` is stored unchanged in ``body``; converting
    it to bytes is left to the transport.
    """

    def __init__(self, status_code: int = 200, headers: Optional[Dict[str, str]] = None):
        self._status_code = int(status_code)
        self._headers: Dict[str, str] = dict(headers or {})
        self._sent = False
        self.body: Any = None

    @property
    def status_code(self) -> int:
        return self._status_code

    @status_code.setter
    def status_code(self, value: int) -> None:
        self._status_code = int(value)

    @property
    def headers(self) -> Dict[str, str]:
        return self._headers

    @property
    def sent(self) -> bool:
        return self._sent

    @property
    def content_type(self) -> Optional[str]:
        for key, value in self._headers.items():
            if key.lower() == "content-type":
                return value
        return None

    def send(self, payload: Any = None) -> None:
        if self._sent:
            raise ResponseAlreadySentError(
                f"Response already sent with status {self._status_code}"
            )
        self._sent = True
        self.body = payload

        if self.content_type is None:
            if isinstance(payload, (dict, list)):
                self._headers["Content-Type"] = "application/json"
            elif isinstance(payload, str):
                self._headers["Content-Type"] = "text/plain"

    def __repr__(self) -> str:
        return f"Response(status_code={self._status_code}, sent={self._sent}, body={self.body!r})"
