"""
ASGI adapter for OASApplication.

This module lets an OASApplication run under any ASGI-compatible server
(Uvicorn, Hypercorn, ...) while handlers stay synchronous.
"""

import json
import logging
import urllib.parse
from typing import Any, Dict, List, Optional

from .application import OASApplication
from .models import HTTPMethod, Request, Response

logger = logging.getLogger(__name__)


def encode_body(response: Response) -> bytes:
    """Convert the payload a handler sent into the bytes put on the wire."""
    body = response.body
    if body is None:
        return b""
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    if hasattr(body, "model_dump_json"):
        return body.model_dump_json().encode("utf-8")
    return json.dumps(body).encode("utf-8")


class ASGIAdapter:
    """
    ASGI adapter that converts between the ASGI protocol and Request/Response objects.
    """

    def __init__(self, app: OASApplication):
        """Initialize the ASGI adapter with an application."""
        self.app = app

    async def __call__(self, scope: Dict[str, Any], receive, send):
        """ASGI application entry point."""
        if scope["type"] != "http":
            # Only handle HTTP requests
            await self._send_plain(send, 404, b"Not Found")
            return

        try:
            method = HTTPMethod(scope["method"].upper())
        except ValueError:
            await self._send_plain(send, 501, b"Not Implemented")
            return

        request = await self._asgi_to_request(scope, receive, method)

        try:
            response = self.app.execute(request)
        except Exception as e:
            logger.error(f"Unhandled exception in ASGI adapter: {e}")
            response = Response(status_code=500)
            response.send({"error": "Internal Server Error"})

        await self._response_to_asgi(response, send)

    async def _asgi_to_request(self, scope: Dict[str, Any], receive, method: HTTPMethod) -> Request:
        """Convert ASGI scope and body to a Request."""
        path = scope["path"]
        query_string = scope.get("query_string", b"").decode("utf-8")

        # Normalize header names to lowercase
        headers = {}
        for header_name, header_value in scope.get("headers", []):
            headers[header_name.decode("latin-1").lower()] = header_value.decode("latin-1")

        query_params = {}
        if query_string:
            query_params = dict(urllib.parse.parse_qsl(query_string))

        body = b""
        more_body = True
        while more_body:
            message = await receive()
            body += message.get("body", b"")
            more_body = message.get("more_body", False)

        body_content: Optional[str] = None
        if body:
            try:
                body_content = body.decode("utf-8")
            except UnicodeDecodeError:
                body_content = body.decode("latin-1")

        return Request(
            method=method,
            path=path,
            headers=headers,
            query_params=query_params,
            body=body_content,
        )

    async def _response_to_asgi(self, response: Response, send):
        """Convert a Response to ASGI messages."""
        body = encode_body(response)

        headers: List[List[bytes]] = []
        for name, value in response.headers.items():
            if name.lower() == "content-length":
                continue
            headers.append([name.encode("latin-1"), str(value).encode("latin-1")])
        headers.append([b"content-length", str(len(body)).encode("latin-1")])

        await send({
            "type": "http.response.start",
            "status": response.status_code,
            "headers": headers,
        })
        await send({
            "type": "http.response.body",
            "body": body,
        })

    @staticmethod
    async def _send_plain(send, status: int, body: bytes):
        await send({
            "type": "http.response.start",
            "status": status,
            "headers": [[b"content-type", b"text/plain"]],
        })
        await send({
            "type": "http.response.body",
            "body": body,
        })


def create_asgi_app(app: OASApplication) -> ASGIAdapter:
    """
    Create an ASGI application from an OASApplication.

    Args:
        app: The application to wrap

    Returns:
        An ASGI-compatible application
    """
    return ASGIAdapter(app)
