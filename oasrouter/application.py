"""
Middleware pipeline running the path matcher and the router for each request.
"""

import logging
import uuid
from typing import Any, Callable, List, Optional, Union

from .error_models import ErrorResponse
from .interceptor import ViolationCallback
from .matcher import PathMatcher
from .models import BaseResponse, Request, Response
from .registry import HandlerRegistry
from .router import OASRouter, RouterOptions, create_router
from .specification import Specification
from .validation import ResponseValidator

# Set up logger for this module
logger = logging.getLogger(__name__)

Middleware = Callable[[Request, BaseResponse, Callable[..., Any]], Any]

REQUEST_ID_HEADER = "X-Request-ID"


class OASApplication:
    """An OpenAPI-driven application.

    Each request runs through the path matcher, any middleware added with
    ``use()``, and finally the router. Handlers follow the
    ``(request, response, next)`` convention: ``next()`` passes control on,
    ``next(error)`` ends the request through the application's error
    boundary.

    Example::

        spec = Specification.from_file("openapi.yaml")
        app = OASApplication(spec, controllers="myapp.controllers")
        response = app.execute(Request(HTTPMethod.GET, "/pets"))
    """

    def __init__(
        self,
        spec: Specification,
        controllers: Union[str, HandlerRegistry, None] = None,
        router: Optional[OASRouter] = None,
        validator: Optional[ResponseValidator] = None,
        on_violation: Optional[ViolationCallback] = None,
        base_path: str = "",
    ):
        if router is None:
            if controllers is None:
                raise ValueError("Either controllers or router must be provided")
            router = create_router(
                RouterOptions(controllers=controllers),
                validator=validator,
                on_violation=on_violation,
            )
        self.spec = spec
        self.matcher = PathMatcher(spec, base_path=base_path)
        self.router = router
        self._middleware: List[Middleware] = []
        self._request_id_provider: Optional[Callable[[Request], str]] = None

    def use(self, middleware: Middleware) -> Middleware:
        """Add middleware that runs after path matching and before the router.

        Can be used as a decorator.
        """
        self._middleware.append(middleware)
        return middleware

    def request_id(self, func: Callable[[Request], str]):
        """Decorator to register a custom request ID generator.

        If not provided, the X-Request-ID header or a new UUID is used.
        """
        self._request_id_provider = func
        return func

    def _get_request_id(self, request: Request) -> str:
        if self._request_id_provider:
            return self._request_id_provider(request)
        return request.get_header(REQUEST_ID_HEADER) or str(uuid.uuid4())

    def execute(self, request: Request) -> Response:
        """Run a request through the pipeline and return the real response."""
        response = Response()
        request.context.setdefault("request_id", self._get_request_id(request))
        chain: List[Middleware] = [self.matcher, *self._middleware, self.router]

        logger.debug(f"Starting pipeline for {request.method.value} {request.path}")

        def dispatch(index: int, error: Optional[BaseException] = None) -> Any:
            if error is not None:
                return self._handle_error(error, request, response)
            if index >= len(chain):
                return None

            def next_(err: Optional[BaseException] = None) -> Any:
                return dispatch(index + 1, err)

            try:
                return chain[index](request, response, next_)
            except Exception as e:
                return self._handle_error(e, request, response)

        try:
            dispatch(0)
        except Exception as e:
            logger.error(f"Unhandled exception processing {request.method.value} {request.path}: {e}")
            if not response.sent:
                self._send_error(response, 500, ErrorResponse(error="Internal server error"))
            return response

        if not response.sent:
            logger.debug(f"No middleware answered {request.method.value} {request.path}")
            self._send_error(
                response,
                404,
                ErrorResponse(
                    error=f"No handler answered {request.method.value} {request.path}",
                    request_id=request.context.get("request_id"),
                ),
            )
        return response

    def _handle_error(self, error: BaseException, request: Request, response: Response) -> None:
        """The single error boundary: turn an error into a JSON error response."""
        status_code = getattr(error, "status_code", None)
        if not isinstance(status_code, int) or not 400 <= status_code < 600:
            status_code = 500

        if status_code >= 500:
            logger.error(f"Error processing {request.method.value} {request.path}: {error}")
        else:
            logger.warning(f"Error processing {request.method.value} {request.path}: {error}")

        if response.sent:
            logger.warning(
                f"Response for {request.method.value} {request.path} already sent, "
                f"error not delivered to the client"
            )
            return

        self._send_error(
            response,
            status_code,
            ErrorResponse.from_exception(error, request_id=request.context.get("request_id")),
        )

    @staticmethod
    def _send_error(response: Response, status_code: int, error: ErrorResponse) -> None:
        response.status(status_code)
        response.headers["Content-Type"] = "application/json"
        response.send(error.model_dump())
