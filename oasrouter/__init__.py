"""
Request dispatch and response contract validation for OpenAPI-driven services.

Given a request already matched against an OpenAPI document, the router
resolves which handler module and operation serve it, invokes the handler with
``(request, response, next)``, and checks the payload the handler sends
against the schema declared for its status code. Contract violations are
logged and never change what the client receives.
"""

from .application import OASApplication
from .error_models import ErrorResponse
from .exceptions import (
    HandlerModuleLoadError,
    HandlerModuleNotFoundError,
    OASRouterError,
    OperationNotFoundError,
    ResponseAlreadySentError,
    RoutingError,
    SpecificationError,
    UnknownOperationError,
)
from .interceptor import ContractViolation, ResponseInterceptor
from .matcher import PathMatcher
from .models import BaseResponse, HTTPMethod, Request, Response
from .registry import DictHandlerRegistry, HandlerModule, HandlerRegistry, ModuleHandlerRegistry
from .resolver import OperationResolver, ResolvedOperation, resolve
from .router import OASRouter, RouterOptions, create_router
from .server import ASGIAdapter, create_asgi_app
from .specification import OperationDescriptor, ResponseContract, Specification
from .validation import ResponseValidator, ValidationOutcome, ValidationStatus

__version__ = "0.1.0"
__license__ = "MIT"

__all__ = [
    "OASApplication",
    "OASRouter",
    "RouterOptions",
    "create_router",
    "OperationResolver",
    "ResolvedOperation",
    "resolve",
    "Specification",
    "OperationDescriptor",
    "ResponseContract",
    "ResponseValidator",
    "ValidationOutcome",
    "ValidationStatus",
    "ResponseInterceptor",
    "ContractViolation",
    "HandlerRegistry",
    "HandlerModule",
    "DictHandlerRegistry",
    "ModuleHandlerRegistry",
    "PathMatcher",
    "Request",
    "Response",
    "BaseResponse",
    "HTTPMethod",
    "ErrorResponse",
    "ASGIAdapter",
    "create_asgi_app",
    "OASRouterError",
    "SpecificationError",
    "RoutingError",
    "UnknownOperationError",
    "HandlerModuleNotFoundError",
    "HandlerModuleLoadError",
    "OperationNotFoundError",
    "ResponseAlreadySentError",
]
