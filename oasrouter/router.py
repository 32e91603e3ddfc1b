"""
Dispatch of matched requests to operation handlers, with response interception.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from .exceptions import RoutingError, UnknownOperationError
from .interceptor import ResponseInterceptor, ViolationCallback
from .models import REQUESTED_PATH_CONTEXT_KEY, SPEC_CONTEXT_KEY, BaseResponse, Request
from .registry import HandlerRegistry, ModuleHandlerRegistry
from .resolver import OperationResolver
from .specification import Specification
from .validation import ResponseValidator

logger = logging.getLogger(__name__)

Next = Callable[..., Any]


@dataclass(frozen=True)
class RouterOptions:
    """Router configuration.

    ``controllers`` is either a ready HandlerRegistry, or the root handler
    modules are loaded from: a dotted package name or a directory path.
    """

    controllers: Union[str, HandlerRegistry]

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "RouterOptions":
        unknown = sorted(set(options) - {"controllers"})
        if unknown:
            logger.warning(f"Ignoring unrecognized router options: {', '.join(unknown)}")
        if "controllers" not in options:
            raise ValueError("Router options must define 'controllers'")
        return cls(controllers=options["controllers"])

    def build_registry(self) -> HandlerRegistry:
        if isinstance(self.controllers, HandlerRegistry):
            return self.controllers
        return ModuleHandlerRegistry(str(self.controllers))


class OASRouter:
    """Per-request entry point: ``router(request, response, next)``.

    Reads the matched specification and path template from the request
    context, resolves the handler, wraps the response in a
    ResponseInterceptor and invokes the handler with ``(request, response,
    next)``. Routing failures and handler exceptions go to ``next(error)``.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        validator: Optional[ResponseValidator] = None,
        resolver: Optional[OperationResolver] = None,
        on_violation: Optional[ViolationCallback] = None,
    ):
        self.registry = registry
        self.validator = validator or ResponseValidator()
        self.resolver = resolver or OperationResolver(registry)
        self.on_violation = on_violation

    def _request_context(self, request: Request):
        method = request.method.value.lower()
        spec = request.context.get(SPEC_CONTEXT_KEY)
        path = request.context.get(REQUESTED_PATH_CONTEXT_KEY)
        if not isinstance(spec, Specification) or path is None:
            raise UnknownOperationError(
                request.path, method, "request context has no matched specification path"
            )
        return spec, path, method

    def __call__(self, request: Request, response: BaseResponse, next: Next) -> Any:
        try:
            spec, path, method = self._request_context(request)
            module_name, operation_id = self.resolver.resolve(spec, path, method)
            module = self.registry.load(module_name)
            operation = module.operation(operation_id)
        except RoutingError as e:
            logger.error(f"Cannot dispatch {request.method.value} {request.path}: {e}")
            return next(e)

        interceptor = ResponseInterceptor(
            response, spec, method, path, self.validator, self.on_violation
        )

        logger.info(f"Dispatching {method.upper()} {path} to {module_name}.{operation_id}")
        try:
            return operation(request, interceptor, next)
        except Exception as e:
            logger.error(f"Handler {module_name}.{operation_id} raised: {e}")
            return next(e)


def create_router(
    options: Union[RouterOptions, Mapping[str, Any]],
    validator: Optional[ResponseValidator] = None,
    resolver: Optional[OperationResolver] = None,
    on_violation: Optional[ViolationCallback] = None,
) -> OASRouter:
    """Create a router from its configuration.

    Args:
        options: RouterOptions, or a mapping with a ``controllers`` key
        validator: Response validator shared by all requests
        resolver: Custom operation resolver (defaults to one over the registry)
        on_violation: Called with each ContractViolation after it is logged

    Returns:
        An OASRouter usable as ``router(request, response, next)``
    """
    if not isinstance(options, RouterOptions):
        options = RouterOptions.from_mapping(options)
    registry = options.build_registry()
    logger.info(f"Controllers initialized at: {options.controllers}")
    return OASRouter(registry, validator=validator, resolver=resolver, on_violation=on_violation)
