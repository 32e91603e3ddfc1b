"""
Custom exceptions for the OpenAPI router.
"""
from typing import Optional


class OASRouterError(Exception):
    """Base exception for router errors."""

    pass


class SpecificationError(OASRouterError):
    """Raised when an OpenAPI document cannot be loaded or is invalid."""

    def __init__(self, message="Invalid OpenAPI document", original_exception=None):
        self.message = message
        self.original_exception = original_exception
        super().__init__(self.message)


class RoutingError(OASRouterError):
    """Raised when a request cannot be dispatched to a handler.

    Routing errors are configuration errors between the specification and the
    deployed handler code. They abort the request with a server error.
    """

    status_code = 500


class UnknownOperationError(RoutingError):
    """Raised when a path/method pair is absent from the specification."""

    def __init__(self, path: str, method: str, reason: Optional[str] = None):
        self.path = path
        self.method = method
        message = f"No operation for {method.upper()} {path} in the specification"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class HandlerModuleNotFoundError(RoutingError):
    """Raised when no handler module exists under the resolved name."""

    def __init__(self, module_name: str):
        self.module_name = module_name
        super().__init__(f"Handler module '{module_name}' could not be found")


class HandlerModuleLoadError(RoutingError):
    """Raised when a handler module exists but fails to load."""

    def __init__(self, module_name: str, original_exception: Optional[BaseException] = None):
        self.module_name = module_name
        self.original_exception = original_exception
        message = f"Handler module '{module_name}' failed to load"
        if original_exception is not None:
            message = f"{message}: {original_exception}"
        super().__init__(message)


class OperationNotFoundError(RoutingError):
    """Raised when an operation id does not resolve to a callable."""

    def __init__(self, module_name: str, operation_id: str):
        self.module_name = module_name
        self.operation_id = operation_id
        super().__init__(
            f"Operation '{operation_id}' is not a callable in handler module '{module_name}'"
        )


class ResponseAlreadySentError(OASRouterError):
    """Raised when a response is sent more than once."""

    pass
