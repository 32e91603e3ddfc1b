"""
Operation resolution: which handler module and which operation serve a request.
"""

import logging
from typing import NamedTuple

from .registry import HandlerRegistry
from .specification import Specification

logger = logging.getLogger(__name__)

CONTROLLER_SUFFIX = "Controller"
DEFAULT_CONTROLLER = "Default"

METHOD_VERBS = {
    "GET": "list",
    "POST": "create",
    "PUT": "update",
}
FALLBACK_VERB = "delete"


class ResolvedOperation(NamedTuple):
    module_name: str
    operation_id: str


def name_of_path(path: str) -> str:
    """Strip the leading separator from a path: ``/pets`` -> ``pets``."""
    return path[1:] if path.startswith("/") else path


def conventional_module_name(path: str) -> str:
    """Handler module name derived from a path: ``/pets`` -> ``petsController``."""
    return name_of_path(path) + CONTROLLER_SUFFIX


def verb_for_method(method: str) -> str:
    """Map an HTTP method to the verb used in synthesized operation ids."""
    return METHOD_VERBS.get(method.upper(), FALLBACK_VERB)


def synthesize_operation_id(path: str, method: str) -> str:
    """Build an operation id from the method and the requested path.

    ``GET /pets`` -> ``listpets``, ``DELETE /pets`` -> ``deletepets``.
    """
    return verb_for_method(method) + name_of_path(path)


class OperationResolver:
    """Maps a specification path + method to a handler module and operation id.

    Module name precedence: the ``x-router-controller`` override, then the
    conventional ``<resource>Controller`` module if the registry has it, then
    the ``Default`` module. Operation id precedence: the declared
    ``operationId``, then an id synthesized from the method and path.
    """

    def __init__(self, registry: HandlerRegistry, default_controller: str = DEFAULT_CONTROLLER):
        self.registry = registry
        self.default_controller = default_controller

    def resolve_module_name(self, spec: Specification, path: str, method: str) -> str:
        descriptor = spec.operation(path, method)
        if descriptor.controller is not None:
            logger.info(f"Using controller override '{descriptor.controller}' for {method.upper()} {path}")
            return descriptor.controller

        conventional = conventional_module_name(path)
        if self.registry.exists(conventional):
            logger.info(f"Using conventional controller '{conventional}' for {method.upper()} {path}")
            return conventional

        logger.info(f"Using default controller '{self.default_controller}' for {method.upper()} {path}")
        return self.default_controller

    def resolve_operation_id(self, spec: Specification, path: str, method: str) -> str:
        descriptor = spec.operation(path, method)
        if descriptor.operation_id is not None:
            return descriptor.operation_id
        operation_id = synthesize_operation_id(path, method)
        logger.info(f"No operationId declared for {method.upper()} {path}, using '{operation_id}'")
        return operation_id

    def resolve(self, spec: Specification, path: str, method: str) -> ResolvedOperation:
        """Resolve a path template and method.

        Args:
            spec: The specification the path was matched against
            path: The normalized path template (e.g. ``/pets/{petId}``)
            method: HTTP method, any case

        Returns:
            ResolvedOperation with the module name and operation id

        Raises:
            UnknownOperationError: If the pair is absent from the specification
            HandlerModuleLoadError: If the conventional module is present but broken
        """
        resolved = ResolvedOperation(
            module_name=self.resolve_module_name(spec, path, method),
            operation_id=self.resolve_operation_id(spec, path, method),
        )
        logger.debug(f"Resolved {method.upper()} {path} to {resolved.module_name}.{resolved.operation_id}")
        return resolved


def resolve(spec: Specification, path: str, method: str, registry: HandlerRegistry) -> ResolvedOperation:
    """Functional shortcut for ``OperationResolver(registry).resolve(...)``."""
    return OperationResolver(registry).resolve(spec, path, method)
