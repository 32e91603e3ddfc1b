"""
Handler registries: where operation handlers come from.

A handler module is any named object exposing operations as attributes or
mapping keys. Operation ids may be dotted (``group.action``); lookup descends
through each segment before returning the final callable, which is invoked
with ``(request, response, next)``.
"""

import importlib
import importlib.util
import logging
import os
import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping
from types import ModuleType
from typing import Any, Callable, Dict, List, Optional

from .exceptions import (
    HandlerModuleLoadError,
    HandlerModuleNotFoundError,
    OperationNotFoundError,
)

logger = logging.getLogger(__name__)

NAMESPACE_SEPARATOR = "."
PATH_SEPARATOR = "/"

Operation = Callable[..., Any]


class HandlerModule:
    """A loaded handler module and a cache of the operations resolved from it."""

    def __init__(self, name: str, target: Any):
        self.name = name
        self.target = target
        self._operations: Dict[str, Operation] = {}
        self._lock = threading.Lock()

    def operation(self, operation_id: str) -> Operation:
        """Resolve an operation id to a callable.

        Args:
            operation_id: Flat or dotted operation identifier

        Returns:
            The handler callable

        Raises:
            OperationNotFoundError: If the id does not resolve to a callable
        """
        cached = self._operations.get(operation_id)
        if cached is not None:
            return cached

        func = self._lookup(operation_id)
        with self._lock:
            self._operations[operation_id] = func
        return func

    def _lookup(self, operation_id: str) -> Operation:
        # A registry may store dotted ids as flat keys
        if isinstance(self.target, Mapping) and operation_id in self.target:
            candidate = self.target[operation_id]
            if callable(candidate):
                return candidate

        context = self.target
        for segment in operation_id.split(NAMESPACE_SEPARATOR):
            context = _child(context, segment)
            if context is None:
                raise OperationNotFoundError(self.name, operation_id)

        if not callable(context):
            raise OperationNotFoundError(self.name, operation_id)
        return context

    def __repr__(self) -> str:
        return f"HandlerModule(name={self.name!r})"


def _child(context: Any, segment: str) -> Any:
    if not segment:
        return None
    if isinstance(context, Mapping):
        return context.get(segment)
    if segment.startswith("_"):
        return None
    return getattr(context, segment, None)


class OperationOverlay(Mapping):
    """Decorated operations layered over a registered module object.

    Keys added with ``@registry.operation`` win; anything else is looked up
    as a public attribute of the wrapped object.
    """

    def __init__(self, fallback: Any):
        self.fallback = fallback
        self.operations: Dict[str, Any] = {}

    def __setitem__(self, key: str, value: Any) -> None:
        self.operations[key] = value

    def __getitem__(self, key: str) -> Any:
        if key in self.operations:
            return self.operations[key]
        if not key or key.startswith("_") or not hasattr(self.fallback, key):
            raise KeyError(key)
        return getattr(self.fallback, key)

    def __iter__(self):
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)


class HandlerRegistry(ABC):
    """Abstract source of handler modules, looked up by name."""

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Check if a module with this name can be loaded.

        Raises:
            HandlerModuleLoadError: If the module is present but broken
        """
        pass

    @abstractmethod
    def load(self, name: str) -> HandlerModule:
        """Load a module by name.

        Raises:
            HandlerModuleNotFoundError: If no module has this name
            HandlerModuleLoadError: If the module is present but broken
        """
        pass


class DictHandlerRegistry(HandlerRegistry):
    """Registry populated explicitly at startup.

    Example::

        registry = DictHandlerRegistry()

        @registry.operation("petsController")
        def listPets(request, response, next):
            response.send([])

        registry.register("Default", default_controller_module)
    """

    def __init__(self, modules: Optional[Dict[str, Any]] = None):
        self._modules: Dict[str, HandlerModule] = {}
        self._lock = threading.Lock()
        for name, target in (modules or {}).items():
            self.register(name, target)

    def register(self, name: str, target: Any) -> HandlerModule:
        """Register an object, module or mapping as a handler module."""
        module = HandlerModule(name, target)
        with self._lock:
            self._modules[name] = module
        logger.debug(f"Registered handler module '{name}'")
        return module

    def operation(self, module_name: str, operation_id: Optional[str] = None):
        """Decorator to register a function as an operation of a module.

        Args:
            module_name: The handler module the operation belongs to
            operation_id: Identifier to register under. Defaults to the
                          function name. Dotted ids are stored as given.
        """

        def decorator(func: Operation):
            op_id = operation_id or func.__name__
            with self._lock:
                module = self._modules.get(module_name)
                target = module.target if module is not None else {}
                if module is None or not isinstance(target, (dict, OperationOverlay)):
                    if isinstance(target, Mapping):
                        target = dict(target)
                    else:
                        target = OperationOverlay(target)
                    module = HandlerModule(module_name, target)
                    self._modules[module_name] = module
                target[op_id] = func
            return func

        return decorator

    def exists(self, name: str) -> bool:
        return name in self._modules

    def load(self, name: str) -> HandlerModule:
        try:
            return self._modules[name]
        except KeyError:
            raise HandlerModuleNotFoundError(name)


class ModuleHandlerRegistry(HandlerRegistry):
    """Loads Python modules by name from a package or a directory.

    If ``root`` is an existing directory, ``<root>/<name>.py`` is loaded from
    disk. Otherwise ``root`` is treated as a dotted package name and
    ``<root>.<name>`` is imported. Names built from multi-segment paths
    (``pets/mineController``) load nested modules: ``<root>/pets/mineController.py``
    or ``<root>.pets.mineController``. Loaded modules are cached by name.
    """

    def __init__(self, root: str):
        self.root = root
        self.is_directory = os.path.isdir(root)
        self._cache: Dict[str, HandlerModule] = {}
        self._lock = threading.Lock()

    def _segments(self, name: str) -> List[str]:
        return name.split(PATH_SEPARATOR)

    def _module_file(self, name: str) -> str:
        return os.path.join(self.root, *self._segments(name)) + ".py"

    def _qualified_name(self, name: str) -> str:
        return f"{self.root}.{NAMESPACE_SEPARATOR.join(self._segments(name))}"

    def _is_valid_name(self, name: str) -> bool:
        # Nested names come from multi-segment paths: pets/mineController
        segments = self._segments(name)
        if not all(segments):
            return False
        if any("{" in segment or "}" in segment for segment in segments):
            return False
        if self.is_directory:
            return all(segment not in (".", "..") for segment in segments)
        return all(
            part.isidentifier()
            for segment in segments
            for part in segment.split(NAMESPACE_SEPARATOR)
        )

    def exists(self, name: str) -> bool:
        if name in self._cache:
            return True
        if not self._is_valid_name(name):
            return False

        if self.is_directory:
            return os.path.isfile(self._module_file(name))

        qualified = self._qualified_name(name)
        try:
            return importlib.util.find_spec(qualified) is not None
        except ModuleNotFoundError:
            return False
        except Exception as e:
            raise HandlerModuleLoadError(name, e)

    def load(self, name: str) -> HandlerModule:
        cached = self._cache.get(name)
        if cached is not None:
            return cached

        with self._lock:
            cached = self._cache.get(name)
            if cached is not None:
                return cached
            if not self.exists(name):
                raise HandlerModuleNotFoundError(name)

            module = HandlerModule(name, self._import(name))
            self._cache[name] = module

        logger.info(f"Loaded handler module '{name}' from {self.root}")
        return module

    def _import(self, name: str) -> ModuleType:
        try:
            if self.is_directory:
                spec = importlib.util.spec_from_file_location(
                    f"oasrouter_handlers.{name.replace(PATH_SEPARATOR, NAMESPACE_SEPARATOR)}",
                    self._module_file(name),
                )
                if spec is None or spec.loader is None:
                    raise HandlerModuleNotFoundError(name)
                module = importlib.util.module_from_spec(spec)
                spec.loader.exec_module(module)
                return module
            return importlib.import_module(self._qualified_name(name))
        except HandlerModuleNotFoundError:
            raise
        except Exception as e:
            raise HandlerModuleLoadError(name, e)
