"""
Read-only view over an OpenAPI document.

The router only needs a small slice of the document: the operations keyed by
path template and lowercase method, and for each operation the overrides that
drive handler resolution and the response contracts that drive validation.
"""

import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml
from openapi_spec_validator import validate as validate_openapi_document

from .exceptions import SpecificationError, UnknownOperationError

logger = logging.getLogger(__name__)

CONTROLLER_EXTENSION = "x-router-controller"

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


def _freeze(value: Any) -> Any:
    """Recursively wrap mappings in read-only proxies and lists in tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Convert a frozen structure back into plain dicts and lists."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [thaw(item) for item in value]
    return value


def is_json_media_type(media_type: str) -> bool:
    """Check if a media type carries JSON (``application/json`` or ``*+json``)."""
    base = media_type.split(";")[0].strip().lower()
    return base == "application/json" or base.endswith("+json")


@dataclass(frozen=True)
class ResponseContract:
    """The content declared for one response status code."""

    status_key: str
    content: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    description: Optional[str] = None

    @property
    def has_content(self) -> bool:
        return bool(self.content)

    def json_media_type(self) -> Optional[str]:
        for media_type in self.content:
            if is_json_media_type(media_type):
                return media_type
        return None

    def json_schema(self) -> Optional[Mapping[str, Any]]:
        """Return the schema of the first JSON media type, if any."""
        media_type = self.json_media_type()
        if media_type is None:
            return None
        media = self.content[media_type]
        if not isinstance(media, Mapping):
            return None
        return media.get("schema")


@dataclass(frozen=True)
class OperationDescriptor:
    """The specification's data for a single path + method."""

    path: str
    method: str
    controller: Optional[str] = None
    operation_id: Optional[str] = None
    responses: Mapping[str, ResponseContract] = field(default_factory=lambda: MappingProxyType({}))

    def response_contract(self, status_code: int) -> Optional[Tuple[str, ResponseContract]]:
        """Find the contract for a status code.

        Lookup order is the exact code, then the range key (``2XX``), then
        ``default``.

        Returns:
            Tuple of (matched key, contract), or None when nothing matches
        """
        code = str(int(status_code))
        candidates = [code, f"{code[0]}XX", f"{code[0]}xx", "default"]
        for key in candidates:
            if key in self.responses:
                return key, self.responses[key]
        return None


class Specification:
    """An immutable OpenAPI document keyed by path template and method."""

    def __init__(self, document: Mapping[str, Any]):
        if not isinstance(document, Mapping):
            raise SpecificationError("OpenAPI document must be a mapping")
        paths = document.get("paths")
        if not isinstance(paths, Mapping):
            raise SpecificationError("OpenAPI document is missing a 'paths' object")

        self._document = _freeze(copy.deepcopy(dict(document)))
        self._operations: Dict[Tuple[str, str], OperationDescriptor] = {}
        for path, path_item in self._document["paths"].items():
            if not isinstance(path_item, Mapping):
                continue
            for method, operation in path_item.items():
                if method not in HTTP_METHODS or not isinstance(operation, Mapping):
                    continue
                self._operations[(path, method)] = self._build_descriptor(path, method, operation)

        logger.debug(f"Loaded specification with {len(self._operations)} operations")

    @classmethod
    def from_dict(cls, document: Mapping[str, Any]) -> "Specification":
        return cls(document)

    @classmethod
    def from_file(cls, filename: Union[str, Path], validate: bool = False) -> "Specification":
        """Load a YAML or JSON OpenAPI document.

        Args:
            filename: Path to the document. Files ending in ``.json`` are
                      parsed as JSON, anything else as YAML.
            validate: If True, validate the document with openapi-spec-validator

        Returns:
            The loaded Specification

        Raises:
            SpecificationError: If the file cannot be read, parsed or validated
        """
        path = Path(filename)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise SpecificationError(f"Cannot read OpenAPI document {path}: {e}", e)

        try:
            if path.suffix == ".json":
                document = json.loads(text)
            else:
                document = yaml.safe_load(text)
        except (ValueError, yaml.YAMLError) as e:
            raise SpecificationError(f"Cannot parse OpenAPI document {path}: {e}", e)

        if not isinstance(document, dict):
            raise SpecificationError(f"Expected an OpenAPI mapping in {path}")

        if validate:
            try:
                validate_openapi_document(document)
            except Exception as e:
                raise SpecificationError(f"Invalid OpenAPI document {path}: {e}", e)

        logger.info(f"Loaded OpenAPI document from {path}")
        return cls(document)

    @staticmethod
    def _build_descriptor(path: str, method: str, operation: Mapping[str, Any]) -> OperationDescriptor:
        responses: Dict[str, ResponseContract] = {}
        for key, section in (operation.get("responses") or {}).items():
            if not isinstance(section, Mapping):
                continue
            content = section.get("content") or MappingProxyType({})
            responses[str(key)] = ResponseContract(
                status_key=str(key),
                content=content,
                description=section.get("description"),
            )

        controller = operation.get(CONTROLLER_EXTENSION)
        operation_id = operation.get("operationId")
        return OperationDescriptor(
            path=path,
            method=method,
            controller=str(controller) if controller is not None else None,
            operation_id=str(operation_id) if operation_id is not None else None,
            responses=MappingProxyType(responses),
        )

    @property
    def document(self) -> Mapping[str, Any]:
        """The full read-only document."""
        return self._document

    @property
    def version(self) -> str:
        return str(self._document.get("openapi", ""))

    @property
    def components(self) -> Mapping[str, Any]:
        return self._document.get("components") or MappingProxyType({})

    def paths(self) -> List[str]:
        return list(self._document["paths"].keys())

    def methods(self, path: str) -> List[str]:
        """Get the lowercase methods declared for a path template."""
        return [method for (p, method) in self._operations if p == path]

    def has_operation(self, path: str, method: str) -> bool:
        return (path, method.lower()) in self._operations

    def operation(self, path: str, method: str) -> OperationDescriptor:
        """Get the descriptor for a path template and method.

        Raises:
            UnknownOperationError: If the path or method is not declared
        """
        try:
            return self._operations[(path, method.lower())]
        except KeyError:
            raise UnknownOperationError(path, method)

    def __repr__(self) -> str:
        return f"Specification(openapi={self.version!r}, operations={len(self._operations)})"
