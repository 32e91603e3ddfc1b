"""
Response contract validation against the schemas of an OpenAPI document.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from openapi_schema_validator import (
    OAS30Validator,
    OAS31Validator,
    oas30_format_checker,
    oas31_format_checker,
)

from .specification import Specification, thaw

logger = logging.getLogger(__name__)


class ValidationStatus(Enum):
    """Outcome of checking one response against its contract."""

    VALID = "valid"
    INVALID = "invalid"
    UNSPECIFIED_STATUS = "unspecified_status"
    SKIPPED = "skipped"


def format_errors(messages: Iterable[str]) -> str:
    """Join violation messages with '. ' separators."""
    return ". ".join(message for message in messages if message)


@dataclass(frozen=True)
class ValidationOutcome:
    status: ValidationStatus
    status_code: int
    contract_key: Optional[str] = None
    errors: Tuple[str, ...] = ()

    @property
    def is_violation(self) -> bool:
        return self.status in (ValidationStatus.INVALID, ValidationStatus.UNSPECIFIED_STATUS)

    @property
    def message(self) -> str:
        return format_errors(self.errors)


class ResponseValidator:
    """Validates response payloads against the schema declared for their status code.

    A validator holds no per-request state and can be shared by every request
    of a router. The OpenAPI dialect (3.0 or 3.1) is picked from the
    document's ``openapi`` field.
    """

    def __init__(self, check_formats: bool = True):
        self.check_formats = check_formats

    def _validator_for(self, spec: Specification, schema: Dict[str, Any]):
        if spec.version.startswith("3.1"):
            cls, format_checker = OAS31Validator, oas31_format_checker
        else:
            cls, format_checker = OAS30Validator, oas30_format_checker

        # Local references ("#/components/...") resolve against the schema root
        components = spec.components
        if components and "components" not in schema:
            schema = dict(schema)
            schema["components"] = thaw(components)

        if self.check_formats:
            return cls(schema, format_checker=format_checker)
        return cls(schema)

    def schema_errors(self, spec: Specification, schema: Dict[str, Any], instance: Any) -> List[str]:
        """Validate an instance and return one message per mismatch."""
        validator = self._validator_for(spec, schema)
        messages = []
        for error in sorted(validator.iter_errors(instance), key=lambda e: e.json_path):
            if error.json_path == "$":
                messages.append(error.message)
            else:
                messages.append(f"{error.json_path}: {error.message}")
        return messages

    def validate(
        self,
        spec: Specification,
        method: str,
        path: str,
        status_code: int,
        payload: Optional[str],
    ) -> ValidationOutcome:
        """Check a serialized payload against the contract for its status code.

        Args:
            spec: The specification the request was matched against
            method: HTTP method of the request
            path: The normalized path template
            status_code: Status code the response is sent with
            payload: The response payload as JSON text

        Returns:
            ValidationOutcome describing what was checked and what failed
        """
        logger.info(f"Checking response {status_code} for {method.upper()} {path}")
        descriptor = spec.operation(path, method)

        match = descriptor.response_contract(status_code)
        if match is None:
            return ValidationOutcome(ValidationStatus.UNSPECIFIED_STATUS, status_code)

        contract_key, contract = match
        if not contract.has_content:
            logger.info(f"Response {contract_key} declares no content, nothing to validate")
            return ValidationOutcome(ValidationStatus.SKIPPED, status_code, contract_key)

        schema = contract.json_schema()
        if schema is None:
            logger.info(f"Response {contract_key} declares no JSON schema, nothing to validate")
            return ValidationOutcome(ValidationStatus.SKIPPED, status_code, contract_key)

        try:
            data = json.loads(payload) if payload is not None else None
        except ValueError as e:
            return ValidationOutcome(
                ValidationStatus.INVALID,
                status_code,
                contract_key,
                (f"Response payload is not valid JSON: {e}",),
            )

        logger.info(f"Validating response against schema of {contract_key}")
        errors = self.schema_errors(spec, thaw(schema), data)
        if errors:
            return ValidationOutcome(ValidationStatus.INVALID, status_code, contract_key, tuple(errors))
        return ValidationOutcome(ValidationStatus.VALID, status_code, contract_key)
