"""
Per-request response wrapper that checks outgoing payloads against the contract.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .exceptions import ResponseAlreadySentError
from .models import BaseResponse
from .specification import Specification
from .validation import ResponseValidator, ValidationOutcome, ValidationStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContractViolation:
    """A response that did not match the contract of its operation."""

    method: str
    path: str
    outcome: ValidationOutcome
    payload: Optional[str]

    @property
    def status_code(self) -> int:
        return self.outcome.status_code

    @property
    def message(self) -> str:
        return self.outcome.message


ViolationCallback = Callable[[ContractViolation], None]


def serialize_payload(payload: Any) -> Optional[str]:
    """Produce the JSON text a payload is validated as.

    Every value is JSON-serialized as the handler passed it, so a ``str``
    payload validates as a JSON string. Bytes are decoded as UTF-8 first and
    pydantic models are dumped before serialization.
    """
    if payload is None:
        return None
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    return json.dumps(_dump_models(payload))


def _dump_models(data: Any) -> Any:
    if hasattr(data, "model_dump"):
        return data.model_dump(mode="json")
    if isinstance(data, (list, tuple)):
        return [_dump_models(item) for item in data]
    if isinstance(data, dict):
        return {key: _dump_models(value) for key, value in data.items()}
    return data


class ResponseInterceptor(BaseResponse):
    """Wraps the real response for the lifetime of one request.

    Handlers see the same interface as the real response. The first ``send``
    forwards the original payload to the wrapped response and then validates
    it; violations are reported but never change what the client receives.
    """

    def __init__(
        self,
        response: BaseResponse,
        spec: Specification,
        method: str,
        path: str,
        validator: ResponseValidator,
        on_violation: Optional[ViolationCallback] = None,
    ):
        self.wrapped = response
        self.spec = spec
        self.method = method.lower()
        self.path = path
        self.validator = validator
        self.on_violation = on_violation
        self.outcome: Optional[ValidationOutcome] = None
        self._fired = False

    @property
    def status_code(self) -> int:
        return self.wrapped.status_code

    @status_code.setter
    def status_code(self, value: int) -> None:
        self.wrapped.status_code = value

    @property
    def headers(self) -> Dict[str, str]:
        return self.wrapped.headers

    @property
    def sent(self) -> bool:
        return self._fired or self.wrapped.sent

    def __getattr__(self, name: str) -> Any:
        # Anything outside the response interface goes to the real response
        if name == "wrapped":
            raise AttributeError(name)
        return getattr(self.wrapped, name)

    def send(self, payload: Any = None) -> None:
        if self._fired:
            raise ResponseAlreadySentError(
                f"Response for {self.method.upper()} {self.path} already sent"
            )
        self._fired = True

        status_code = self.wrapped.status_code
        try:
            text = serialize_payload(payload)
        except (TypeError, ValueError):
            # Not JSON serializable; fails validation wherever a schema exists
            text = repr(payload)

        self.wrapped.send(payload)

        try:
            self.outcome = self.validator.validate(self.spec, self.method, self.path, status_code, text)
        except Exception as e:
            logger.exception(
                f"Response validation failed unexpectedly for {self.method.upper()} {self.path}: {e}"
            )
            return

        self._report(self.outcome, text)

    def _report(self, outcome: ValidationOutcome, text: Optional[str]) -> None:
        if outcome.status == ValidationStatus.UNSPECIFIED_STATUS:
            logger.warning(
                f"Wrong response code {outcome.status_code} for {self.method.upper()} {self.path}"
            )
        elif outcome.status == ValidationStatus.INVALID:
            logger.warning(f"Wrong data in the response. {outcome.message}")
            logger.info(f"Rejected payload: {text}")
        else:
            return

        if self.on_violation is not None:
            try:
                self.on_violation(ContractViolation(self.method, self.path, outcome, text))
            except Exception as e:
                logger.warning(f"Contract violation callback failed: {e}")
