"""
Error response models for the OpenAPI router.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Standard error response model.

    This is the body the application error boundary sends when a request
    fails: routing errors, handler exceptions and unmatched requests.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "Operation 'listPets' is not a callable in handler module 'petsController'",
                "details": [{"type": "OperationNotFoundError"}],
                "request_id": "req-123456",
            }
        }
    )

    error: str = Field(
        ...,
        description="Human-readable error message describing what went wrong"
    )

    details: Optional[List[Dict[str, Any]]] = Field(
        None,
        description="Additional structured information about the error"
    )

    request_id: Optional[str] = Field(
        None,
        description="Unique identifier for this specific request"
    )

    def model_dump(self, **kwargs):
        """Override to drop unset optional fields by default."""
        kwargs.setdefault('exclude_none', True)
        return super().model_dump(**kwargs)

    @classmethod
    def from_exception(
        cls,
        error: BaseException,
        message: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an exception.

        Args:
            error: The exception that ended the request
            message: Custom error message (defaults to str(error))
            request_id: Optional request identifier

        Returns:
            ErrorResponse instance naming the exception type
        """
        return cls(
            error=message or str(error) or type(error).__name__,
            details=[{"type": type(error).__name__}],
            request_id=request_id,
        )
