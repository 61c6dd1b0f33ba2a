"""
Custom exceptions for the Fuel Planner.

Each exception carries:
- A descriptive message
- An error code
- An exit/status code mapping
- Optional details for debugging

Errors raised while talking to Intervals.icu live in
``fuel_planner.integrations.base``.
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for consistent error reporting."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    PLAN_GENERATION_ERROR = "PLAN_GENERATION_ERROR"
    ANALYSIS_ERROR = "ANALYSIS_ERROR"


class FuelPlannerError(Exception):
    """
    Base exception for all Fuel Planner errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        status_code: HTTP-style status code
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for display or JSON output."""
        result: Dict[str, Any] = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


class ValidationError(FuelPlannerError, ValueError):
    """Raised when plan input validation fails."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=error_details,
        )


class ConfigurationError(FuelPlannerError):
    """Raised when a required setting (e.g. the API key) is missing."""

    def __init__(self, setting: str, details: Optional[Dict[str, Any]] = None) -> None:
        error_details = details or {}
        error_details["setting"] = setting
        super().__init__(
            message=f"Missing configuration: {setting}",
            code=ErrorCode.CONFIGURATION_ERROR,
            status_code=500,
            details=error_details,
        )


class PlanGenerationError(FuelPlannerError):
    """Raised when a valid configuration still yields no usable plan."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.PLAN_GENERATION_ERROR,
            status_code=422,
            details=details,
        )


class AnalysisError(FuelPlannerError):
    """Raised when glucose history could not be analyzed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.ANALYSIS_ERROR,
            status_code=502,
            details=details,
        )
