"""
Validation Errors Module

Exception hierarchy for malformed flow and breadth input.
"""

from typing import Any, Dict, List, Optional


class ValidationError(Exception):
    """Base validation error for all SiamFlow input failures."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        code: str = "VALIDATION_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.field = field
        self.value = value
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "field": self.field,
            "value": self._safe_value_repr(),
            "details": self.details,
        }

    def _safe_value_repr(self) -> Optional[str]:
        if self.value is None:
            return None
        if isinstance(self.value, (str, int, float, bool)):
            value_str = str(self.value)
            if len(value_str) > 100:
                return value_str[:100] + "..."
            return value_str
        return f"<{type(self.value).__name__}>"


class FlowValidationError(ValidationError):
    """Error raised when a daily flow record fails validation."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        index: Optional[int] = None,
        date: Optional[str] = None,
        issues: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(
            message=message,
            field=field,
            value=value,
            code="FLOW_VALIDATION_ERROR",
            details={
                "index": index,
                "date": date,
                "issues": issues or [],
            },
        )
        self.index = index
        self.date = date
        self.issues = issues or []


class BreadthValidationError(ValidationError):
    """Error raised when market overview counts fail validation."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        issues: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(
            message=message,
            field=field,
            value=value,
            code="BREADTH_VALIDATION_ERROR",
            details={"issues": issues or []},
        )
        self.issues = issues or []


class RangeValidationError(ValidationError):
    """Error raised when a value is outside expected range."""

    def __init__(
        self,
        field: str,
        value: Any,
        min_value: Optional[Any] = None,
        max_value: Optional[Any] = None,
    ):
        bounds = []
        if min_value is not None:
            bounds.append(f">= {min_value}")
        if max_value is not None:
            bounds.append(f"<= {max_value}")

        super().__init__(
            message=f"Value {value} for field '{field}' is out of range. Expected: {' and '.join(bounds)}",
            field=field,
            value=value,
            code="RANGE_VALIDATION_ERROR",
            details={"min_value": min_value, "max_value": max_value},
        )
        self.min_value = min_value
        self.max_value = max_value
