"""
SiamFlow Error Handling Module

Structured error codes for the few places the engine raises: malformed input
data and invalid configuration. Analytical functions never raise on thin or
degenerate history; they fall back to neutral values instead.
"""

import logging
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# =============================================================================
# Error Code Taxonomy
# =============================================================================


class ErrorCategory(Enum):
    """Top-level error categories."""

    DATA = "DATA"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    SYSTEM = "SYSTEM"


class ErrorSeverity(Enum):
    """Error severity levels for monitoring and alerting."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass(frozen=True)
class ErrorCode:
    """Structured error code with metadata."""

    code: str
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    user_message: str
    recovery_hint: str = ""

    def __str__(self) -> str:
        return f"{self.category.value}_{self.code}"


class ErrorCodes:
    """Central registry of all SiamFlow error codes."""

    # Data Errors (2xxx)
    DATA_MISSING_CATEGORY = ErrorCode(
        code="2001",
        category=ErrorCategory.DATA,
        severity=ErrorSeverity.WARNING,
        message="Investor category missing from daily flow snapshot",
        user_message="Flow data is incomplete for this day.",
        recovery_hint="Supply foreign, institution, retail and prop flows for every day.",
    )

    DATA_MISSING_COLUMNS = ErrorCode(
        code="2002",
        category=ErrorCategory.DATA,
        severity=ErrorSeverity.ERROR,
        message="Flow frame is missing required columns",
        user_message="The flow table does not have the expected columns.",
        recovery_hint="Expected <category>_buy, <category>_sell and <category>_net columns.",
    )

    DATA_EMPTY_SERIES = ErrorCode(
        code="2003",
        category=ErrorCategory.DATA,
        severity=ErrorSeverity.WARNING,
        message="No daily flow data supplied",
        user_message="There is no flow data to analyze.",
        recovery_hint="Provide at least one trading day.",
    )

    # Validation Errors (4xxx)
    VALIDATION_INVALID_FLOW = ErrorCode(
        code="4001",
        category=ErrorCategory.VALIDATION,
        severity=ErrorSeverity.WARNING,
        message="Invalid flow record",
        user_message="A flow value is invalid.",
        recovery_hint="Buy and sell values must be finite and non-negative.",
    )

    VALIDATION_INVALID_BREADTH = ErrorCode(
        code="4002",
        category=ErrorCategory.VALIDATION,
        severity=ErrorSeverity.WARNING,
        message="Invalid market breadth counts",
        user_message="Market breadth counts are invalid.",
        recovery_hint="Counts must be non-negative integers.",
    )

    # Configuration Errors (6xxx)
    CONFIG_NOT_FOUND = ErrorCode(
        code="6001",
        category=ErrorCategory.CONFIG,
        severity=ErrorSeverity.ERROR,
        message="Configuration file not found",
        user_message="The engine configuration file could not be found.",
        recovery_hint="Check the path or unset SIAMFLOW_CONFIG to use defaults.",
    )

    CONFIG_INVALID = ErrorCode(
        code="6002",
        category=ErrorCategory.CONFIG,
        severity=ErrorSeverity.ERROR,
        message="Invalid engine configuration",
        user_message="The engine configuration is invalid.",
        recovery_hint="Fix the reported settings; omitted settings use defaults.",
    )

    # System Errors (9xxx)
    SYSTEM_INTERNAL_ERROR = ErrorCode(
        code="9001",
        category=ErrorCategory.SYSTEM,
        severity=ErrorSeverity.CRITICAL,
        message="Internal engine error",
        user_message="An unexpected error occurred.",
    )


# =============================================================================
# Base Exception Classes
# =============================================================================


class SiamFlowError(Exception):
    """
    Base exception for all SiamFlow errors.

    Carries a registered ErrorCode plus optional detail, context and the
    wrapped original exception.
    """

    def __init__(
        self,
        error_code: ErrorCode,
        detail: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code
        self.detail = detail
        self.original_error = original_error
        self.context = context or {}
        self.debug_info: Dict[str, Any] = {}
        self.timestamp = datetime.now(timezone.utc)

        if original_error:
            self.debug_info["original_traceback"] = traceback.format_exception(
                type(original_error), original_error, original_error.__traceback__
            )

        super().__init__(self.technical_message)

    @property
    def code(self) -> str:
        """Full error code string."""
        return str(self.error_code)

    @property
    def category(self) -> ErrorCategory:
        return self.error_code.category

    @property
    def severity(self) -> ErrorSeverity:
        return self.error_code.severity

    @property
    def user_message(self) -> str:
        msg = self.error_code.user_message
        if self.detail:
            msg = f"{msg} ({self.detail})"
        return msg

    @property
    def technical_message(self) -> str:
        msg = f"[{self.code}] {self.error_code.message}"
        if self.detail:
            msg = f"{msg}: {self.detail}"
        return msg

    @property
    def recovery_hint(self) -> str:
        return self.error_code.recovery_hint

    def to_dict(self, include_debug: bool = False) -> Dict[str, Any]:
        """
        Convert error to dictionary.

        Args:
            include_debug: Include context and traceback information
        """
        result = {
            "code": self.code,
            "category": self.category.value,
            "message": self.user_message,
            "recovery_hint": self.recovery_hint,
            "timestamp": self.timestamp.isoformat(),
        }

        if include_debug:
            result["debug"] = {
                "technical_message": self.technical_message,
                "context": self.context,
                "debug_info": self.debug_info,
            }

        return result

    def log(self) -> None:
        """Log the error with appropriate severity."""
        log_method = getattr(logger, self.severity.name.lower(), logger.error)
        log_method(
            self.technical_message,
            extra={"ctx_error_code": self.code, "ctx_context": self.context},
        )


class DataError(SiamFlowError):
    """Input data is structurally unusable."""

    def __init__(
        self,
        error_code: ErrorCode = ErrorCodes.DATA_MISSING_CATEGORY,
        **kwargs,
    ):
        super().__init__(error_code, **kwargs)


class ConfigurationError(SiamFlowError):
    """Engine configuration could not be loaded or validated."""

    def __init__(
        self,
        error_code: ErrorCode = ErrorCodes.CONFIG_INVALID,
        **kwargs,
    ):
        super().__init__(error_code, **kwargs)


def wrap_exception(
    exception: Exception,
    default_code: ErrorCode = ErrorCodes.SYSTEM_INTERNAL_ERROR,
) -> SiamFlowError:
    """
    Wrap a generic exception in a SiamFlowError.

    Maps common exception types to appropriate error codes.
    """
    if isinstance(exception, SiamFlowError):
        return exception

    from siamflow.validation.errors import BreadthValidationError, FlowValidationError

    exception_mapping = {
        FlowValidationError: ErrorCodes.VALIDATION_INVALID_FLOW,
        BreadthValidationError: ErrorCodes.VALIDATION_INVALID_BREADTH,
        KeyError: ErrorCodes.DATA_MISSING_CATEGORY,
        ValueError: ErrorCodes.VALIDATION_INVALID_FLOW,
        FileNotFoundError: ErrorCodes.CONFIG_NOT_FOUND,
    }

    for exc_type, error_code in exception_mapping.items():
        if isinstance(exception, exc_type):
            return SiamFlowError(
                error_code,
                detail=str(exception),
                original_error=exception,
            )

    return SiamFlowError(
        default_code,
        detail=str(exception),
        original_error=exception,
    )


__all__ = [
    "ErrorCategory",
    "ErrorSeverity",
    "ErrorCode",
    "ErrorCodes",
    "SiamFlowError",
    "DataError",
    "ConfigurationError",
    "wrap_exception",
]
