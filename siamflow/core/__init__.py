# SiamFlow Core Module

from siamflow.core.errors import (
    ConfigurationError,
    DataError,
    ErrorCategory,
    ErrorCode,
    ErrorCodes,
    ErrorSeverity,
    SiamFlowError,
    wrap_exception,
)

__all__ = [
    "ConfigurationError",
    "DataError",
    "ErrorCategory",
    "ErrorCode",
    "ErrorCodes",
    "ErrorSeverity",
    "SiamFlowError",
    "wrap_exception",
]
