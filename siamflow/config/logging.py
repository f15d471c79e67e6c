"""
SiamFlow Logging Configuration

Structured logging with JSON output, analysis-run correlation, timing of
engine calls and configurable log levels.
"""

import json
import logging
import socket
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar

# Correlates every log line emitted during one analysis run
run_id_var: ContextVar[Optional[str]] = ContextVar("run_id", default=None)


# =============================================================================
# Log Level Strategy
# =============================================================================
#
# DEBUG   - Per-category scores, trends and detected patterns
# INFO    - Analyzer initialization, analysis completion, config loading
# WARNING - Degraded input (empty windows, misaligned series, no trades)
# ERROR   - Invalid input or configuration raised to the caller
# =============================================================================


class StructuredFormatter(logging.Formatter):
    """
    JSON structured log formatter.

    One JSON object per line, suitable for log aggregation.
    """

    def __init__(self, service_name: str = "siamflow", environment: str = "development"):
        super().__init__()
        self.service_name = service_name
        self.environment = environment
        self.hostname = socket.gethostname()

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "environment": self.environment,
            "hostname": self.hostname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "run_id": run_id_var.get(),
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        # Fields passed as extra={"ctx_<name>": ...}
        for key, value in record.__dict__.items():
            if key.startswith("ctx_"):
                log_data[key[4:]] = value

        log_data = {k: v for k, v in log_data.items() if v is not None}

        return json.dumps(log_data, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Human-readable colored formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        run_id = run_id_var.get()
        run_str = f"[{run_id[:8]}] " if run_id else ""

        formatted = (
            f"{timestamp} {color}{record.levelname:8}{self.RESET} "
            f"{run_str}{record.name} - {record.getMessage()}"
        )

        extras = [f"{k[4:]}={v}" for k, v in record.__dict__.items() if k.startswith("ctx_")]
        if extras:
            formatted += f" | {', '.join(extras)}"

        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"

        return formatted


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    service_name: str = "siamflow",
    environment: str = "development",
    log_file: Optional[str] = None,
) -> None:
    """
    Configure logging for applications embedding the engine.

    The library itself never calls this; it only emits through module
    loggers.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON structured logging
        service_name: Service name for structured logs
        environment: Environment name
        log_file: Optional file path, always written as JSON
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    if json_format:
        formatter: logging.Formatter = StructuredFormatter(service_name, environment)
    else:
        formatter = ConsoleFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter(service_name, environment))
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


# =============================================================================
# Run Correlation
# =============================================================================


def set_run_context(run_id: Optional[str] = None) -> str:
    """
    Set the analysis run ID for log correlation.

    Returns:
        The run ID in use (generated when not given)
    """
    rid = run_id or str(uuid.uuid4())
    run_id_var.set(rid)
    return rid


def clear_run_context() -> None:
    run_id_var.set(None)


def get_run_id() -> Optional[str]:
    return run_id_var.get()


# =============================================================================
# Performance Logging Decorator
# =============================================================================

T = TypeVar("T")


def log_performance(
    threshold_ms: float = 250.0,
    log_args: bool = False,
    on_complete: Optional[Callable[..., None]] = None,
) -> Callable:
    """
    Decorator to log the duration of an engine call.

    Calls slower than threshold_ms are logged at WARNING, others at DEBUG.
    Exceptions are logged and re-raised. When on_complete is given it is
    called as on_complete(result, duration_ms, *args, **kwargs) after a
    successful call, with the same duration that was logged.

    Example:
        @log_performance(threshold_ms=100)
        def analyze(self, series):
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        logger = logging.getLogger(func.__module__)

        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            start_time = time.perf_counter()
            extra: Dict[str, Any] = {"ctx_function": func.__qualname__}

            if log_args:
                extra["ctx_args"] = str(args)[:200]
                extra["ctx_kwargs"] = str(kwargs)[:200]

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                extra["ctx_duration_ms"] = round(duration_ms, 2)
                extra["ctx_error_type"] = type(e).__name__
                logger.error(f"Operation failed: {func.__qualname__} - {e}", extra=extra)
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            extra["ctx_duration_ms"] = round(duration_ms, 2)

            if duration_ms > threshold_ms:
                logger.warning(
                    f"Slow operation: {func.__qualname__} took {duration_ms:.2f}ms", extra=extra
                )
            else:
                logger.debug(
                    f"Operation completed: {func.__qualname__} in {duration_ms:.2f}ms", extra=extra
                )

            if on_complete is not None:
                on_complete(result, duration_ms, *args, **kwargs)
            return result

        return wrapper

    return decorator


# =============================================================================
# Structured Log Helpers
# =============================================================================


class LogContext:
    """Context manager adding structured fields to every record in a block."""

    def __init__(self, logger: logging.Logger, **fields: Any):
        self.logger = logger
        self.fields = {f"ctx_{k}": v for k, v in fields.items()}
        self._old_factory = None

    def __enter__(self):
        old_factory = logging.getLogRecordFactory()
        self._old_factory = old_factory
        fields = self.fields

        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            for key, value in fields.items():
                setattr(record, key, value)
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._old_factory:
            logging.setLogRecordFactory(self._old_factory)


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """Log a message with additional ctx_ fields."""
    logger.log(level, message, extra={f"ctx_{k}": v for k, v in context.items()})


# =============================================================================
# Analysis Event Logging
# =============================================================================


class AnalysisLogger:
    """Structured events for completed analyses."""

    def __init__(self, logger_name: str = "siamflow.events"):
        self.logger = logging.getLogger(logger_name)

    def log_smart_money(
        self,
        date: str,
        signal: str,
        risk_signal: str,
        score: float,
        confidence: float,
        duration_ms: float,
    ) -> None:
        self.logger.info(
            f"Smart money {date or '-'}: {signal} / {risk_signal}",
            extra={
                "ctx_event": "smart_money_analysis",
                "ctx_date": date,
                "ctx_signal": signal,
                "ctx_risk_signal": risk_signal,
                "ctx_score": round(score, 2),
                "ctx_confidence": round(confidence, 2),
                "ctx_duration_ms": round(duration_ms, 2),
            },
        )

    def log_trend(self, days: int, pattern_count: int, primary_driver: str, duration_ms: float) -> None:
        self.logger.info(
            f"Trend analysis over {days} days: {pattern_count} pattern(s)",
            extra={
                "ctx_event": "trend_analysis",
                "ctx_days": days,
                "ctx_pattern_count": pattern_count,
                "ctx_primary_driver": primary_driver,
                "ctx_duration_ms": round(duration_ms, 2),
            },
        )

    def log_breadth(self, status: str, ad_ratio: float, confidence: float, duration_ms: float) -> None:
        self.logger.info(
            f"Breadth analysis: {status} (A/D {ad_ratio:.2f})",
            extra={
                "ctx_event": "breadth_analysis",
                "ctx_status": status,
                "ctx_ad_ratio": ad_ratio,
                "ctx_confidence": confidence,
                "ctx_duration_ms": round(duration_ms, 2),
            },
        )


analysis_logger = AnalysisLogger()
