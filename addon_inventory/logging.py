"""
Structured Logging for addon-inventory

Structlog configuration with per-evaluation correlation IDs and an
operation trace decorator used around remote calls.
"""

import logging
import sys
import threading
import time
import uuid
from contextlib import contextmanager
from functools import wraps
from typing import Optional

import structlog

from .config import InventoryConfig, get_config

# Thread-local storage for correlation context
_correlation_context = threading.local()


class CorrelationContext:
    """Per-thread correlation ID for the evaluation a thread is working on."""

    @staticmethod
    def get_correlation_id() -> str:
        """Get the current correlation ID, creating one if needed."""
        if not hasattr(_correlation_context, "correlation_id"):
            _correlation_context.correlation_id = new_correlation_id()
        return _correlation_context.correlation_id

    @staticmethod
    def set_correlation_id(correlation_id: str):
        """Set the correlation ID for the current thread."""
        _correlation_context.correlation_id = correlation_id

    @staticmethod
    def clear_correlation_id():
        """Clear the correlation ID for the current thread."""
        if hasattr(_correlation_context, "correlation_id"):
            delattr(_correlation_context, "correlation_id")


def new_correlation_id() -> str:
    return str(uuid.uuid4())[:8]


@contextmanager
def correlation_scope(correlation_id: Optional[str] = None):
    """Run a block under *correlation_id*, restoring the previous one after."""
    previous = getattr(_correlation_context, "correlation_id", None)
    CorrelationContext.set_correlation_id(correlation_id or new_correlation_id())
    try:
        yield CorrelationContext.get_correlation_id()
    finally:
        if previous:
            CorrelationContext.set_correlation_id(previous)
        else:
            CorrelationContext.clear_correlation_id()


def trace_operation(operation_name: str):
    """Log the start, end and duration of each call at debug level."""

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger(func.__module__)
            log = logger.bind(operation=operation_name, function=func.__name__)
            start_time = time.perf_counter()

            log.debug("Starting operation")
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log.debug(
                    "Failed operation",
                    duration_seconds=time.perf_counter() - start_time,
                    error=str(e),
                )
                raise

            log.debug("Completed operation", duration_seconds=time.perf_counter() - start_time)
            return result

        return wrapper

    return decorator


@contextmanager
def time_operation(logger, operation: str, **context):
    """Log the duration and outcome of the wrapped block."""
    start_time = time.perf_counter()
    success = True
    error = None

    try:
        yield
    except Exception as e:
        success = False
        error = str(e)
        raise
    finally:
        logger.info(
            "Operation completed",
            operation=operation,
            duration_seconds=round(time.perf_counter() - start_time, 6),
            success=success,
            error=error,
            **context,
        )


def _add_correlation(_, __, event_dict):
    event_dict.setdefault("correlation_id", CorrelationContext.get_correlation_id())
    return event_dict


def setup_logging(config: Optional[InventoryConfig] = None):
    """Setup structured logging for addon-inventory."""
    config = config or get_config()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            _add_correlation,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            (
                structlog.processors.JSONRenderer()
                if config.log_format == "json"
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.log_level))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Records go to stderr so stdout stays clean for query output
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)

    # botocore is chatty at DEBUG
    logging.getLogger("botocore").setLevel(max(logging.INFO, root_logger.level))


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
