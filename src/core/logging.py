"""Loguru logging configuration for the TimescaleDB demo."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from loguru import logger


def serialize_log(record: dict[str, Any]) -> str:
    """Serialize log record to JSON for structured logging.

    Args:
        record: Log record from loguru

    Returns:
        JSON string
    """
    subset = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
        "message": record["message"],
    }

    # Workflow step context
    if "step" in record["extra"]:
        subset["step"] = record["extra"]["step"]

    if record["exception"]:
        subset["exception"] = {
            "type": record["exception"].type.__name__,
            "value": str(record["exception"].value),
            "traceback": (
                record["exception"].traceback.format() if record["exception"].traceback else None
            ),
        }

    subset["extra"] = {k: v for k, v in record["extra"].items() if k != "step"}

    return json.dumps(subset, default=str)


def configure_logging(
    level: str = "INFO",
    structured: bool = False,
    log_file: Path | None = None,
    environment: str = "development",
) -> None:
    """Configure loguru logging.

    Logs go to stderr so they never interleave with the demo's result lines on stdout.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        structured: Use JSON structured logging
        log_file: Optional file path for logs
        environment: Deployment environment (development/production)
    """
    logger.remove()

    enable_debug_info = environment == "development"

    if structured:
        logger.add(
            sys.stderr,
            format=serialize_log,
            level=level,
            backtrace=enable_debug_info,
            diagnose=enable_debug_info,
        )
    else:
        logger.add(
            sys.stderr,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "<level>{message}</level> | "
                "{extra}"
            ),
            level=level,
            colorize=True,
            backtrace=True,
            diagnose=enable_debug_info,
        )

    if log_file:
        logger.add(
            log_file,
            format=serialize_log if structured else None,
            level=level,
            rotation="100 MB",
            retention="30 days",
            compression="gz",
            backtrace=enable_debug_info,
            diagnose=enable_debug_info,
        )

    configure_logger_levels(environment)


def configure_logger_levels(environment: str) -> None:
    """Configure logging levels for different components.

    Args:
        environment: Deployment environment
    """
    if environment == "production":
        logger.disable("asyncio")
        logger.disable("core.database")


def get_logger(name: str) -> Any:
    """Get a logger instance with the specified name.

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    return logger.bind(logger_name=name)


def get_step_logger(step: str) -> Any:
    """Get a logger with the workflow step bound."""
    return logger.bind(step=step)


def log_performance_metric(
    operation: str,
    duration_ms: float,
    success: bool = True,
    additional_metrics: dict[str, Any] | None = None,
) -> None:
    """Log performance metrics with standardized format.

    Args:
        operation: Operation name
        duration_ms: Operation duration in milliseconds
        success: Whether operation succeeded
        additional_metrics: Additional metric data
    """
    context = {
        "operation": operation,
        "duration_ms": duration_ms,
        "success": success,
        "performance_metric": True,
    }

    if additional_metrics:
        context.update(additional_metrics)

    perf_logger = logger.bind(**context)
    if success:
        perf_logger.info(f"Performance: {operation} completed in {duration_ms:.2f}ms")
    else:
        perf_logger.warning(f"Performance: {operation} failed after {duration_ms:.2f}ms")
