"""Structured logging configuration."""

import json
import logging
import sys
from typing import Any

LOGGER_NAME = "compatibility_api"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the package logger; safe to call again to change the level."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)

    # Format: timestamp - level - module - message
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)

    return logger


logger = setup_logging()


def _fields(kwargs: dict[str, Any]) -> str:
    return " ".join(f"{k}={v}" for k, v in kwargs.items())


def log_request(method: str, path: str, **kwargs: Any) -> None:
    """Log an incoming request."""
    logger.info(f"REQUEST {method} {path} {_fields(kwargs)}".strip())


def log_response(method: str, path: str, status: int, duration_ms: float) -> None:
    """Log an outgoing response."""
    logger.info(
        f"RESPONSE {method} {path} status={status} duration_ms={duration_ms:.2f}"
    )


def log_error(message: str, exc: Exception | None = None, **kwargs: Any) -> None:
    """Log an error with optional exception."""
    line = f"ERROR {message} {_fields(kwargs)}".strip()
    if exc:
        logger.error(line, exc_info=exc)
    else:
        logger.error(line)


def log_external_call(
    service: str,
    operation: str,
    success: bool,
    duration_ms: float | None = None,
    **kwargs: Any,
) -> None:
    """Log one outbound call to an external service."""
    status = "success" if success else "failed"
    duration = f"duration_ms={duration_ms:.2f}" if duration_ms else ""
    logger.info(
        f"EXTERNAL {service} {operation} status={status} {duration} {_fields(kwargs)}".strip()
    )


def log_upstream_failure(
    operation: str,
    status_code: int | None = None,
    body: Any = None,
    message: str = "",
) -> None:
    """Log an upstream failure with its HTTP status and body, or the transport message."""
    if status_code is not None:
        if not isinstance(body, str):
            body = json.dumps(body, indent=2, default=str)
        log_error("eBay API response", operation=operation, status=status_code, body=body)
    else:
        log_error("eBay API request", operation=operation, message=message)
