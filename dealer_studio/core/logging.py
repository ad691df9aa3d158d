"""Logging configuration and management for the Dealer Studio application.

This module provides the logging system used across the service:
- Structured logging rendered as JSON by python-json-logger
- Correlation ID tracking across requests
- Request timing middleware
- A performance decorator for async operations

Loggers are obtained with ``get_logger(__name__)`` and take keyword fields:

    logger = get_logger(__name__)
    logger.info("Outfit committed", dealer_id=dealer.id, stage=1)
"""

import logging
import time
import traceback
import uuid
from contextvars import ContextVar
from functools import wraps
from typing import Any, Dict, Optional

from fastapi import Request, Response
from pythonjsonlogger.json import JsonFormatter
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from dealer_studio.core.config import get_settings

# Context variable for correlation ID
correlation_id: ContextVar[str] = ContextVar('correlation_id', default='')


class StructuredLogger:
    """Custom logger that ensures consistent structured logging."""

    def __init__(self, name: str):
        """Initialize structured logger with given name."""
        settings = get_settings()
        self.logger = logging.getLogger(name)
        self.service_name = settings.APP_NAME
        self.environment = settings.ENVIRONMENT.value

    def _build_log_dict(
        self,
        additional_fields: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Build structured log fields common to every record."""
        log_dict = {
            'service': self.service_name,
            'environment': self.environment,
            'correlation_id': correlation_id.get(),
        }

        if additional_fields:
            log_dict.update(additional_fields)

        return log_dict

    def info(self, message: str, **kwargs):
        """Log info level message with structured data."""
        self.logger.info(message, extra=self._build_log_dict(kwargs))

    def error(self, message: str, error: Optional[Exception] = None, **kwargs):
        """Log error level message with structured data and optional exception."""
        log_dict = self._build_log_dict(kwargs)

        if error:
            log_dict.update({
                'error_type': error.__class__.__name__,
                'error_message': str(error),
                'error_trace': self._get_traceback(error)
            })

        self.logger.error(message, extra=log_dict)

    def warning(self, message: str, **kwargs):
        """Log warning level message with structured data."""
        self.logger.warning(message, extra=self._build_log_dict(kwargs))

    def debug(self, message: str, **kwargs):
        """Log debug level message with structured data."""
        self.logger.debug(message, extra=self._build_log_dict(kwargs))

    @staticmethod
    def _get_traceback(error: Exception) -> str:
        """Get formatted traceback from exception."""
        return ''.join(traceback.format_exception(
            type(error),
            error,
            error.__traceback__
        ))


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Middleware to handle correlation ID for request tracking."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        """Process request with correlation ID tracking."""
        token = correlation_id.set(
            request.headers.get('X-Correlation-ID', str(uuid.uuid4()))
        )

        try:
            response = await call_next(request)
            response.headers['X-Correlation-ID'] = correlation_id.get()
            return response
        finally:
            correlation_id.reset(token)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging request and response details."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        """Log request and response details."""
        logger = get_logger(__name__)
        start_time = time.time()

        logger.info(
            "Request started",
            method=request.method,
            path=request.url.path,
            client_host=request.client.host if request.client else None
        )

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = (time.time() - start_time) * 1000
            logger.error(
                "Request failed",
                error=e,
                method=request.method,
                path=request.url.path,
                process_time_ms=round(process_time, 2)
            )
            raise

        process_time = (time.time() - start_time) * 1000
        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time_ms=round(process_time, 2)
        )
        return response


class CustomJsonFormatter(JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['timestamp'] = record.created
        log_record['level'] = record.levelname
        log_record['logger'] = record.name


def setup_logging(debug: Optional[bool] = None):
    """Configure root logging to emit one JSON document per record."""
    if debug is None:
        debug = get_settings().DEBUG

    json_handler = logging.StreamHandler()
    json_handler.setFormatter(CustomJsonFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(json_handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name)


# Performance monitoring decorator
def monitor_performance(name: str = None):
    """Decorator for monitoring function performance."""
    def decorator(func):
        @wraps(func)
        async def wrapped(*args, **kwargs):
            logger = get_logger(__name__)
            start_time = time.time()

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                process_time = (time.time() - start_time) * 1000
                logger.warning(
                    f"Function {name or func.__name__} failed",
                    error_type=e.__class__.__name__,
                    error_message=str(e),
                    process_time_ms=round(process_time, 2)
                )
                raise

            process_time = (time.time() - start_time) * 1000
            logger.info(
                f"Function {name or func.__name__} completed",
                process_time_ms=round(process_time, 2)
            )
            return result

        return wrapped
    return decorator
