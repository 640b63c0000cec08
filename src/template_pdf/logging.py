"""
Logging configuration and utilities for the template PDF pipeline
"""
import logging
import logging.config
import sys
import json
import time
import inspect
from typing import TYPE_CHECKING
from functools import wraps

if TYPE_CHECKING:
    from .config import Settings

ROOT_LOGGER = 'template_pdf'

# Third-party loggers held at WARNING unless debugging
QUIET_LOGGERS = ('urllib3', 'asyncio')

_configured = False


def build_logging_config(settings: "Settings") -> dict:
    """dictConfig mapping for the package logger, derived from settings."""
    level = settings.log_level
    formatter = {'()': JsonFormatter} if settings.log_json else {
        'format': '%(asctime)s %(levelname)s [%(name)s] %(message)s'
    }
    handler_names = ['console']

    config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {'pipeline': formatter},
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'pipeline',
                'stream': sys.stdout,
            },
        },
        'loggers': {
            ROOT_LOGGER: {'level': level, 'handlers': handler_names, 'propagate': False},
        },
    }

    if settings.log_file:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        config['handlers']['file'] = {
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'pipeline',
            'filename': str(settings.log_file),
            'maxBytes': 5 * 1024 * 1024,
            'backupCount': 3,
            'encoding': 'utf-8',
        }
        handler_names.append('file')

    if level != 'DEBUG':
        for name in QUIET_LOGGERS:
            config['loggers'][name] = {'level': 'WARNING'}

    return config


def setup_logging(settings: "Settings") -> logging.Logger:
    """
    Apply the logging configuration described by settings.

    Args:
        settings: Settings carrying log_level, log_file and log_json

    Returns:
        The package logger
    """
    global _configured

    logging.config.dictConfig(build_logging_config(settings))
    _configured = True

    logger = logging.getLogger(ROOT_LOGGER)
    logger.debug(f"Logging initialized with level: {settings.log_level}")
    if settings.log_file:
        logger.debug(f"Log file: {settings.log_file}")
    return logger


def configure_logging(settings: "Settings", force: bool = False) -> logging.Logger:
    """Configure logging once per process; later calls reuse it unless forced."""
    if _configured and not force:
        return logging.getLogger(ROOT_LOGGER)
    return setup_logging(settings)


# Attributes present on every LogRecord; anything else came in via ``extra``
_RECORD_ATTRIBUTES = set(vars(logging.LogRecord('', 0, '', 0, '', (), None))) | {'message', 'asctime'}


class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def timed_operation(operation_name: str = None):
    """Decorator to time function or coroutine execution."""
    def decorator(func):
        name = operation_name or f"{func.__module__}.{func.__name__}"
        logger = logging.getLogger(f'{ROOT_LOGGER}.performance')

        def log_success(start_time):
            duration = time.time() - start_time
            logger.info(f"Operation '{name}' completed successfully", extra={
                'operation': name,
                'duration_ms': round(duration * 1000, 2),
                'success': True
            })

        def log_failure(start_time, e):
            duration = time.time() - start_time
            logger.error(f"Operation '{name}' failed", extra={
                'operation': name,
                'duration_ms': round(duration * 1000, 2),
                'success': False,
                'error': str(e),
                'error_type': type(e).__name__
            })

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                start_time = time.time()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    log_failure(start_time, e)
                    raise
                log_success(start_time)
                return result
            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log_failure(start_time, e)
                raise
            log_success(start_time)
            return result
        return wrapper
    return decorator
