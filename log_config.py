"""Structured logging setup for BloodSync."""

import logging
import os
import sys
from typing import Any, MutableMapping

import structlog


def _is_development(env=None) -> bool:
    return (env or os.environ.get('APP_ENV', 'development')) == 'development'


def _add_app_context(logger: Any, method_name: str, event_dict: MutableMapping[str, Any]):
    event_dict['app'] = 'bloodsync'
    return event_dict


def get_processors(env=None):
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
        _add_app_context,
    ]
    if _is_development(env):
        return shared_processors + [
            structlog.dev.ConsoleRenderer(exception_formatter=structlog.dev.plain_traceback)
        ]
    return shared_processors + [
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


def configure_logging(level='INFO', env=None):
    """Configure structlog on top of the stdlib root logger. Safe to call more than once."""
    log_level = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(format='%(message)s', stream=sys.stdout, level=log_level)
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger().setLevel(log_level)
    structlog.configure(
        processors=get_processors(env),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name=__name__):
    if not structlog.is_configured():
        configure_logging(os.environ.get('LOG_LEVEL', 'INFO'))
    return structlog.get_logger(name)
