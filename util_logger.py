# ============================================================================
# CLAUDE CONTEXT - LOGGING
# ============================================================================
# STATUS: Core Infrastructure - Structured logging
# PURPOSE: JSON-only structured logging for the 3DPS Function App with Application Insights
# EXPORTS: ComponentType, LogLevel, LogContext, JSONFormatter, LoggerFactory, log_exceptions
# INTERFACES: Enums, dataclass context, logging.Filter, JSON formatter, exception decorator
# DEPENDENCIES: logging, json, dataclasses (stdlib only!)
# SCOPE: Triggers, response builders, router, cache store, upstream adapters
# PATTERNS: JSON-only output, Azure Functions integration, Exception decorator pattern
# ENTRY_POINTS: LoggerFactory.create_logger(), @log_exceptions decorator
# ============================================================================

"""
Unified Logger System

One JSON object per line on stdout. Every record carries
``customDimensions`` with the component that wrote it, the fields of an
optional LogContext bound at logger creation, and any ``custom_dimensions``
passed through ``extra=`` at the call site (call site wins).

Levels:
    LOG_LEVEL=WARNING        default for every component (INFO if unset)
    DEBUG_LOGGING=true       shorthand for LOG_LEVEL=DEBUG
"""

import json
import logging
import os
import sys
import traceback
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from enum import Enum
from functools import wraps
from typing import Any, Dict, Optional


# ============================================================================
# COMPONENT TYPES
# ============================================================================

class ComponentType(Enum):
    """Application layers; the logger name is '<layer>.<component>'."""
    TRIGGER = "trigger"        # HTTP entry point
    VALIDATOR = "validator"    # Path/KVP parsing and OWS dispatch
    SERVICE = "service"        # Response builders, index builder, splitter
    REPOSITORY = "repository"  # Cache store and attribute store
    ADAPTER = "adapter"        # Upstream WFS listing


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"

    @property
    def python_level(self) -> int:
        return getattr(logging, self.value)

    @classmethod
    def from_env(cls) -> 'LogLevel':
        """Level from DEBUG_LOGGING / LOG_LEVEL, INFO when unset or unknown."""
        if os.getenv('DEBUG_LOGGING', '').lower() == 'true':
            return cls.DEBUG
        return cls.__members__.get(os.getenv('LOG_LEVEL', 'INFO').upper(), cls.INFO)


# ============================================================================
# LOG CONTEXT - Request correlation
# ============================================================================

@dataclass
class LogContext:
    """
    Correlation fields for one HTTP invocation.

    Only populated fields reach the log line.
    """
    request_id: Optional[str] = None     # Invocation / correlation ID
    model_name: Optional[str] = None     # Geological model path segment
    service: Optional[str] = None        # OWS service (3DPS, WFS)
    request: Optional[str] = None        # OWS request name
    resource_id: Optional[str] = None    # Borehole resource id

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


# ============================================================================
# FILTER + FORMATTER
# ============================================================================

class _DimensionsFilter(logging.Filter):
    """Merges component and bound context into record.custom_dimensions."""

    def __init__(self, component_type: ComponentType, name: str,
                 context: Optional[LogContext] = None):
        super().__init__()
        self.base = {'component_type': component_type.value, 'component_name': name}
        if context:
            self.base.update(context.to_dict())

    def filter(self, record: logging.LogRecord) -> bool:
        record.custom_dimensions = {**self.base, **getattr(record, 'custom_dimensions', {})}
        return True


class JSONFormatter(logging.Formatter):
    """Application Insights friendly JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'location': f"{record.module}.{record.funcName}:{record.lineno}",
        }

        dimensions = getattr(record, 'custom_dimensions', None)
        if dimensions:
            entry['customDimensions'] = dimensions

        if record.exc_info and record.exc_info[0] is not None:
            entry['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info)
            }

        return json.dumps(entry, default=str)


# ============================================================================
# LOGGER FACTORY
# ============================================================================

class LoggerFactory:
    """
    Factory for component loggers.

    Example:
        logger = LoggerFactory.create_logger(ComponentType.SERVICE, "PayloadSplitter")
        logger.info("Split payload", extra={'custom_dimensions': {'bytes': 1024}})
    """

    @classmethod
    def create_logger(
        cls,
        component_type: ComponentType,
        name: str,
        context: Optional[LogContext] = None,
        level: Optional[LogLevel] = None
    ) -> logging.Logger:
        """
        Create (or reconfigure) the logger '<component_type>.<name>'.

        Args:
            component_type: Layer the component belongs to
            name: Component name, e.g. "CacheStore"
            context: Correlation fields added to every record
            level: Overrides the environment-derived level
        """
        level = level or LogLevel.from_env()

        logger = logging.getLogger(f"{component_type.value}.{name}")
        logger.setLevel(level.python_level)

        # Re-creating a logger replaces its handler and filter instead of stacking them
        logger.handlers.clear()
        for existing in list(logger.filters):
            logger.removeFilter(existing)

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.addFilter(_DimensionsFilter(component_type, name, context))

        # Azure's root handler forwards to Application Insights
        logger.propagate = True

        return logger


# ============================================================================
# EXCEPTION DECORATOR
# ============================================================================

def log_exceptions(logger: Optional[logging.Logger] = None,
                   component_type: ComponentType = ComponentType.SERVICE):
    """
    Log any exception escaping the wrapped function, then re-raise it.

    Usage:
        @log_exceptions(logger=logger)
        def from_config(...): ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                log = logger or LoggerFactory.create_logger(component_type, func.__module__)
                log.error(
                    f"Exception in {func.__qualname__}: {e}",
                    exc_info=True,
                    extra={
                        'custom_dimensions': {
                            'function_name': func.__qualname__,
                            'exception_type': type(e).__name__,
                            'traceback': traceback.format_exc()
                        }
                    }
                )
                raise
        return wrapper
    return decorator
