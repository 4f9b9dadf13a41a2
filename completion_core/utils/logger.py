"""
Structured logging configuration.

Following Sandi Metz principles:
- Single Responsibility: Logging setup and configuration
- Small functions: Each setup step isolated
- Clear naming: Descriptive function names
"""

import logging
import sys
from typing import Any, ContextManager

import structlog

from completion_core.config import config


def setup_logging(log_level: str | None = None) -> None:
    """
    Configure structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL),
            defaults to the configured LOG_LEVEL
    """
    level = log_level or config.log_level
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structured logger
    """
    return structlog.get_logger(name)


def bind_completion_context(
    session_id: str, turn_id: str, operation: str
) -> ContextManager[None]:
    """
    Bind attribution fields to every log line emitted inside the block.

    Args:
        session_id: Session identifier
        turn_id: Turn identifier
        operation: Operation name

    Returns:
        Context manager restoring the previous bindings on exit
    """
    return structlog.contextvars.bound_contextvars(
        session_id=session_id, turn_id=turn_id, operation=operation
    )


def log_llm_call(provider: str, model: str, tokens: int, **kwargs: Any) -> None:
    """
    Log LLM API call.

    Args:
        provider: LLM provider name
        model: Model name
        tokens: Total tokens used
        **kwargs: Additional context
    """
    logger = get_logger("llm")
    logger.info("llm_call", provider=provider, model=model, tokens=tokens, **kwargs)


def log_fixture_substitution(fixture_id: str, operation: str, **kwargs: Any) -> None:
    """
    Log a fixture response served in place of a live call.

    Args:
        fixture_id: Fixture identifier
        operation: Operation name
        **kwargs: Additional context
    """
    logger = get_logger("fixtures")
    logger.info(
        "fixture_substitution", fixture_id=fixture_id, operation=operation, **kwargs
    )


def log_error(error: Exception, context: str, **kwargs: Any) -> None:
    """
    Log error with context.

    Args:
        error: Exception that occurred
        context: Error context
        **kwargs: Additional context
    """
    logger = get_logger("error")
    logger.error(
        "error_occurred",
        error=str(error),
        error_type=type(error).__name__,
        context=context,
        **kwargs
    )
