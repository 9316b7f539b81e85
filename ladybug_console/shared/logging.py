"""
Logging setup with correlation IDs for query runs.

Provides a consistent logging setup for the builder, the pandoc filter
and the page runtime so that a single query run can be traced from
activation to rendering.
"""

import logging
import uuid


def setup_logging(component: str, level: str = "INFO") -> logging.Logger:
    """
    Configure logging for a component.

    Args:
        component: Component name (used as logger suffix, e.g. 'runner').
        level: Log level string (e.g. 'INFO', 'DEBUG').

    Returns:
        Configured logger instance named ``ladybug.<component>``.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s  %(name)-30s  %(levelname)-7s  %(message)s",
    )
    return logging.getLogger(f"ladybug.{component}")


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for tracing a single query run."""
    return uuid.uuid4().hex[:12]
