"""Observability package for the DataTables documentation server."""

from .logging import (
    ColoredFormatter,
    JSONFormatter,
    StructuredLogger,
    get_logger,
    get_structured_logger,
    setup_logging
)

__all__ = [
    'ColoredFormatter',
    'JSONFormatter',
    'StructuredLogger',
    'get_logger',
    'get_structured_logger',
    'setup_logging'
]
