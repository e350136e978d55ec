"""Documentation store and full-text query handling."""

from .models import (
    CodeExample,
    DocumentRecord,
    Parameter,
    ParsedPage,
    ReturnType,
    ValueType,
)
from .query_sanitizer import sanitize_query, uses_fts_syntax
from .sqlite_adapter import DatabaseNotFoundError, DocumentationStore

__all__ = [
    'CodeExample',
    'DocumentRecord',
    'Parameter',
    'ParsedPage',
    'ReturnType',
    'ValueType',
    'sanitize_query',
    'uses_fts_syntax',
    'DatabaseNotFoundError',
    'DocumentationStore',
]
