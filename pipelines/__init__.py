"""Pipelines package for the DataTables documentation index.

Provides scraping and structured field extraction.
"""

from .html_ingest import (
    DocumentationIndexer,
    IndexStats,
    PageLink,
    extract_page_content,
)
from .structured_parser import StructuredParser, detect_language

__all__ = [
    # Scraper
    'DocumentationIndexer',
    'IndexStats',
    'PageLink',
    'extract_page_content',

    # Parser
    'StructuredParser',
    'detect_language',
]
