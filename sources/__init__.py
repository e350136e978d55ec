"""Sources package for the documentation indexer.

Provides crawl catalog loading.
"""

from .loader import (
    CATALOG_KINDS,
    DEFAULT_SOURCE_FILE,
    SourceConfig,
    SourceLoader,
    load_source_config,
    reload_source_cache
)

__all__ = [
    'CATALOG_KINDS',
    'DEFAULT_SOURCE_FILE',
    'SourceConfig',
    'SourceLoader',
    'load_source_config',
    'reload_source_cache'
]
