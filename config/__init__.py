"""Configuration module for the DataTables documentation server.

Provides configuration for the store, the scraper and logging.
"""

from .settings import (
    CrawlConfig,
    DatabaseConfig,
    LoggingConfig,
    Settings
)

__all__ = [
    'CrawlConfig',
    'DatabaseConfig',
    'LoggingConfig',
    'Settings'
]
