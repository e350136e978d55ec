"""Settings for the DataTables documentation server and indexer.

Values come from environment variables; command line flags override them.
"""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from sources.loader import DEFAULT_SOURCE_FILE


BASE_DIR = Path(__file__).resolve().parents[1]
DEFAULT_DB_PATH = BASE_DIR / "data" / "datatables.db"

ENV_PREFIX = "DATATABLES_MCP_"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _env_flag(name: str) -> bool:
    return (_env(name, "") or "").strip().lower() in {"1", "true", "yes", "on"}


class DatabaseConfig(BaseModel):
    """SQLite store configuration."""
    sqlite_path: Path = Field(default=DEFAULT_DB_PATH, description="SQLite database path")


class CrawlConfig(BaseModel):
    """Documentation scraper configuration."""
    source_file: Path = Field(default=DEFAULT_SOURCE_FILE, description="YAML crawl catalog")
    request_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    request_delay: float = Field(default=1.5, ge=0, description="Pause between page fetches")
    discovery_delay: float = Field(default=1.0, ge=0, description="Pause between category pages")
    user_agent: Optional[str] = Field(default=None, description="Overrides the catalog's User-Agent")


class LoggingConfig(BaseModel):
    """Logging configuration; console output always goes to stderr."""
    level: str = Field(default="INFO", description="Log level")
    use_json: bool = Field(default=False, description="Emit JSON log lines")
    log_file: Optional[str] = Field(default=None, description="Optional JSON log file")


class Settings(BaseModel):
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    crawl: CrawlConfig = Field(default_factory=CrawlConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> 'Settings':
        """Create settings from ``DATATABLES_MCP_*`` environment variables."""
        database = {}
        if _env('DB'):
            database['sqlite_path'] = _env('DB')

        crawl = {}
        if _env('SOURCE'):
            crawl['source_file'] = _env('SOURCE')
        if _env('TIMEOUT'):
            crawl['request_timeout'] = _env('TIMEOUT')
        if _env('DELAY'):
            crawl['request_delay'] = _env('DELAY')
        if _env('USER_AGENT'):
            crawl['user_agent'] = _env('USER_AGENT')

        log = {
            'level': _env('LOG_LEVEL', 'INFO'),
            'use_json': _env_flag('LOG_JSON'),
            'log_file': _env('LOG_FILE'),
        }

        return cls(
            database=DatabaseConfig(**database),
            crawl=CrawlConfig(**crawl),
            logging=LoggingConfig(**log),
        )
