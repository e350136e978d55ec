"""Source catalog loader for the documentation indexer.

Loads and validates the crawl catalog (which manual sections, example
categories, reference categories and extensions to scrape) from YAML files.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

SOURCES_DIR = Path(__file__).parent
DEFAULT_SOURCE_FILE = SOURCES_DIR / "datatables.yaml"

CATALOG_KINDS = ("manual", "examples", "reference", "extensions")


@dataclass
class SourceConfig:
    """Crawl catalog for one documentation site."""
    name: str
    base_url: str
    user_agent: str = "DataTablesMCP/1.0 Documentation Indexer"
    manual: Dict[str, str] = field(default_factory=dict)
    examples: Dict[str, str] = field(default_factory=dict)
    reference: Dict[str, str] = field(default_factory=dict)
    extensions: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.name:
            raise ValueError("Source name cannot be empty")

        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError(f"Invalid base URL: {self.base_url}")

        self.base_url = self.base_url.rstrip("/")

        for kind in CATALOG_KINDS:
            catalog = getattr(self, kind)
            if not isinstance(catalog, dict):
                raise ValueError(f"'{kind}' must map slugs to labels")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SourceConfig':
        """Create SourceConfig from dictionary."""
        kwargs = {
            'name': data['name'],
            'base_url': data['base_url'],
        }
        if data.get('user_agent'):
            kwargs['user_agent'] = data['user_agent']
        for kind in CATALOG_KINDS:
            kwargs[kind] = {
                str(slug): str(label) for slug, label in (data.get(kind) or {}).items()
            }
        return cls(**kwargs)

    def catalog(self, kind: str) -> Dict[str, str]:
        if kind not in CATALOG_KINDS:
            raise ValueError(f"Unknown catalog kind: {kind}")
        return getattr(self, kind)


class SourceLoader:
    """Loads source catalogs from YAML files, caching by modification time."""

    def __init__(self, sources_dir: Optional[Path] = None):
        self.sources_dir = Path(sources_dir or SOURCES_DIR)
        self._cache: Dict[Path, SourceConfig] = {}
        self._last_modified: Dict[Path, float] = {}

    def load_file(self, yaml_file: Union[str, Path]) -> Optional[SourceConfig]:
        """Load a catalog from an explicit path.

        Returns:
            SourceConfig if found and valid, None otherwise
        """
        yaml_file = Path(yaml_file)
        if not yaml_file.exists():
            logger.warning(f"Source configuration not found: {yaml_file}")
            return None

        current_mtime = yaml_file.stat().st_mtime
        if (yaml_file in self._cache and
                self._last_modified.get(yaml_file, 0) >= current_mtime):
            return self._cache[yaml_file]

        try:
            with open(yaml_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)

            if not isinstance(data, dict):
                logger.error(f"Empty or invalid YAML file: {yaml_file}")
                return None

            data.setdefault('name', yaml_file.stem)
            config = SourceConfig.from_dict(data)

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML file {yaml_file}: {e}")
            return None
        except (ValueError, KeyError, AttributeError) as e:
            logger.error(f"Invalid source configuration in {yaml_file}: {e}")
            return None

        self._cache[yaml_file] = config
        self._last_modified[yaml_file] = current_mtime
        logger.info(f"Loaded source configuration: {config.name}")
        return config

    def load_source_config(self, source_name: str) -> Optional[SourceConfig]:
        """Load ``<sources_dir>/<source_name>.yaml``."""
        return self.load_file(self.sources_dir / f"{source_name}.yaml")

    def reload_cache(self):
        """Clear cache to force reload of all configurations."""
        self._cache.clear()
        self._last_modified.clear()
        logger.info("Source configuration cache cleared")


_source_loader = SourceLoader()


def load_source_config(source: Union[str, Path] = DEFAULT_SOURCE_FILE) -> Optional[SourceConfig]:
    """Load a catalog by name (``datatables``) or by YAML path."""
    if isinstance(source, Path) or str(source).endswith((".yaml", ".yml")):
        return _source_loader.load_file(source)
    return _source_loader.load_source_config(str(source))


def reload_source_cache():
    _source_loader.reload_cache()
