"""Record types shared by the scraper, the parser and the store."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

RELATED_CATEGORIES = ("API", "Options", "Events")
DOC_TYPES = ("manual", "reference", "example", "extension")
EXAMPLE_LANGUAGES = ("javascript", "html", "css")


@dataclass
class DocumentRecord:
    """One scraped documentation page."""
    title: str
    url: str
    content: str
    section: Optional[str]
    doc_type: str
    signature: Optional[str] = None
    since_version: Optional[str] = None
    description: Optional[str] = None


@dataclass
class Parameter:
    position: int
    name: str
    type: str
    optional: bool = False
    default: Optional[str] = None
    description: str = ""


@dataclass
class ReturnType:
    type: str
    description: str = ""


@dataclass
class CodeExample:
    code: str
    title: Optional[str] = None
    language: str = "javascript"


@dataclass
class ValueType:
    type: str
    description: str = ""


@dataclass
class ParsedPage:
    """Structured fields extracted from a single page."""
    signature: Optional[str] = None
    since_version: Optional[str] = None
    description: str = ""
    parameters: List[Parameter] = field(default_factory=list)
    returns: Optional[ReturnType] = None
    value_types: List[ValueType] = field(default_factory=list)
    examples: List[CodeExample] = field(default_factory=list)
    related: Dict[str, List[str]] = field(
        default_factory=lambda: {category: [] for category in RELATED_CATEGORIES}
    )
    notes: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.parameters
            or self.returns
            or self.value_types
            or self.examples
            or self.notes
            or any(self.related.values())
        )
