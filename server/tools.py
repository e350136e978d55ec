"""MCP tools exposed by the DataTables documentation server.

Each tool is described by a static ``ToolDescriptor`` (what ``tools/list``
advertises) and implemented by a method of ``DocumentationTools`` taking a
typed arguments model. ``DocumentationTools.call`` validates the raw argument
mapping against the descriptor and returns an ``Outcome``; store errors are
left to propagate to the dispatcher.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from indexer.models import DOC_TYPES, EXAMPLE_LANGUAGES, RELATED_CATEGORIES
from indexer.query_sanitizer import sanitize_query
from indexer.sqlite_adapter import DocumentationStore

from .formatting import (
    format_examples,
    format_function_details,
    format_related_items,
    format_search_results,
)
from .protocol import Outcome

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 50


@dataclass(frozen=True)
class ToolParameter:
    name: str
    type: str
    description: str
    required: bool = False
    default: Any = None
    enum: Optional[Tuple[str, ...]] = None

    def to_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {"type": self.type, "description": self.description}
        if self.default is not None:
            schema["default"] = self.default
        if self.enum:
            schema["enum"] = list(self.enum)
        if self.name == "limit":
            schema["minimum"] = 1
            schema["maximum"] = MAX_LIMIT
        return schema


@dataclass(frozen=True)
class ToolDescriptor:
    """Static metadata for one tool, rendered as an MCP tool definition."""
    name: str
    description: str
    parameters: Tuple[ToolParameter, ...]

    @property
    def required(self) -> List[str]:
        return [p.name for p in self.parameters if p.required]

    def to_schema(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": {
                "type": "object",
                "properties": {p.name: p.to_schema() for p in self.parameters},
                "required": self.required,
            },
        }


LIMIT = ToolParameter(
    "limit", "integer", f"Maximum number of results to return (default: {DEFAULT_LIMIT})",
    default=DEFAULT_LIMIT,
)

TOOLS: Tuple[ToolDescriptor, ...] = (
    ToolDescriptor(
        name="search_datatables",
        description=(
            "Search DataTables.net documentation and examples. Returns relevant "
            "documentation sections with titles, URLs, and content excerpts."
        ),
        parameters=(
            ToolParameter(
                "query", "string",
                'Search query (e.g., "ajax options", "server-side processing", "column rendering")',
                required=True,
            ),
            LIMIT,
        ),
    ),
    ToolDescriptor(
        name="get_function_details",
        description=(
            "Get the full reference for a DataTables API method or option: signature, "
            "parameters, return type, examples, notes and related items."
        ),
        parameters=(
            ToolParameter(
                "name", "string",
                'API method or option name (e.g., "ajax.reload()", "columns.render")',
                required=True,
            ),
        ),
    ),
    ToolDescriptor(
        name="search_by_example",
        description="Search DataTables code examples, optionally restricted to one language.",
        parameters=(
            ToolParameter(
                "query", "string", 'What the example should show (e.g., "row grouping")',
                required=True,
            ),
            ToolParameter(
                "language", "string", "Restrict results to this code language",
                enum=EXAMPLE_LANGUAGES,
            ),
            LIMIT,
        ),
    ),
    ToolDescriptor(
        name="search_by_topic",
        description="Search documentation within a section and/or documentation type.",
        parameters=(
            ToolParameter("query", "string", "Search query", required=True),
            ToolParameter(
                "section", "string", 'Section name or part of it (e.g., "Server-side", "API")',
            ),
            ToolParameter(
                "doc_type", "string", "Restrict results to one documentation type",
                enum=DOC_TYPES,
            ),
            LIMIT,
        ),
    ),
    ToolDescriptor(
        name="get_related_items",
        description="List the API methods, options and events cross-referenced by a page.",
        parameters=(
            ToolParameter("name", "string", "API method or option name", required=True),
            ToolParameter(
                "category", "string", "Only return related items of this category",
                enum=RELATED_CATEGORIES,
            ),
        ),
    ),
)

TOOLS_BY_NAME: Dict[str, ToolDescriptor] = {tool.name: tool for tool in TOOLS}


# -- argument models ------------------------------------------------------

class ToolArguments(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class LimitedArguments(ToolArguments):
    limit: int = DEFAULT_LIMIT

    @field_validator("limit", mode="before")
    @classmethod
    def default_when_null(cls, value):
        return DEFAULT_LIMIT if value is None else value

    @field_validator("limit")
    @classmethod
    def clamp_limit(cls, value: int) -> int:
        return max(1, min(value, MAX_LIMIT))


class SearchArguments(LimitedArguments):
    query: str


class ExampleSearchArguments(LimitedArguments):
    query: str
    language: Optional[str] = None


class TopicSearchArguments(LimitedArguments):
    query: str
    section: Optional[str] = None
    doc_type: Optional[str] = None


class NameArguments(ToolArguments):
    name: str


class RelatedArguments(ToolArguments):
    name: str
    category: Optional[str] = None


def validate_arguments(tool: ToolDescriptor, arguments: Mapping[str, Any]) -> Optional[str]:
    """Check required arguments and enumerations; returns a failure message or None."""
    for param in tool.parameters:
        value = arguments.get(param.name)
        if param.required and (value is None or (isinstance(value, str) and not value.strip())):
            return f"{param.name} parameter is required"
        if param.enum and value not in (None, "") and value not in param.enum:
            allowed = ", ".join(param.enum)
            return f"{param.name} must be one of: {allowed}"
    return None


class DocumentationTools:
    """Tool implementations backed by a ``DocumentationStore``."""

    def __init__(self, store: DocumentationStore):
        self.store = store
        self._handlers: Dict[str, Tuple[Type[ToolArguments], Callable[[Any], str]]] = {
            "search_datatables": (SearchArguments, self.search_datatables),
            "get_function_details": (NameArguments, self.get_function_details),
            "search_by_example": (ExampleSearchArguments, self.search_by_example),
            "search_by_topic": (TopicSearchArguments, self.search_by_topic),
            "get_related_items": (RelatedArguments, self.get_related_items),
        }

    def list_tools(self) -> List[Dict[str, Any]]:
        return [tool.to_schema() for tool in TOOLS]

    def call(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> Outcome:
        tool = TOOLS_BY_NAME.get(name)
        if tool is None:
            return Outcome.failure(f"Unknown tool: {name}")

        arguments = arguments or {}
        problem = validate_arguments(tool, arguments)
        if problem:
            return Outcome.failure(problem)

        model, handler = self._handlers[name]
        try:
            args = model.model_validate(dict(arguments))
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"]) or "arguments"
            return Outcome.failure(f"Invalid {field}: {first['msg']}")

        logger.info(f"Tool call: {name} {args.model_dump(exclude_none=True)}")
        return Outcome.success(handler(args))

    def search_datatables(self, args: SearchArguments) -> str:
        results = self.store.search(sanitize_query(args.query), limit=args.limit)
        return format_search_results(results, args.query)

    def search_by_topic(self, args: TopicSearchArguments) -> str:
        results = self.store.search(
            sanitize_query(args.query),
            limit=args.limit,
            section=args.section or None,
            doc_type=args.doc_type or None,
        )
        return format_search_results(results, args.query)

    def search_by_example(self, args: ExampleSearchArguments) -> str:
        language = args.language or None
        results = self.store.search_examples(
            sanitize_query(args.query), language=language, limit=args.limit
        )
        return format_examples(results, args.query, language)

    def get_function_details(self, args: NameArguments) -> str:
        document = self.store.find_document(args.name)
        if document is None:
            return f"No documentation found for: {args.name}"
        return format_function_details(document, self.store.get_details(document["id"]))

    def get_related_items(self, args: RelatedArguments) -> str:
        document = self.store.find_document(args.name)
        if document is None:
            return f"No documentation found for: {args.name}"
        category = args.category or None
        items = self.store.get_related(document["id"], category)
        return format_related_items(document, items, category)
