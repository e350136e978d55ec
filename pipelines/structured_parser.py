"""Structured field extraction for DataTables documentation pages.

Reference pages on datatables.net share a fixed layout: a parameters table,
``.reference_example`` blocks, ``.reference_related`` cross-reference lists and
so on. The parser reads those blocks with BeautifulSoup; it does not try to
guess structure on pages that do not follow the layout.
"""

import re
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag

from indexer.models import (
    RELATED_CATEGORIES,
    CodeExample,
    Parameter,
    ParsedPage,
    ReturnType,
    ValueType,
)


SIGNATURE_SELECTORS = [".api-signature", "code.signature", "pre.signature", ".method-signature"]
DESCRIPTION_SELECTORS = [
    ".reference-description p:first-child",
    ".description p:first-child",
    ".doc-content > p:first-child",
]
NOTE_SELECTORS = "strong, b, .warning, .note, .important"

_SIGNATURE_TITLE_RE = re.compile(r"^([a-zA-Z0-9_.()]+)\s*\(.*\)")
_VERSION_RE = re.compile(r"Since:\s*DataTables\s+([\d.]+)", re.IGNORECASE)
_DEFAULT_RE = re.compile(r"default:\s*(\S+)", re.IGNORECASE)
_RETURNS_HEADING_RE = re.compile(r"^Returns?:?$", re.IGNORECASE)
_TYPE_NAME_RE = re.compile(r"^([A-Za-z0-9_.]+)")
_NOTE_RE = re.compile(r"\b(note|warning|important|caution|deprecated)\b", re.IGNORECASE)
_VALUE_TYPE_RE = re.compile(r"^(string|boolean|integer|number|object|function|array)$", re.IGNORECASE)

_LANGUAGE_CLASSES = {
    "language-js": "javascript",
    "language-javascript": "javascript",
    "language-html": "html",
    "language-css": "css",
}


def _text(node: Optional[Tag]) -> str:
    return node.get_text().strip() if node is not None else ""


def detect_language(code_node: Tag, default: str = "javascript") -> str:
    """Map a ``language-*`` class on a code block to a language name."""
    for css_class in code_node.get("class") or []:
        if css_class in _LANGUAGE_CLASSES:
            return _LANGUAGE_CLASSES[css_class]
    return default


class StructuredParser:
    """Parses DataTables documentation HTML into a ``ParsedPage``."""

    def parse_api_page(self, html: str) -> ParsedPage:
        soup = BeautifulSoup(html, "html.parser")
        return ParsedPage(
            signature=self.extract_signature(soup),
            since_version=self.extract_version(soup),
            description=self.extract_description(soup),
            parameters=self.extract_parameters(soup),
            returns=self.extract_return_type(soup),
            examples=self.extract_code_examples(soup),
            related=self.extract_related_items(soup),
            notes=self.extract_notes(soup),
        )

    def parse_option_page(self, html: str) -> ParsedPage:
        soup = BeautifulSoup(html, "html.parser")
        return ParsedPage(
            since_version=self.extract_version(soup),
            description=self.extract_description(soup),
            value_types=self.extract_value_types(soup),
            examples=self.extract_code_examples(soup),
            related=self.extract_related_items(soup),
            notes=self.extract_notes(soup),
        )

    def parse_example_page(self, html: str) -> ParsedPage:
        """Example pages carry their code as plain ``pre code`` blocks."""
        soup = BeautifulSoup(html, "html.parser")
        examples = []
        for code_node in soup.select("pre code"):
            code = code_node.get_text().strip()
            if code:
                examples.append(CodeExample(code=code, language=detect_language(code_node)))
        return ParsedPage(examples=examples)

    def extract_signature(self, soup: BeautifulSoup) -> Optional[str]:
        """Method signature, e.g. ``ajax.reload( callback, resetPaging )``."""
        for selector in SIGNATURE_SELECTORS:
            node = soup.select_one(selector)
            if node is not None:
                return _text(node)

        # API page titles are often the signature itself
        title = _text(soup.find("h1"))
        if title and _SIGNATURE_TITLE_RE.match(title):
            return title
        return None

    def extract_version(self, soup: BeautifulSoup) -> Optional[str]:
        root = soup.body or soup
        match = _VERSION_RE.search(root.get_text(" "))
        return match.group(1) if match else None

    def extract_description(self, soup: BeautifulSoup) -> str:
        heading = soup.select_one('h2[data-anchor="Description"]')
        if heading is not None:
            paragraph = heading.find_next_sibling("p")
            if paragraph is not None:
                return _text(paragraph)

        for selector in DESCRIPTION_SELECTORS:
            text = _text(soup.select_one(selector))
            if len(text) > 50:
                return text
        return ""

    def extract_parameters(self, soup: BeautifulSoup) -> List[Parameter]:
        """Rows of ``table.parameters``.

        A definition row has position, name, type and an "optional" cell; the
        row after it, classed ``continuation``, holds the description.
        """
        table = soup.select_one("table.parameters")
        if table is None:
            return []

        parameters: List[Parameter] = []
        current: Optional[Parameter] = None

        for row in table.select("tbody tr"):
            if "continuation" in (row.get("class") or []):
                if current is not None:
                    cells = row.find_all("td")
                    if cells:
                        current.description = _text(cells[-1])
                    parameters.append(current)
                    current = None
                continue

            cells = row.find_all("td")
            if len(cells) < 4:
                continue

            if current is not None:
                parameters.append(current)

            position_text = _text(cells[0])
            optional_text = _text(cells[3])
            default = _DEFAULT_RE.search(optional_text)
            current = Parameter(
                position=int(position_text) if position_text.isdigit() else len(parameters) + 1,
                name=_text(cells[1].find("code") or cells[1]),
                type=_text(cells[2].find("code") or cells[2]),
                optional="Yes" in optional_text,
                default=default.group(1) if default else None,
            )

        if current is not None:
            parameters.append(current)
        return parameters

    def extract_return_type(self, soup: BeautifulSoup) -> Optional[ReturnType]:
        for heading in soup.select("h2, h3, h4, strong"):
            if not _RETURNS_HEADING_RE.match(_text(heading)):
                continue
            sibling = heading.find_next_sibling()
            if sibling is None:
                continue
            return_text = _text(sibling)
            match = _TYPE_NAME_RE.match(return_text)
            if match:
                return ReturnType(type=match.group(1), description=return_text)
        return None

    def extract_code_examples(self, soup: BeautifulSoup) -> List[CodeExample]:
        examples = []
        for block in soup.select(".reference_example"):
            code_node = block.select_one("pre code")
            if code_node is None:
                continue
            title = _text(block.select_one(".title p")) or None
            examples.append(
                CodeExample(
                    code=code_node.get_text().strip(),
                    title=title,
                    language=detect_language(code_node),
                )
            )
        return examples

    def extract_related_items(self, soup: BeautifulSoup) -> Dict[str, List[str]]:
        """Cross-references grouped by category.

        Each ``.reference_related`` block starts with a bare category label
        (API, Options or Events) followed by a list of linked names.
        """
        related: Dict[str, List[str]] = {category: [] for category in RELATED_CATEGORIES}

        for block in soup.select(".reference_related"):
            label = []
            for child in block.children:
                if isinstance(child, NavigableString):
                    label.append(str(child))
                    continue
                break
            category = "".join(label).strip()

            items = [_text(code) for code in block.select("ul li a code")]
            items = [item for item in items if item]
            if category in related and items:
                related[category] = items

        return related

    def extract_notes(self, soup: BeautifulSoup) -> List[str]:
        notes: List[str] = []
        for node in soup.select(NOTE_SELECTORS):
            text = _text(node)
            if _NOTE_RE.search(text) and text not in notes:
                notes.append(text)
        return notes

    def extract_value_types(self, soup: BeautifulSoup) -> List[ValueType]:
        types = []
        for heading in soup.select("h2, h3"):
            type_text = _text(heading)
            if not _VALUE_TYPE_RE.match(type_text):
                continue
            types.append(
                ValueType(
                    type=type_text.lower(),
                    description=_text(heading.find_next_sibling("p")),
                )
            )
        return types
