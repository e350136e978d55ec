"""DataTables documentation scraper.

Walks the crawl catalog in two passes per catalog kind: category pages are
fetched first to discover individual page links, then each page is fetched,
reduced to searchable text plus structured fields, and written to the store.
"""

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup
from trafilatura import extract

from indexer.models import DocumentRecord, ParsedPage
from indexer.sqlite_adapter import DocumentationStore
from observability.logging import get_structured_logger
from sources.loader import CATALOG_KINDS, SourceConfig

from .structured_parser import StructuredParser

logger = logging.getLogger(__name__)
progress = get_structured_logger(__name__, component="indexer")

DOC_TYPES = {
    "manual": "manual",
    "examples": "example",
    "reference": "reference",
    "extensions": "extension",
}

CONTENT_SELECTORS = {
    "manual": ".doc-content, article, .manual-content, main",
    "examples": ".demo-description, .example-description, article, main",
    "reference": ".doc-content, article, .reference-content, main",
    "extensions": ".doc-content, article, .extension-content, main",
}
NOISE_SELECTORS = "script, style, nav, .navigation, .sidebar"
CODE_SELECTORS = "pre code, .code-example"

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass
class PageLink:
    """A documentation page found on a category page."""
    url: str
    title: str
    section: str
    kind: str
    category: str = ""


@dataclass
class IndexStats:
    """Statistics for an indexing run."""
    discovered: int = 0
    indexed: int = 0
    skipped: int = 0
    empty: int = 0
    failed: int = 0
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None

    @property
    def duration(self) -> Optional[timedelta]:
        if self.end_time:
            return self.end_time - self.start_time
        return None

    def finish(self):
        self.end_time = datetime.now()


def _dedupe(links: Iterable[PageLink]) -> List[PageLink]:
    seen: Dict[str, PageLink] = {}
    for link in links:
        if link.title and link.url not in seen:
            seen[link.url] = link
    return list(seen.values())


def _absolute(href: str, base_url: str) -> str:
    href = href.split("#")[0]
    if href.startswith("//"):
        return f"https:{href}"
    if href.startswith("/"):
        return f"{base_url}{href}"
    return href


def discover_manual_pages(html: str, base_url: str, slug: str, label: str) -> List[PageLink]:
    """Subsection links of one manual section: ``/manual/<slug>/<page>``."""
    soup = BeautifulSoup(html, "html.parser")
    pattern = re.compile(r"^/manual/([^/#?]+)/([^/#?]+)")
    section = slug.replace("-", " ").capitalize()
    links = []
    for a in soup.select('a[href^="/manual/"]'):
        match = pattern.match(a["href"])
        if not match or match.group(1) != slug:
            continue
        title = a.get_text().strip()
        links.append(PageLink(
            url=_absolute(a["href"], base_url),
            title=title,
            section=f"{section} - {title}",
            kind="manual",
            category=label,
        ))
    return _dedupe(links)


def discover_example_pages(html: str, base_url: str, slug: str, label: str) -> List[PageLink]:
    """Example links are relative: ``./zero_configuration.html``."""
    soup = BeautifulSoup(html, "html.parser")
    links = []
    for a in soup.select('a[href$=".html"]'):
        href = a["href"]
        if "#" in href or not href.startswith("./") or href == "./index.html":
            continue
        links.append(PageLink(
            url=f"{base_url}/examples/{slug}/{href[2:]}",
            title=a.get_text().strip(),
            section=label,
            kind="examples",
            category=label,
        ))
    return _dedupe(links)


def discover_reference_pages(html: str, base_url: str, slug: str, label: str) -> List[PageLink]:
    """Reference links, absolute (``/reference/api/draw()``) or protocol-relative."""
    soup = BeautifulSoup(html, "html.parser")
    host = re.escape(urlparse(base_url).netloc)
    pattern = re.compile(rf"^(?://{host})?/reference/{re.escape(slug)}/([^/#?]+)")
    links = []
    for a in soup.select("a[href]"):
        href = a["href"]
        if not pattern.match(href):
            continue
        links.append(PageLink(
            url=_absolute(href, base_url),
            title=a.get_text().strip(),
            section=label,
            kind="reference",
            category=label,
        ))
    return _dedupe(links)


def discover_extension_pages(html: str, base_url: str, slug: str, label: str) -> List[PageLink]:
    """Extension manual and example pages, ``/extensions/<slug>/[examples/]<page>.html``."""
    soup = BeautifulSoup(html, "html.parser")
    patterns = [
        re.compile(rf"^/extensions/{re.escape(slug)}/([^/#?]+\.html)"),
        re.compile(rf"^/extensions/{re.escape(slug)}/examples/([^/#?]+\.html)"),
    ]
    links = []
    for a in soup.select("a[href]"):
        href = a["href"]
        if href.startswith("../"):
            continue
        if href.startswith("./"):
            href = f"/extensions/{slug}/{href[2:]}"
        if not any(pattern.match(href) for pattern in patterns):
            continue
        title = a.get_text().strip()
        links.append(PageLink(
            url=_absolute(href, base_url),
            title=title,
            section=f"{label} - {title}",
            kind="extensions",
            category=label,
        ))
    return _dedupe(links)


DISCOVERERS: Dict[str, Callable[[str, str, str, str], List[PageLink]]] = {
    "manual": discover_manual_pages,
    "examples": discover_example_pages,
    "reference": discover_reference_pages,
    "extensions": discover_extension_pages,
}


def extract_text(node) -> str:
    """Visible text of ``node`` with navigation chrome removed and whitespace collapsed."""
    for noise in node.select(NOISE_SELECTORS):
        noise.decompose()
    return _WHITESPACE_RE.sub(" ", node.get_text(" ")).strip()


def extract_page_content(html: str, kind: str) -> str:
    """Searchable text for a page.

    Content comes from the first matching content container. Pages without
    one fall back to trafilatura's main-content extraction, then to the body.
    Code blocks are appended for every kind except manual pages.
    """
    soup = BeautifulSoup(html, "html.parser")
    code_blocks = [] if kind == "manual" else [
        node.get_text().strip() for node in soup.select(CODE_SELECTORS)
    ]

    container = soup.select_one(CONTENT_SELECTORS[kind])
    if container is not None:
        text = extract_text(container)
    else:
        text = extract(html, include_tables=True) or ""
        text = _WHITESPACE_RE.sub(" ", text).strip()
        if len(text) < 40:
            text = extract_text(soup.body or soup)

    code_text = "".join(f"\n\nCode example:\n{code}\n" for code in code_blocks if code)
    return text + code_text


class DocumentationIndexer:
    """Scrapes the documentation site described by a ``SourceConfig`` into a store."""

    def __init__(self,
                 store: DocumentationStore,
                 source: SourceConfig,
                 session: Optional[requests.Session] = None,
                 request_timeout: float = 30.0,
                 request_delay: float = 1.5,
                 discovery_delay: float = 1.0,
                 user_agent: Optional[str] = None,
                 parser: Optional[StructuredParser] = None):
        self.store = store
        self.source = source
        self.request_timeout = request_timeout
        self.request_delay = request_delay
        self.discovery_delay = discovery_delay
        self.parser = parser or StructuredParser()

        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent or source.user_agent})

    def fetch(self, url: str) -> str:
        response = self.session.get(url, timeout=self.request_timeout)
        response.raise_for_status()
        return response.text

    def _pause(self, seconds: float):
        if seconds > 0:
            time.sleep(seconds)

    def discover(self, kind: str) -> List[PageLink]:
        """First pass: collect page links from every category page of ``kind``."""
        discoverer = DISCOVERERS[kind]
        links: List[PageLink] = []

        for slug, label in self.source.catalog(kind).items():
            category_url = f"{self.source.base_url}/{kind}/{slug}"

            # Manual sections and extensions are pages in their own right
            if kind in ("manual", "extensions"):
                links.append(PageLink(
                    url=category_url, title=label, section=label, kind=kind, category=label
                ))

            try:
                html = self.fetch(category_url)
            except requests.RequestException as e:
                logger.warning(f"Error discovering {label}: {e}")
                continue

            found = discoverer(html, self.source.base_url, slug, label)
            logger.info(f"Discovered {len(found)} {kind} pages in {label}")
            links.extend(found)
            self._pause(self.discovery_delay)

        return _dedupe(links)

    def parse_structured(self, link: PageLink, html: str) -> ParsedPage:
        if link.kind == "reference":
            if link.category == "API":
                return self.parser.parse_api_page(html)
            return self.parser.parse_option_page(html)
        if link.kind == "examples":
            return self.parser.parse_example_page(html)
        return ParsedPage()

    def index_page(self, link: PageLink) -> bool:
        """Fetch, extract and store one page; False when it had no content."""
        html = self.fetch(link.url)
        content = extract_page_content(html, link.kind)
        if not content:
            logger.warning(f"No content extracted from {link.url}")
            return False

        title = link.title
        if link.kind in ("manual", "extensions"):
            h1 = BeautifulSoup(html, "html.parser").find("h1")
            if h1 is not None and h1.get_text().strip():
                title = h1.get_text().strip()

        page = self.parse_structured(link, html)
        doc_id = self.store.store_document(DocumentRecord(
            title=title,
            url=link.url,
            content=content,
            section=link.section,
            doc_type=DOC_TYPES[link.kind],
            signature=page.signature,
            since_version=page.since_version,
            description=page.description or None,
        ))
        if not page.is_empty:
            self.store.store_structured(doc_id, page)
        return True

    def index_all(self, kinds: Iterable[str] = CATALOG_KINDS, refresh: bool = False) -> IndexStats:
        """Index every page of the requested catalog kinds.

        Already-indexed URLs are skipped unless ``refresh`` is set. A failing
        page is logged and counted; it never stops the run.
        """
        stats = IndexStats()
        self.store.connect(create=True)

        for kind in kinds:
            if kind not in DOC_TYPES:
                raise ValueError(f"Unknown catalog kind: {kind}")

            links = self.discover(kind)
            stats.discovered += len(links)
            logger.info(f"Total {kind} pages discovered: {len(links)}")

            for position, link in enumerate(links, 1):
                if not refresh and self.store.is_url_indexed(link.url):
                    stats.skipped += 1
                    progress.debug("Skipping already indexed page", url=link.url)
                    continue

                progress.info(
                    f"[{position}/{len(links)}] {link.section} - {link.title}",
                    url=link.url,
                    kind=kind,
                )
                try:
                    if self.index_page(link):
                        stats.indexed += 1
                    else:
                        stats.empty += 1
                except requests.RequestException as e:
                    stats.failed += 1
                    logger.warning(f"Error fetching {link.url}: {e}")
                except Exception:
                    stats.failed += 1
                    progress.exception("Error indexing page", url=link.url)

                self._pause(self.request_delay)

        stats.finish()
        logger.info(
            f"Indexing finished: {stats.indexed} indexed, {stats.skipped} skipped, "
            f"{stats.empty} empty, {stats.failed} failed"
        )
        return stats
