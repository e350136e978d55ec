"""SQLite store for scraped DataTables documentation.

Pages live in ``documentation`` with an external-content FTS5 index kept in
sync by triggers; structured fields extracted from each page live in side
tables keyed by ``doc_id``. See ``schema.sql``.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .models import DocumentRecord, ParsedPage

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.sql"


class DatabaseNotFoundError(Exception):
    """Raised when the store is opened for reading but no database exists."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = str(db_path)
        super().__init__(
            f"Database not found at {self.db_path}. Run 'datatables-mcp index' first."
        )


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class DocumentationStore:
    """SQLite FTS5 documentation store.

    The connection is opened lazily so a server can start before the index
    has been built; every read then fails with ``DatabaseNotFoundError``
    until ``datatables-mcp index`` has run.
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        self.conn: Optional[sqlite3.Connection] = None

    def __enter__(self) -> "DocumentationStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def connect(self, create: bool = False) -> sqlite3.Connection:
        """Open the database, creating it and its schema when ``create`` is set."""
        if self.conn is not None:
            return self.conn

        if not self.db_path.exists():
            if not create:
                raise DatabaseNotFoundError(self.db_path)
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")

        if create:
            self.initialize_schema()

        logger.info(f"SQLite store opened: {self.db_path}")
        return self.conn

    def initialize_schema(self):
        """Apply ``schema.sql``; every statement is idempotent."""
        conn = self.connect(create=True)
        conn.executescript(SCHEMA_PATH.read_text(encoding="utf-8"))
        conn.commit()

    def close(self):
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.info("SQLite store closed")

    # -- writes -----------------------------------------------------------

    def is_url_indexed(self, url: str) -> bool:
        row = self.connect().execute(
            "SELECT COUNT(*) FROM documentation WHERE url = ?", (url,)
        ).fetchone()
        return row[0] > 0

    def store_document(self, record: DocumentRecord) -> int:
        """Insert or update a page by URL and return its id."""
        conn = self.connect(create=True)
        # An upsert fires the UPDATE trigger; INSERT OR REPLACE would skip the
        # FTS delete trigger unless recursive triggers are enabled.
        conn.execute(
            """
            INSERT INTO documentation (title, url, content, section, doc_type, signature, since_version, description)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(url) DO UPDATE SET
                title = excluded.title,
                content = excluded.content,
                section = excluded.section,
                doc_type = excluded.doc_type,
                signature = excluded.signature,
                since_version = excluded.since_version,
                description = excluded.description,
                indexed_at = CURRENT_TIMESTAMP
            """,
            (
                record.title,
                record.url,
                record.content,
                record.section,
                record.doc_type,
                record.signature,
                record.since_version,
                record.description,
            ),
        )
        doc_id = conn.execute(
            "SELECT id FROM documentation WHERE url = ?", (record.url,)
        ).fetchone()[0]
        conn.commit()
        return doc_id

    def store_structured(self, doc_id: int, page: ParsedPage):
        """Replace all structured rows belonging to ``doc_id``."""
        conn = self.connect(create=True)
        for table in (
            "parameters",
            "return_types",
            "code_examples",
            "related_items",
            "notes_caveats",
            "value_types",
        ):
            conn.execute(f"DELETE FROM {table} WHERE doc_id = ?", (doc_id,))

        conn.executemany(
            """
            INSERT INTO parameters (doc_id, position, name, type, optional, default_value, description)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (doc_id, p.position, p.name, p.type, int(p.optional), p.default, p.description)
                for p in page.parameters
            ],
        )
        if page.returns:
            conn.execute(
                "INSERT INTO return_types (doc_id, type, description) VALUES (?, ?, ?)",
                (doc_id, page.returns.type, page.returns.description),
            )
        conn.executemany(
            "INSERT INTO code_examples (doc_id, title, code, language) VALUES (?, ?, ?, ?)",
            [(doc_id, e.title, e.code, e.language) for e in page.examples],
        )
        conn.executemany(
            "INSERT INTO related_items (doc_id, related_doc_title, category) VALUES (?, ?, ?)",
            [
                (doc_id, title, category)
                for category, titles in page.related.items()
                for title in titles
            ],
        )
        conn.executemany(
            "INSERT INTO notes_caveats (doc_id, note_text) VALUES (?, ?)",
            [(doc_id, note) for note in page.notes],
        )
        conn.executemany(
            "INSERT INTO value_types (doc_id, type, description) VALUES (?, ?, ?)",
            [(doc_id, v.type, v.description) for v in page.value_types],
        )
        conn.commit()

    # -- reads ------------------------------------------------------------

    def search(
        self,
        fts_query: str,
        limit: int = 10,
        section: Optional[str] = None,
        doc_type: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Rank-ordered full-text search; ``fts_query`` must already be FTS5-safe."""
        conditions = ["documentation_fts MATCH ?"]
        params: List[Any] = [fts_query]

        if section:
            conditions.append("d.section LIKE ? ESCAPE '\\'")
            params.append(f"%{_escape_like(section)}%")
        if doc_type:
            conditions.append("d.doc_type = ?")
            params.append(doc_type)

        params.append(limit)
        rows = self.connect().execute(
            f"""
            SELECT d.id, d.title, d.url, d.content, d.section, d.doc_type,
                   documentation_fts.rank AS rank
            FROM documentation_fts
            JOIN documentation d ON d.id = documentation_fts.rowid
            WHERE {' AND '.join(conditions)}
            ORDER BY rank
            LIMIT ?
            """,
            params,
        ).fetchall()
        return [dict(row) for row in rows]

    def search_examples(
        self, fts_query: str, language: Optional[str] = None, limit: int = 10
    ) -> List[Dict[str, Any]]:
        """Code examples attached to pages matching ``fts_query``."""
        conditions = ["documentation_fts MATCH ?"]
        params: List[Any] = [fts_query]
        if language:
            conditions.append("e.language = ?")
            params.append(language)

        params.append(limit)
        rows = self.connect().execute(
            f"""
            SELECT d.id AS doc_id, d.title AS doc_title, d.url, d.section, d.doc_type,
                   e.title, e.code, e.language,
                   documentation_fts.rank AS rank
            FROM documentation_fts
            JOIN documentation d ON d.id = documentation_fts.rowid
            JOIN code_examples e ON e.doc_id = d.id
            WHERE {' AND '.join(conditions)}
            ORDER BY rank, e.id
            LIMIT ?
            """,
            params,
        ).fetchall()
        return [dict(row) for row in rows]

    def find_document(self, name: str) -> Optional[Dict[str, Any]]:
        """Look a page up by title, preferring reference pages.

        Tries the exact title, then ``name()`` for API methods called without
        parentheses, then a title prefix match.
        """
        conn = self.connect()
        order = "ORDER BY CASE doc_type WHEN 'reference' THEN 0 ELSE 1 END, id LIMIT 1"
        lookups = [
            ("title = ? COLLATE NOCASE", name),
            ("title = ? COLLATE NOCASE", f"{name}()"),
            ("title LIKE ? ESCAPE '\\'", f"{_escape_like(name)}%"),
        ]
        for condition, value in lookups:
            row = conn.execute(
                f"SELECT * FROM documentation WHERE {condition} {order}", (value,)
            ).fetchone()
            if row:
                return dict(row)
        return None

    def get_details(self, doc_id: int) -> Dict[str, List[Dict[str, Any]]]:
        """All structured rows for a page, grouped by table."""
        conn = self.connect()
        queries = {
            "parameters": "SELECT position, name, type, optional, default_value, description "
                          "FROM parameters WHERE doc_id = ? ORDER BY position, id",
            "return_types": "SELECT type, description FROM return_types WHERE doc_id = ? ORDER BY id",
            "examples": "SELECT title, code, language FROM code_examples WHERE doc_id = ? ORDER BY id",
            "related": "SELECT related_doc_title, category FROM related_items WHERE doc_id = ? ORDER BY id",
            "notes": "SELECT note_text FROM notes_caveats WHERE doc_id = ? ORDER BY id",
            "value_types": "SELECT type, description FROM value_types WHERE doc_id = ? ORDER BY id",
        }
        return {
            key: [dict(row) for row in conn.execute(sql, (doc_id,)).fetchall()]
            for key, sql in queries.items()
        }

    def get_related(self, doc_id: int, category: Optional[str] = None) -> List[Dict[str, Any]]:
        sql = "SELECT related_doc_title, category FROM related_items WHERE doc_id = ?"
        params: List[Any] = [doc_id]
        if category:
            sql += " AND category = ?"
            params.append(category)
        sql += " ORDER BY category, id"
        return [dict(row) for row in self.connect().execute(sql, params).fetchall()]

    def get_stats(self) -> Dict[str, Any]:
        row = self.connect().execute(
            """
            SELECT COUNT(*) AS total_docs,
                   COUNT(DISTINCT doc_type) AS doc_types,
                   COUNT(DISTINCT section) AS sections
            FROM documentation
            """
        ).fetchone()
        return dict(row)

    def get_doc_types(self) -> List[Dict[str, Any]]:
        rows = self.connect().execute(
            """
            SELECT doc_type, COUNT(*) AS count
            FROM documentation
            GROUP BY doc_type
            ORDER BY count DESC
            """
        ).fetchall()
        return [dict(row) for row in rows]
