"""SQLite storage for structured documents.

The schema keeps one row per document, section and table row so that parsed
versions can be queried or compared later without re-reading the PDFs.
"""
from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Union

from ..core.types import Row, Section, StructuredDocument
from ..errors import DocumentNotFoundError

log = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    version TEXT NOT NULL,
    filename TEXT NOT NULL,
    page_count INTEGER,
    parsed_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS sections (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    document_id INTEGER NOT NULL,
    section_order INTEGER NOT NULL,
    title TEXT,
    pruefidentifikator TEXT NOT NULL,
    kommunikation_von TEXT, -- JSON array
    status_col1_header TEXT,
    status_col2_header TEXT,
    page_start INTEGER,
    FOREIGN KEY (document_id) REFERENCES documents(id)
);

CREATE TABLE IF NOT EXISTS rows (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    section_id INTEGER NOT NULL,
    row_order INTEGER NOT NULL,
    segment_group TEXT,
    segment_code TEXT,
    data_element TEXT,
    beschreibung TEXT,
    status_col1 TEXT,
    status_col2 TEXT,
    bedingung TEXT,
    is_label INTEGER DEFAULT 0,
    FOREIGN KEY (section_id) REFERENCES sections(id)
);

CREATE INDEX IF NOT EXISTS idx_sections_document ON sections(document_id);
CREATE INDEX IF NOT EXISTS idx_sections_pruefid ON sections(pruefidentifikator);
CREATE INDEX IF NOT EXISTS idx_rows_section ON rows(section_id);
"""


@dataclass(frozen=True)
class DocumentMeta:
    id: int
    version: str
    filename: str
    page_count: int
    parsed_at: str


def connect(path: Union[str, Path] = ":memory:") -> sqlite3.Connection:
    """Open (or create) the database at ``path`` and ensure the schema exists."""

    if str(path) != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.executescript(SCHEMA)
    return conn


def _split(value: str | None) -> tuple:
    if not value:
        return ()
    return tuple(part for part in value.split(",") if part)


def _load_list(value: str | None) -> tuple:
    if not value:
        return ()
    return tuple(str(item) for item in json.loads(value))


def insert_document(conn: sqlite3.Connection, filename: str, doc: StructuredDocument) -> int:
    """Store ``doc`` and return the new document id."""

    with conn:
        cur = conn.execute(
            "INSERT INTO documents (version, filename, page_count) VALUES (?, ?, ?)",
            (doc.version, filename, doc.page_count),
        )
        doc_id = int(cur.lastrowid)
        for section_order, section in enumerate(doc.sections):
            cur = conn.execute(
                """
                INSERT INTO sections (document_id, section_order, title, pruefidentifikator,
                    kommunikation_von, status_col1_header, status_col2_header, page_start)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    doc_id,
                    section_order,
                    section.title,
                    section.key,
                    json.dumps(list(section.kommunikation_von), ensure_ascii=False),
                    section.status_col1_header,
                    section.status_col2_header,
                    section.page_start,
                ),
            )
            section_id = int(cur.lastrowid)
            conn.executemany(
                """
                INSERT INTO rows (section_id, row_order, segment_group, segment_code,
                    data_element, beschreibung, status_col1, status_col2, bedingung, is_label)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        section_id,
                        row_order,
                        row.segment_group,
                        row.segment_code,
                        row.data_element,
                        row.beschreibung,
                        row.status_col1,
                        row.status_col2,
                        row.bedingung,
                        1 if row.is_label else 0,
                    )
                    for row_order, row in enumerate(section.rows)
                ],
            )
    log.info("stored %s as document %s (%s sections)", filename, doc_id, len(doc.sections))
    return doc_id


def get_document_meta(conn: sqlite3.Connection, document_id: int) -> DocumentMeta:
    row = conn.execute(
        "SELECT id, version, filename, page_count, parsed_at FROM documents WHERE id = ?",
        (document_id,),
    ).fetchone()
    if row is None:
        raise DocumentNotFoundError(f"No document with id {document_id}")
    return DocumentMeta(
        id=row["id"],
        version=row["version"],
        filename=row["filename"],
        page_count=row["page_count"] or 0,
        parsed_at=row["parsed_at"],
    )


def list_documents(conn: sqlite3.Connection) -> List[DocumentMeta]:
    rows = conn.execute("SELECT id FROM documents ORDER BY id").fetchall()
    return [get_document_meta(conn, row["id"]) for row in rows]


def _load_rows(conn: sqlite3.Connection, section_id: int) -> tuple:
    rows = conn.execute(
        """
        SELECT segment_group, segment_code, data_element, beschreibung,
               status_col1, status_col2, bedingung, is_label
        FROM rows WHERE section_id = ? ORDER BY row_order
        """,
        (section_id,),
    ).fetchall()
    return tuple(
        Row(
            segment_group=r["segment_group"] or "",
            segment_code=r["segment_code"] or "",
            data_element=r["data_element"] or "",
            beschreibung=r["beschreibung"] or "",
            status_col1=r["status_col1"] or "",
            status_col2=r["status_col2"] or "",
            bedingung=r["bedingung"] or "",
            is_label=bool(r["is_label"]),
        )
        for r in rows
    )


def load_document(conn: sqlite3.Connection, document_id: int) -> StructuredDocument:
    """Rebuild the :class:`StructuredDocument` stored under ``document_id``."""

    meta = get_document_meta(conn, document_id)
    section_rows = conn.execute(
        """
        SELECT id, title, pruefidentifikator, kommunikation_von,
               status_col1_header, status_col2_header, page_start
        FROM sections WHERE document_id = ? ORDER BY section_order
        """,
        (document_id,),
    ).fetchall()
    sections = tuple(
        Section(
            title=s["title"] or "",
            pruefidentifikator=_split(s["pruefidentifikator"]),
            kommunikation_von=_load_list(s["kommunikation_von"]),
            status_col1_header=s["status_col1_header"] or "",
            status_col2_header=s["status_col2_header"] or "",
            page_start=s["page_start"] or 0,
            rows=_load_rows(conn, s["id"]),
        )
        for s in section_rows
    )
    return StructuredDocument(version=meta.version, page_count=meta.page_count, sections=sections)


def get_document_stats(conn: sqlite3.Connection, document_id: int) -> Dict[str, int]:
    get_document_meta(conn, document_id)
    section_count = conn.execute(
        "SELECT COUNT(*) FROM sections WHERE document_id = ?", (document_id,)
    ).fetchone()[0]
    row_count = conn.execute(
        """
        SELECT COUNT(*) FROM rows r
        JOIN sections s ON r.section_id = s.id
        WHERE s.document_id = ?
        """,
        (document_id,),
    ).fetchone()[0]
    return {"sectionCount": int(section_count), "rowCount": int(row_count)}
