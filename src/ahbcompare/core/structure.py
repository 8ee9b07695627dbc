"""Rebuild AHB table sections and rows from positioned text fragments.

The structuring pass works page by page:

1. fragments outside the content band (running header/footer) are dropped,
2. the remaining fragments are grouped into visual rows by their y position,
3. every visual row is split into columns by x position,
4. each parsed row is classified by a fixed chain of guards and folded into
   the :class:`_Cursor` accumulator, which owns the open section and the row
   that continuation lines are appended to.

Nothing in here raises for unexpected input: rows that match no rule are
dropped.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Tuple

from ..presets import DEFAULT_LAYOUT, LayoutParams
from .types import Row, Section, StructuredDocument, TextFragment

log = logging.getLogger(__name__)

_SINGLE_CODE_RE = re.compile(r"^\d{5}$")
_DOUBLE_CODE_RE = re.compile(r"^\d{5}\s+\d{5}$")

_VERSION_RE = re.compile(r"Version:\s*([\d.]+\w*)", re.IGNORECASE)
_VERSION_TAIL_RE = re.compile(r"^\s*(\d+\w*)")
_VERSION_COLLAPSED_RE = re.compile(r"Version:(\d+\.\d+\w*)", re.IGNORECASE)

_FREE_TEXT_FIELDS = ("beschreibung", "status_col1", "status_col2", "bedingung")


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


def filter_content(fragments: Iterable[TextFragment], layout: LayoutParams = DEFAULT_LAYOUT) -> List[TextFragment]:
    """Drop blank fragments and those in the running header or footer."""

    return [
        fragment
        for fragment in fragments
        if layout.footer_y_max < fragment.y < layout.header_y_min and fragment.text.strip()
    ]


def group_rows(
    fragments: Iterable[TextFragment], layout: LayoutParams = DEFAULT_LAYOUT
) -> List[List[TextFragment]]:
    """Group fragments into visual rows, top to bottom.

    Fragments are visited in reading order (descending y, then ascending x);
    a fragment stays in the current row while its y is within
    ``layout.row_y_tolerance`` of the previous fragment.
    """

    rows: List[List[TextFragment]] = []
    current: List[TextFragment] = []
    previous_y: Optional[float] = None
    for fragment in sorted(fragments, key=lambda f: (-f.y, f.x)):
        if previous_y is not None and abs(fragment.y - previous_y) <= layout.row_y_tolerance:
            current.append(fragment)
        else:
            if current:
                rows.append(current)
            current = [fragment]
        previous_y = fragment.y
    if current:
        rows.append(current)
    return rows


def column_for(x: float, layout: LayoutParams = DEFAULT_LAYOUT) -> str:
    """Return the :class:`Row` field a fragment starting at ``x`` belongs to."""

    if x < layout.edifact_max:
        if x < layout.segment_group_max:
            return "segment_group"
        if x < layout.segment_code_max:
            return "segment_code"
        return "data_element"
    if x < layout.beschreibung_max:
        return "beschreibung"
    if x < layout.status1_max:
        return "status_col1"
    if x < layout.status2_max:
        return "status_col2"
    return "bedingung"


def parse_row(fragments: Sequence[TextFragment], layout: LayoutParams = DEFAULT_LAYOUT) -> Row:
    """Concatenate the fragments of one visual row column by column."""

    parts: Dict[str, List[str]] = {}
    for fragment in sorted(fragments, key=lambda f: f.x):
        parts.setdefault(column_for(fragment.x, layout), []).append(fragment.text.strip())
    return Row(**{name: " ".join(t for t in texts if t) for name, texts in parts.items()})


# ---------------------------------------------------------------------------
# Row predicates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Rules:
    """Layout vocabulary with the patterns compiled once per document."""

    layout: LayoutParams
    segment_group_re: Pattern[str]
    data_element_re: Pattern[str]

    @classmethod
    def from_layout(cls, layout: LayoutParams) -> "_Rules":
        return cls(layout, layout.segment_group_re, layout.data_element_re)

    def is_table_header(self, row: Row) -> bool:
        text = " ".join(
            (row.segment_group, row.segment_code, row.data_element, row.beschreibung)
        ).lower()
        return all(marker in text for marker in self.layout.table_header_markers)

    def section_codes(self, row: Row) -> Tuple[str, ...]:
        """Return the Prüfidentifikatoren of a section header row, else ``()``.

        The marker word alone is not enough: data rows may mention it too, but
        only a header carries bare 5-digit codes in a status column.
        """

        if self.layout.section_marker not in row.beschreibung.lower():
            return ()
        codes: List[str] = []
        for value in (row.status_col1.strip(), row.status_col2.strip()):
            if _SINGLE_CODE_RE.match(value) or _DOUBLE_CODE_RE.match(value):
                codes.extend(code for code in value.split() if code not in codes)
        return tuple(codes)

    def is_kommunikation_von(self, row: Row) -> bool:
        return self.layout.kommunikation_marker in row.beschreibung.lower()

    def is_status_header(self, row: Row) -> bool:
        if row.has_structure:
            return False
        status = row.status_col1.lower()
        return any(keyword in status for keyword in self.layout.status_header_keywords)

    def is_data_row(self, row: Row) -> bool:
        return bool(
            self.segment_group_re.match(row.segment_group)
            or row.segment_code in self.layout.known_segments
            or self.data_element_re.match(row.data_element)
            or (row.segment_group and row.segment_code)
        )


def _has_free_text(row: Row) -> bool:
    return any(getattr(row, name) for name in _FREE_TEXT_FIELDS)


def _is_label(row: Row) -> bool:
    return bool(row.beschreibung) and not (row.status_col1 or row.status_col2)


def _extend(row: Row, continuation: Row) -> Row:
    changes = {}
    for name in _FREE_TEXT_FIELDS:
        extra = getattr(continuation, name)
        if extra:
            current = getattr(row, name)
            changes[name] = f"{current} {extra}" if current else extra
    # a label holds only a description; status or condition text demotes it
    if row.is_label and set(changes) - {"beschreibung"}:
        changes["is_label"] = False
    return replace(row, **changes)


# ---------------------------------------------------------------------------
# Section building
# ---------------------------------------------------------------------------


@dataclass
class _Cursor:
    """Accumulator threaded through the row stream of one document."""

    sections: List[Section] = field(default_factory=list)
    section: Optional[Section] = None
    rows: List[Row] = field(default_factory=list)
    has_last_row: bool = False
    pending_title: str = ""

    def flush(self) -> None:
        if self.section is not None:
            self.sections.append(replace(self.section, rows=tuple(self.rows)))
        self.section = None
        self.rows = []
        self.has_last_row = False

    def open_section(self, codes: Tuple[str, ...], page_number: int) -> None:
        self.flush()
        self.section = Section(
            title=self.pending_title.strip(),
            pruefidentifikator=codes,
            page_start=page_number,
        )
        self.pending_title = ""

    def append(self, row: Row) -> None:
        self.rows.append(row)
        self.has_last_row = True

    def continue_last(self, row: Row) -> None:
        self.rows[-1] = _extend(self.rows[-1], row)


def _consume(cursor: _Cursor, row: Row, page_number: int, rules: _Rules) -> _Cursor:
    """Fold one parsed row into ``cursor``; the guard order is significant."""

    if rules.is_table_header(row):
        return cursor

    codes = rules.section_codes(row)
    if codes:
        if cursor.section is not None and codes == cursor.section.pruefidentifikator:
            # header repeated at the top of a continuation page
            return cursor
        cursor.open_section(codes, page_number)
        return cursor

    if cursor.section is not None:
        if rules.is_kommunikation_von(row):
            if not cursor.section.kommunikation_von:
                values = tuple(v.strip() for v in (row.status_col1, row.status_col2) if v.strip())
                cursor.section = replace(cursor.section, kommunikation_von=values)
            return cursor
        if rules.is_status_header(row):
            if not cursor.section.status_col1_header:
                cursor.section = replace(
                    cursor.section,
                    status_col1_header=row.status_col1.strip(),
                    status_col2_header=row.status_col2.strip(),
                )
            return cursor
    else:
        if row.beschreibung and not row.segment_group:
            cursor.pending_title = row.beschreibung
        return cursor

    if rules.is_data_row(row):
        cursor.append(row)
        return cursor

    if not row.has_structure and _has_free_text(row) and cursor.has_last_row:
        cursor.continue_last(row)
        return cursor

    if not row.has_structure and _is_label(row):
        cursor.append(Row.label(row.beschreibung))
        cursor.pending_title = row.beschreibung
        return cursor

    return cursor


def detect_version(fragments: Iterable[TextFragment], layout: LayoutParams = DEFAULT_LAYOUT) -> str:
    """Read the document version from the fragments of the first page."""

    ordered = [fragment for row in group_rows(fragments, layout) for fragment in sorted(row, key=lambda f: f.x)]
    text = " ".join(fragment.text for fragment in ordered)

    match = _VERSION_RE.search(text)
    if match:
        version = match.group(1)
        # "V2.1" is sometimes extracted as "2." followed by "1"
        tail = _VERSION_TAIL_RE.match(text[match.end(1):])
        if version.endswith(".") and tail:
            return version + tail.group(1)
        return version

    collapsed = re.sub(r"\s+", "", text)
    match = _VERSION_COLLAPSED_RE.search(collapsed)
    return match.group(1) if match else "unknown"


def structure_document(
    pages: Sequence[Sequence[TextFragment]],
    layout: Optional[LayoutParams] = None,
) -> StructuredDocument:
    """Turn the fragments of every page into a :class:`StructuredDocument`.

    ``pages`` holds one fragment sequence per page, in page order; fragment
    order within a page is irrelevant.
    """

    layout = layout or DEFAULT_LAYOUT
    rules = _Rules.from_layout(layout)
    cursor = _Cursor()
    for page_number, fragments in enumerate(pages, start=1):
        content = filter_content(fragments, layout)
        if not content:
            continue
        for visual_row in group_rows(content, layout):
            cursor = _consume(cursor, parse_row(visual_row, layout), page_number, rules)
    cursor.flush()

    version = detect_version(pages[0], layout) if pages else "unknown"
    for section in cursor.sections:
        log.debug("section [%s] page %s: %s rows", section.key, section.page_start, len(section.rows))
    return StructuredDocument(version=version, page_count=len(pages), sections=tuple(cursor.sections))
