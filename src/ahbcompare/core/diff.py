"""Structural comparison of two structured AHB documents.

Sections are matched by their complete Prüfidentifikator string and rows by a
compound key built from the EDIFACT structure columns.  Rows sharing a key are
paired in document order.  All keys and equality tests use
:func:`~ahbcompare.utils.normalize.normalize_text`.
"""
from __future__ import annotations

import logging
import re
from typing import Dict, List, Sequence, Tuple

from ..utils.normalize import normalize_text, texts_equal
from .types import (
    DIFF_KINDS,
    ComparisonResult,
    FieldChange,
    Row,
    RowDiff,
    Section,
    SectionDiff,
    StructuredDocument,
)

log = logging.getLogger(__name__)

_CODE_TOKEN_RE = re.compile(r"^[A-Z0-9_]{1,10}$")

# report label -> Row attribute
_TEXT_FIELDS = (
    ("beschreibung", "beschreibung"),
    ("statusCol1", "status_col1"),
    ("statusCol2", "status_col2"),
    ("bedingung", "bedingung"),
)
_STRUCTURE_FIELDS = (
    ("segmentGroup", "segment_group"),
    ("segmentCode", "segment_code"),
)

_SECTION_ORDER = {"modified": 0, "added": 1, "removed": 2, "unchanged": 3}


def row_key(row: Row, position: int) -> str:
    """Return the matching key of ``row``.

    ``position`` is the row's index within its section and is only used when
    the row carries no structure at all.
    """

    if row.is_label:
        return f"LABEL:{normalize_text(row.beschreibung)}"
    element = normalize_text(row.data_element)
    parts = [
        value
        for value in (normalize_text(row.segment_group), normalize_text(row.segment_code), element)
        if value
    ]
    if not parts:
        return f"POS:{position}"
    if element:
        tokens = normalize_text(row.beschreibung).split()
        # qualifier rows share SG/segment/element and differ by the code value
        if tokens and _CODE_TOKEN_RE.match(tokens[0]):
            parts.append(tokens[0])
    return "|".join(parts)


def diff_row_fields(old: Row, new: Row) -> List[FieldChange]:
    changes: List[FieldChange] = []
    for label, attr in _TEXT_FIELDS:
        v1 = getattr(old, attr).strip()
        v2 = getattr(new, attr).strip()
        if not texts_equal(v1, v2):
            changes.append(FieldChange(label, v1, v2))
    for label, attr in _STRUCTURE_FIELDS:
        v1 = getattr(old, attr)
        v2 = getattr(new, attr)
        if not texts_equal(v1, v2):
            changes.append(FieldChange(label, v1, v2))
    return changes


def _group_by_key(rows: Sequence[Row]) -> Dict[str, List[Row]]:
    grouped: Dict[str, List[Row]] = {}
    for position, row in enumerate(rows):
        grouped.setdefault(row_key(row, position), []).append(row)
    return grouped


def _ordered_keys(first: Dict[str, object], second: Dict[str, object]) -> List[str]:
    keys = list(first)
    keys.extend(key for key in second if key not in first)
    return keys


def compare_rows(old_rows: Sequence[Row], new_rows: Sequence[Row]) -> List[RowDiff]:
    """Match two row sequences by compound key, duplicates by position."""

    old_map = _group_by_key(old_rows)
    new_map = _group_by_key(new_rows)

    diffs: List[RowDiff] = []
    for key in _ordered_keys(old_map, new_map):
        olds = old_map.get(key, [])
        news = new_map.get(key, [])
        for index in range(max(len(olds), len(news))):
            r1 = olds[index] if index < len(olds) else None
            r2 = news[index] if index < len(news) else None
            if r1 is not None and r2 is not None:
                changes = diff_row_fields(r1, r2)
                kind = "modified" if changes else "unchanged"
                diffs.append(RowDiff(kind, key, r1, r2, tuple(changes)))
            elif r1 is not None:
                diffs.append(RowDiff("removed", key, row_old=r1))
            else:
                diffs.append(RowDiff("added", key, row_new=r2))
    return diffs


def section_key(section: Section) -> str:
    return normalize_text(section.key)


def meta_changes(old: Section, new: Section) -> List[FieldChange]:
    pairs: Tuple[Tuple[str, str, str], ...] = (
        ("title", old.title, new.title),
        ("kommunikationVon", ",".join(old.kommunikation_von), ",".join(new.kommunikation_von)),
        ("statusCol1Header", old.status_col1_header, new.status_col1_header),
        ("statusCol2Header", old.status_col2_header, new.status_col2_header),
    )
    return [
        FieldChange(name, v1, v2)
        for name, v1, v2 in pairs
        if not texts_equal(v1, v2)
    ]


def _first_by_key(sections: Sequence[Section]) -> Dict[str, Section]:
    mapping: Dict[str, Section] = {}
    for section in sections:
        key = section_key(section)
        if key in mapping:
            log.warning("duplicate Prüfidentifikator %s on page %s ignored", key, section.page_start)
            continue
        mapping[key] = section
    return mapping


def _all_rows(section: Section, kind: str) -> Tuple[RowDiff, ...]:
    if kind == "added":
        return tuple(
            RowDiff("added", row_key(row, pos), row_new=row) for pos, row in enumerate(section.rows)
        )
    return tuple(
        RowDiff("removed", row_key(row, pos), row_old=row) for pos, row in enumerate(section.rows)
    )


def compare_sections(old_sections: Sequence[Section], new_sections: Sequence[Section]) -> List[SectionDiff]:
    """Match sections by their full Prüfidentifikator string.

    A changed code set is an identity change: ``"21025,21026"`` against
    ``"21025"`` yields one removed and one added section.  The result is in
    report order (modified, added, removed, unchanged).
    """

    old_map = _first_by_key(old_sections)
    new_map = _first_by_key(new_sections)

    diffs: List[SectionDiff] = []
    for key in _ordered_keys(old_map, new_map):
        s1 = old_map.get(key)
        s2 = new_map.get(key)
        if s1 is None:
            diffs.append(SectionDiff("added", key, section_new=s2, row_diffs=_all_rows(s2, "added")))
        elif s2 is None:
            diffs.append(SectionDiff("removed", key, section_old=s1, row_diffs=_all_rows(s1, "removed")))
        else:
            row_diffs = compare_rows(s1.rows, s2.rows)
            meta = meta_changes(s1, s2)
            changed = bool(meta) or any(d.type != "unchanged" for d in row_diffs)
            diffs.append(
                SectionDiff(
                    "modified" if changed else "unchanged",
                    key,
                    section_old=s1,
                    section_new=s2,
                    meta_changes=tuple(meta),
                    row_diffs=tuple(row_diffs),
                )
            )

    diffs.sort(key=lambda d: _SECTION_ORDER[d.type])
    return diffs


def compare_documents(old_doc: StructuredDocument, new_doc: StructuredDocument) -> ComparisonResult:
    section_diffs = compare_sections(old_doc.sections, new_doc.sections)
    summary = {kind: 0 for kind in DIFF_KINDS}
    for section_diff in section_diffs:
        summary[section_diff.type] += 1
    log.info(
        "sections: %s modified, %s added, %s removed, %s unchanged",
        summary["modified"],
        summary["added"],
        summary["removed"],
        summary["unchanged"],
    )
    return ComparisonResult(summary=summary, section_diffs=tuple(section_diffs))
