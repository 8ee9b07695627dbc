from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Tuple

DiffKind = Literal["added", "removed", "modified", "unchanged"]

DIFF_KINDS: Tuple[DiffKind, ...] = ("added", "removed", "modified", "unchanged")


@dataclass(frozen=True)
class TextFragment:
    text: str
    x: float
    y: float  # PDF user space, grows upwards


@dataclass(frozen=True)
class Row:
    segment_group: str = ""
    segment_code: str = ""
    data_element: str = ""
    beschreibung: str = ""
    status_col1: str = ""
    status_col2: str = ""
    bedingung: str = ""
    is_label: bool = False

    @classmethod
    def label(cls, text: str) -> "Row":
        return cls(beschreibung=text, is_label=True)

    @property
    def has_structure(self) -> bool:
        return bool(self.segment_group or self.segment_code or self.data_element)

    def to_dict(self) -> Dict[str, object]:
        return {
            "segmentGroup": self.segment_group,
            "segmentCode": self.segment_code,
            "dataElement": self.data_element,
            "beschreibung": self.beschreibung,
            "statusCol1": self.status_col1,
            "statusCol2": self.status_col2,
            "bedingung": self.bedingung,
            "isLabel": self.is_label,
        }


@dataclass(frozen=True)
class Section:
    title: str
    pruefidentifikator: Tuple[str, ...]
    kommunikation_von: Tuple[str, ...] = ()
    status_col1_header: str = ""
    status_col2_header: str = ""
    page_start: int = 0
    rows: Tuple[Row, ...] = ()

    @property
    def key(self) -> str:
        return ",".join(self.pruefidentifikator)

    def to_dict(self) -> Dict[str, object]:
        return {
            "title": self.title,
            "pruefidentifikator": list(self.pruefidentifikator),
            "kommunikationVon": list(self.kommunikation_von),
            "statusCol1Header": self.status_col1_header,
            "statusCol2Header": self.status_col2_header,
            "pageStart": self.page_start,
            "rows": [row.to_dict() for row in self.rows],
        }


@dataclass(frozen=True)
class StructuredDocument:
    version: str
    page_count: int
    sections: Tuple[Section, ...] = ()

    @property
    def row_count(self) -> int:
        return sum(len(section.rows) for section in self.sections)

    def to_dict(self) -> Dict[str, object]:
        return {
            "version": self.version,
            "pageCount": self.page_count,
            "sections": [section.to_dict() for section in self.sections],
        }


@dataclass(frozen=True)
class FieldChange:
    field: str
    old: str
    new: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "old": self.old, "new": self.new}


@dataclass(frozen=True)
class RowDiff:
    type: DiffKind
    key: str
    row_old: Optional[Row] = None
    row_new: Optional[Row] = None
    changes: Tuple[FieldChange, ...] = ()

    @property
    def row(self) -> Row:
        """The row to display: the new one where it exists, else the old one."""

        row = self.row_new if self.row_new is not None else self.row_old
        assert row is not None
        return row

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {"type": self.type, "key": self.key}
        if self.type == "modified":
            data["rowOld"] = self.row_old.to_dict() if self.row_old else None
            data["rowNew"] = self.row_new.to_dict() if self.row_new else None
            data["changes"] = [change.to_dict() for change in self.changes]
        else:
            data["row"] = self.row.to_dict()
        return data


@dataclass(frozen=True)
class SectionDiff:
    type: DiffKind
    key: str
    section_old: Optional[Section] = None
    section_new: Optional[Section] = None
    meta_changes: Tuple[FieldChange, ...] = ()
    row_diffs: Tuple[RowDiff, ...] = ()

    @property
    def section(self) -> Section:
        section = self.section_new if self.section_new is not None else self.section_old
        assert section is not None
        return section

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {"type": self.type, "pruefidentifikator": self.key}
        if self.section_old is not None and self.section_new is not None:
            data["sectionOld"] = _section_header(self.section_old)
            data["sectionNew"] = _section_header(self.section_new)
            data["metaChanges"] = [change.to_dict() for change in self.meta_changes]
        else:
            data["section"] = _section_header(self.section)
        data["rows"] = [row_diff.to_dict() for row_diff in self.row_diffs]
        return data


def _section_header(section: Section) -> Dict[str, object]:
    data = section.to_dict()
    data.pop("rows")
    return data


@dataclass(frozen=True)
class ComparisonResult:
    summary: Dict[str, int] = field(default_factory=lambda: {kind: 0 for kind in DIFF_KINDS})
    section_diffs: Tuple[SectionDiff, ...] = ()

    def row_summary(self) -> Dict[str, int]:
        counts = {kind: 0 for kind in DIFF_KINDS}
        for section_diff in self.section_diffs:
            for row_diff in section_diff.row_diffs:
                counts[row_diff.type] += 1
        return counts

    def to_dict(self) -> Dict[str, object]:
        return {
            "summary": dict(self.summary),
            "rowSummary": self.row_summary(),
            "sectionDiffs": [section_diff.to_dict() for section_diff in self.section_diffs],
        }


Page = List[TextFragment]
