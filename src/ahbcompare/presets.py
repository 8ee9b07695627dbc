"""Table layout presets for AHB documents."""
from __future__ import annotations

import re
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Mapping, Pattern, Tuple

from .utils.file_io import read_json

_KNOWN_SEGMENTS = frozenset(
    {
        "UNH", "BGM", "DTM", "NAD", "CTA", "COM", "CNI", "LOC",
        "STS", "RFF", "FTX", "EQD", "GID", "UNT", "DOC", "MEA",
        "QTY", "TDT", "SEQ", "PCI", "GIN", "IDE", "DGS",
    }
)

_STATUS_HEADER_KEYWORDS = (
    "meldung",
    "status",
    "antwort",
    "bestellung",
    "mitteilung",
    "information",
    "konfiguration",
    "übermittlung",
)


@dataclass(frozen=True)
class LayoutParams:
    """Column geometry and marker vocabulary of one table layout family.

    Coordinates are PDF points in user space (origin bottom-left).  Column
    bounds are exclusive upper limits on a fragment's x position.
    """

    # EDIFACT structure | Beschreibung | status 1 | status 2 | Bedingung
    edifact_max: float = 170.0
    beschreibung_max: float = 305.0
    status1_max: float = 370.0
    status2_max: float = 435.0
    # sub-bands of the EDIFACT structure column
    segment_group_max: float = 88.0
    segment_code_max: float = 118.0

    # fragments whose y differs by at most this much from the previous
    # fragment belong to the same visual row
    row_y_tolerance: float = 5.0
    header_y_min: float = 775.0
    footer_y_max: float = 30.0

    known_segments: FrozenSet[str] = _KNOWN_SEGMENTS
    segment_group_pattern: str = r"^SG\d+$"
    data_element_pattern: str = r"^\d{4,5}$"

    section_marker: str = "prüfidentifikator"
    table_header_markers: Tuple[str, ...] = ("edifact", "struktur")
    kommunikation_marker: str = "kommunikation von"
    status_header_keywords: Tuple[str, ...] = _STATUS_HEADER_KEYWORDS

    @property
    def segment_group_re(self) -> Pattern[str]:
        return re.compile(self.segment_group_pattern)

    @property
    def data_element_re(self) -> Pattern[str]:
        return re.compile(self.data_element_pattern)

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, frozenset):
                value = sorted(value)
            elif isinstance(value, tuple):
                value = list(value)
            data[item.name] = value
        return data

    def copy(self, **overrides: object) -> "LayoutParams":
        return replace(self, **_coerce_overrides(overrides))


@dataclass(frozen=True)
class Preset:
    """Named layout bundle."""

    name: str
    description: str
    layout: LayoutParams

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "description": self.description,
            "layout": self.layout.to_dict(),
        }


DEFAULT_LAYOUT = LayoutParams()

PRESETS: Mapping[str, Preset] = {
    "iftsta_ahb": Preset(
        name="iftsta_ahb",
        description="IFTSTA AHB tables (A4 portrait, five columns).",
        layout=DEFAULT_LAYOUT,
    ),
}


def get_preset(name: str) -> Preset:
    key = name.lower()
    if key not in PRESETS:
        raise KeyError(f"Unknown layout '{name}'. Available: {', '.join(sorted(PRESETS))}")
    return PRESETS[key]


def iter_presets() -> Iterable[Preset]:
    return PRESETS.values()


def load_layout(path: str | Path, base: LayoutParams = DEFAULT_LAYOUT) -> LayoutParams:
    """Return ``base`` with the overrides stored in the JSON file at ``path``.

    The file holds a single object whose keys are :class:`LayoutParams` field
    names.  Unknown keys raise :class:`ValueError`.
    """

    data = read_json(Path(path))
    if not isinstance(data, dict):
        raise ValueError(f"Layout file '{path}' must contain a JSON object")
    return base.copy(**data)


def _coerce_overrides(overrides: Mapping[str, object]) -> Dict[str, object]:
    types = {item.name: item.type for item in fields(LayoutParams)}
    coerced: Dict[str, object] = {}
    for name, value in overrides.items():
        if name not in types:
            raise ValueError(f"Unknown layout parameter '{name}'")
        kind = str(types[name])
        if kind == "float":
            try:
                value = float(value)  # type: ignore[arg-type]
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Layout parameter '{name}' must be a number") from exc
        elif kind.startswith("FrozenSet"):
            if isinstance(value, str):
                value = (value,)
            value = frozenset(str(item) for item in value)  # type: ignore[union-attr]
        elif kind.startswith("Tuple"):
            if isinstance(value, str):
                value = (value,)
            value = tuple(str(item).lower() for item in value)  # type: ignore[union-attr]
        elif name in ("section_marker", "kommunikation_marker"):
            value = str(value).lower()
        elif name.endswith("_pattern"):
            value = str(value)
            try:
                re.compile(value)
            except re.error as exc:
                raise ValueError(f"Layout parameter '{name}' is not a valid pattern: {exc}") from exc
        coerced[name] = value
    return coerced
