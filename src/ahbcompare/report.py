"""JSON report helpers."""
from __future__ import annotations

import json
from pathlib import Path

from .core.types import ComparisonResult, StructuredDocument
from .utils.file_io import write_json


def write_json_report(result: ComparisonResult, path: str | Path) -> Path:
    return write_json(result.to_dict(), path)


def comparison_to_json(result: ComparisonResult) -> str:
    return json.dumps(result.to_dict(), ensure_ascii=False, indent=2)


def structured_to_json(doc: StructuredDocument) -> str:
    return json.dumps(doc.to_dict(), ensure_ascii=False, indent=2)
