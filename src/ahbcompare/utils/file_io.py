"""Helper utilities for file input/output."""

import json
from pathlib import Path
from typing import Any, Union


def read_json(path: Union[str, Path]) -> Any:
    """Read a JSON file and return its data."""

    with Path(path).open("r", encoding="utf-8") as fh:
        return json.load(fh)


def write_json(data: Any, path: Union[str, Path]) -> Path:
    """Write ``data`` as indented UTF-8 JSON, creating parent folders."""

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", encoding="utf-8") as fh:
        json.dump(data, fh, ensure_ascii=False, indent=2)
    return out_path
