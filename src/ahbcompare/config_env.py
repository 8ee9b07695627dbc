"""Environment configuration for ahbcompare.

Values come from environment variables, optionally loaded from a ``.env``
file.  Table geometry lives in :mod:`ahbcompare.presets`; only the choice of
preset and a few overrides are read here.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import find_dotenv, load_dotenv

from .presets import LayoutParams, get_preset, load_layout

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "compare.sqlite"
DEFAULT_REPORT_PATH = "report.json"
DEFAULT_LAYOUT_NAME = "iftsta_ahb"

# env var -> LayoutParams field
_LAYOUT_ENV_OVERRIDES = {
    "AHBCOMPARE_ROW_Y_TOLERANCE": "row_y_tolerance",
    "AHBCOMPARE_HEADER_Y_MIN": "header_y_min",
    "AHBCOMPARE_FOOTER_Y_MAX": "footer_y_max",
}


@dataclass(frozen=True)
class Settings:
    db_path: str = DEFAULT_DB_PATH
    report_path: str = DEFAULT_REPORT_PATH
    layout_name: str = DEFAULT_LAYOUT_NAME
    layout_file: Optional[str] = None
    layout_overrides: Optional[Dict[str, float]] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def layout(self) -> LayoutParams:
        """Resolve preset, layout file and env overrides, in that order."""

        layout = get_preset(self.layout_name).layout
        if self.layout_file:
            layout = load_layout(self.layout_file, layout)
        if self.layout_overrides:
            layout = layout.copy(**self.layout_overrides)
        return layout


def load_env_file(path: Optional[str] = None) -> bool:
    """Load a ``.env`` file if present; existing variables win."""

    try:
        return load_dotenv(path or find_dotenv(usecwd=True), override=False)
    except OSError as exc:
        logger.warning("Could not read .env file: %s", exc)
        return False


def _env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def get_settings(load_dotenv_file: bool = True) -> Settings:
    if load_dotenv_file:
        load_env_file()

    overrides: Dict[str, float] = {}
    for env_name, field_name in _LAYOUT_ENV_OVERRIDES.items():
        raw = _env(env_name)
        if raw is None:
            continue
        try:
            overrides[field_name] = float(raw)
        except ValueError:
            logger.warning("Ignoring %s=%r: not a number", env_name, raw)

    return Settings(
        db_path=_env("AHBCOMPARE_DB_PATH") or DEFAULT_DB_PATH,
        report_path=_env("AHBCOMPARE_REPORT_PATH") or DEFAULT_REPORT_PATH,
        layout_name=_env("AHBCOMPARE_LAYOUT") or DEFAULT_LAYOUT_NAME,
        layout_file=_env("AHBCOMPARE_LAYOUT_FILE"),
        layout_overrides=overrides or None,
        log_level=(_env("AHBCOMPARE_LOG_LEVEL") or "INFO").upper(),
        log_file=_env("AHBCOMPARE_LOG_FILE"),
    )
