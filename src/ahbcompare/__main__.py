"""Command line interface for ahbcompare."""
from __future__ import annotations

import argparse
import logging
import sqlite3
import sys
from dataclasses import replace
from pathlib import Path
from typing import Iterable, Optional

from .backend import store
from .compare import parse_pdf
from .config_env import Settings, get_settings
from .core.diff import compare_documents
from .core.types import ComparisonResult, StructuredDocument
from .errors import DocumentReadError
from .presets import LayoutParams
from .report import write_json_report
from .utils.log_setup import configure_logging

logger = logging.getLogger("ahbcompare.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ahbcompare",
        description="Compare the tables of two AHB PDF versions section by section.",
    )
    parser.add_argument("old", nargs="?", help="Path to the baseline PDF")
    parser.add_argument("new", nargs="?", help="Path to the revised PDF")
    parser.add_argument("--json", help="Diff report path (JSON); defaults to AHBCOMPARE_REPORT_PATH")
    parser.add_argument(
        "--db",
        nargs="?",
        const="",
        help="Store both parsed documents in this SQLite file (default: AHBCOMPARE_DB_PATH)",
    )
    parser.add_argument("--layout", help="Layout preset name")
    parser.add_argument("--layout-file", help="JSON file with layout parameter overrides")
    parser.add_argument("--row-tolerance", type=float, help="Max y distance (pt) within one visual row")
    parser.add_argument("--header-y-min", type=float, help="Fragments at or above this y are page header")
    parser.add_argument("--footer-y-max", type=float, help="Fragments at or below this y are page footer")
    parser.add_argument("--verbose", action="store_true", help="Log per-section row counts")
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    return parser


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from . import __version__

        print(__version__)
        return 0

    if not args.old or not args.new:
        parser.error("the OLD and NEW PDF paths are required")

    settings = get_settings()
    configure_logging("DEBUG" if args.verbose else settings.log_level, settings.log_file)

    try:
        layout = _resolve_layout(settings, args)
    except (KeyError, ValueError, OSError) as exc:
        parser.error(str(exc))

    try:
        logger.info("Parsing old PDF: %s", args.old)
        doc_old = parse_pdf(args.old, layout)
        _log_sections(doc_old, args.verbose)
        logger.info("Parsing new PDF: %s", args.new)
        doc_new = parse_pdf(args.new, layout)
        _log_sections(doc_new, args.verbose)
    except DocumentReadError as exc:
        logger.error("%s", exc)
        return 1

    if args.db is not None:
        db_path = args.db or settings.db_path
        try:
            _store_documents(db_path, (args.old, doc_old), (args.new, doc_new))
        except (sqlite3.Error, OSError) as exc:
            logger.error("Cannot store documents in %s: %s", db_path, exc)
            return 1

    logger.info("Comparing documents...")
    result = compare_documents(doc_old, doc_new)
    _log_summary(result)

    try:
        report_path = write_json_report(result, args.json or settings.report_path)
    except OSError as exc:
        logger.error("Cannot write report: %s", exc)
        return 1
    logger.info("Report written: %s", report_path)
    return 0


def _resolve_layout(settings: Settings, args: argparse.Namespace) -> LayoutParams:
    if args.layout:
        settings = replace(settings, layout_name=args.layout)
    if args.layout_file:
        settings = replace(settings, layout_file=args.layout_file)
    layout = settings.layout()

    overrides = {}
    for field_name, arg_name in (
        ("row_y_tolerance", "row_tolerance"),
        ("header_y_min", "header_y_min"),
        ("footer_y_max", "footer_y_max"),
    ):
        value = getattr(args, arg_name)
        if value is not None:
            overrides[field_name] = value
    return layout.copy(**overrides) if overrides else layout


def _log_sections(doc: StructuredDocument, verbose: bool) -> None:
    if not verbose:
        return
    for section in doc.sections:
        logger.debug("  Section [%s] - %s rows", section.key, len(section.rows))


def _store_documents(db_path: str, *documents) -> None:
    conn = store.connect(db_path)
    try:
        for path, doc in documents:
            store.insert_document(conn, Path(path).name, doc)
    finally:
        conn.close()
    logger.info("Database saved: %s", db_path)


def _log_summary(result: ComparisonResult) -> None:
    summary = result.summary
    logger.info(
        "  Sections: %s modified, %s added, %s removed, %s unchanged",
        summary["modified"],
        summary["added"],
        summary["removed"],
        summary["unchanged"],
    )
    rows = result.row_summary()
    logger.info(
        "  Rows: %s modified, %s added, %s removed, %s unchanged",
        rows["modified"],
        rows["added"],
        rows["removed"],
        rows["unchanged"],
    )


if __name__ == "__main__":
    sys.exit(main())
