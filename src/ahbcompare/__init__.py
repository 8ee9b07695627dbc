"""Structural comparison of AHB table documents."""

from __future__ import annotations

from .compare import PdfComparison, compare_pdfs, parse_pdf
from .core import (
    ComparisonResult,
    Row,
    RowDiff,
    Section,
    SectionDiff,
    StructuredDocument,
    TextFragment,
    compare_documents,
    structure_document,
)
from .presets import LayoutParams, get_preset, iter_presets

__all__ = [
    "compare_pdfs",
    "parse_pdf",
    "compare_documents",
    "structure_document",
    "PdfComparison",
    "ComparisonResult",
    "Row",
    "RowDiff",
    "Section",
    "SectionDiff",
    "StructuredDocument",
    "TextFragment",
    "LayoutParams",
    "get_preset",
    "iter_presets",
]

__version__ = "0.1.0"
