"""PDF-to-diff pipeline: read both files, structure them, compare."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .core.diff import compare_documents
from .core.extraction import read_pdf_pages
from .core.structure import structure_document
from .core.types import ComparisonResult, StructuredDocument
from .presets import LayoutParams

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PdfComparison:
    old: StructuredDocument
    new: StructuredDocument
    result: ComparisonResult


def parse_pdf(path: str | Path, layout: Optional[LayoutParams] = None) -> StructuredDocument:
    """Extract and structure one PDF."""

    doc = structure_document(read_pdf_pages(path), layout)
    log.info(
        "%s: version %s, %s pages, %s sections",
        Path(path).name,
        doc.version,
        doc.page_count,
        len(doc.sections),
    )
    return doc


def compare_pdfs(
    old_pdf: str | Path,
    new_pdf: str | Path,
    *,
    layout: Optional[LayoutParams] = None,
) -> PdfComparison:
    old = parse_pdf(old_pdf, layout)
    new = parse_pdf(new_pdf, layout)
    return PdfComparison(old=old, new=new, result=compare_documents(old, new))
