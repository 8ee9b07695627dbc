"""Text fragment extraction using PyMuPDF.

Pages are read word by word with :meth:`Page.get_text`.  PyMuPDF reports
coordinates with the origin in the top-left corner; fragments are converted to
PDF user space (origin bottom-left, y growing upwards) so that row ordering and
the header/footer bands match the layout presets.  The bottom edge of a word
stands in for its baseline.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List

import fitz  # PyMuPDF

from ..errors import DocumentReadError
from ..utils.normalize import collapse_whitespace
from .types import TextFragment

log = logging.getLogger(__name__)


def _round1(value: float) -> float:
    return round(float(value) * 10) / 10


def extract_page_fragments(doc: fitz.Document, page_index: int) -> List[TextFragment]:
    """Return the words of one page as :class:`TextFragment` objects.

    Blank words are skipped; the order is PyMuPDF's and carries no meaning.
    """

    page = doc[page_index]
    height = page.rect.height
    fragments: List[TextFragment] = []
    for word in page.get_text("words"):
        if len(word) < 5:
            continue
        x0, _y0, _x1, y1, text = word[:5]
        text = collapse_whitespace(str(text))
        if not text:
            continue
        fragments.append(TextFragment(text=text, x=_round1(x0), y=_round1(height - float(y1))))
    return fragments


def read_pdf_pages(path: str | Path) -> List[List[TextFragment]]:
    """Open ``path`` and return the fragments of every page in page order."""

    pdf_path = Path(path)
    if not pdf_path.is_file():
        raise DocumentReadError(f"File not found: {pdf_path}")
    try:
        doc = fitz.open(str(pdf_path))
    except (RuntimeError, ValueError, OSError) as exc:
        raise DocumentReadError(f"Cannot open PDF '{pdf_path}': {exc}") from exc
    try:
        pages = [extract_page_fragments(doc, index) for index in range(len(doc))]
    except RuntimeError as exc:
        raise DocumentReadError(f"Cannot extract text from '{pdf_path}': {exc}") from exc
    finally:
        doc.close()
    log.debug("%s: %s pages, %s fragments", pdf_path.name, len(pages), sum(len(p) for p in pages))
    return pages
