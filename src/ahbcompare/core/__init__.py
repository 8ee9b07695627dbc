"""Structuring and differencing passes over extracted PDF text."""

from .diff import compare_documents, compare_rows, compare_sections, row_key
from .structure import structure_document
from .types import (
    ComparisonResult,
    FieldChange,
    Row,
    RowDiff,
    Section,
    SectionDiff,
    StructuredDocument,
    TextFragment,
)

__all__ = [
    "compare_documents",
    "compare_rows",
    "compare_sections",
    "row_key",
    "structure_document",
    "ComparisonResult",
    "FieldChange",
    "Row",
    "RowDiff",
    "Section",
    "SectionDiff",
    "StructuredDocument",
    "TextFragment",
]
