from __future__ import annotations

"""Helpers for canonicalising text extracted from PDF pages.

PDF text extraction leaves presentation artefacts in otherwise identical
cells: non-breaking spaces, soft hyphens, typographic dashes and, in some
source documents, spaces around hyphens (``"Marktlokations - ID"``).  All
equality tests and match keys go through :func:`normalize_text` so that these
artefacts never show up as changes.
"""

import re

# zero width space/joiners, word joiner, BOM and the soft hyphen
_INVISIBLE_RE = re.compile("[\u00ad\u200b\u200c\u200d\u2060\ufeff]")

# C0/C1 control characters except \t, \n and \r
_CONTROL_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")

_SPACE_RE = re.compile("[\u00a0\u1680\u2000-\u200a\u202f\u205f\u3000]")

_DASH_RE = re.compile("[\u2010-\u2015\u2043\u2212\ufe58\ufe63\uff0d]")

_JOINER_SPACING_RE = re.compile(r"(?<=\w) *([-/]) *(?=\w)")

_MULTI_SPACE_RE = re.compile(r" {2,}")

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(value: str | None) -> str:
    """Return ``value`` in canonical form for comparisons.

    The function is idempotent and never raises; ``None`` is treated as an
    empty string.
    """

    if not value:
        return ""
    text = _INVISIBLE_RE.sub("", value)
    text = _CONTROL_RE.sub("", text)
    text = _SPACE_RE.sub(" ", text)
    text = _DASH_RE.sub("-", text)
    text = _JOINER_SPACING_RE.sub(r"\1", text)
    text = _MULTI_SPACE_RE.sub(" ", text)
    return text.strip()


def collapse_whitespace(value: str) -> str:
    """Collapse any whitespace run to a single space and trim."""

    return _WHITESPACE_RE.sub(" ", value).strip()


def texts_equal(a: str | None, b: str | None) -> bool:
    return normalize_text(a) == normalize_text(b)
