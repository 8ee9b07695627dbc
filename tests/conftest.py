from pathlib import Path

import pytest

# x positions inside the columns of the default layout
SG, SEG, DE, TEXT, ST1, ST2, BED = 60, 95, 125, 180, 310, 380, 450


def _section_page(codes, rows, title=None):
    lines = []
    if title:
        lines.append((120, [(TEXT, title)]))
    lines.append((140, [(TEXT, "Prüfidentifikator"), (ST1, codes)]))
    lines.append((160, [(TEXT, "Kommunikation von"), (ST1, "NB an LF")]))
    lines.append((180, [(ST1, "Statusmeldung")]))
    top = 200
    for cells in rows:
        lines.append((top, cells))
        top += 20
    return lines


OLD_PAGES = [
    [(60, [(TEXT, "Version:"), (TEXT + 40, "2.0")])]
    + _section_page(
        "21025",
        [
            [(TEXT, "Kontakt")],
            [(SG, "SG2"), (SEG, "CTA"), (DE, "3139"), (TEXT, "IC"), (ST1, "Muss")],
            [(SG, "SG2"), (SEG, "COM"), (DE, "3148"), (ST1, "Muss"), (BED, "[1]")],
        ],
        title="Statusmeldung",
    )
    + [(830, [(TEXT, "Seite 1")])],
]

NEW_PAGES = [
    [(60, [(TEXT, "Version:"), (TEXT + 40, "2.1")])]
    + _section_page(
        "21025",
        [
            [(TEXT, "Kontakt")],
            [(SG, "SG2"), (SEG, "CTA"), (DE, "3139"), (TEXT, "IC"), (ST1, "X")],
            [(SG, "SG2"), (SEG, "COM"), (DE, "3148"), (ST1, "Muss"), (BED, "[1]")],
        ],
        title="Statusmeldung",
    )
    + [(830, [(TEXT, "Seite 1")])],
    _section_page(
        "21026",
        [[(SG, "SG1"), (SEG, "RFF"), (DE, "1153"), (TEXT, "Z13"), (ST1, "Muss")]],
    ),
]


@pytest.fixture
def make_ahb_pdf():
    """Return a writer for A4 PDFs laid out like AHB table pages.

    ``pages`` is a list of pages, each a list of ``(top, [(x, text), ...])``
    lines where ``top`` is the baseline distance from the top edge.
    """

    fitz = pytest.importorskip("fitz")

    def write(path: Path, pages) -> Path:
        doc = fitz.open()
        for lines in pages:
            page = doc.new_page(width=595, height=842)
            for top, cells in lines:
                for x, text in cells:
                    page.insert_text((x, top), text, fontsize=8)
        doc.save(str(path))
        doc.close()
        return path

    return write


@pytest.fixture
def ahb_pdfs(tmp_path, make_ahb_pdf):
    """Old and new AHB versions: 21025 changes one status, 21026 is new."""

    old = make_ahb_pdf(tmp_path / "ahb_2.0.pdf", OLD_PAGES)
    new = make_ahb_pdf(tmp_path / "ahb_2.1.pdf", NEW_PAGES)
    return old, new
