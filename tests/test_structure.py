"""Tests for the structuring pass."""

import pytest

from ahbcompare.core.structure import (
    column_for,
    detect_version,
    filter_content,
    group_rows,
    parse_row,
    structure_document,
)
from ahbcompare.core.types import Row, TextFragment
from ahbcompare.presets import DEFAULT_LAYOUT

# x positions inside each column of the default layout
SG, SEG, DE, TEXT, ST1, ST2, BED = 60, 95, 125, 180, 310, 380, 450


def _row(y, *cells):
    return [TextFragment(text, x, y) for x, text in cells]


def _page(*rows):
    return [fragment for row in rows for fragment in row]


def _header(y, *codes):
    cells = [(TEXT, "Prüfidentifikator")]
    for x, code in zip((ST1, ST2), codes):
        cells.append((x, code))
    return _row(y, *cells)


def _table_header(y):
    return _row(y, (SG, "EDIFACT"), (SEG, "Struktur"), (TEXT, "Beschreibung"))


@pytest.fixture
def single_page():
    return _page(
        _row(800, (TEXT, "Anwendungshandbuch IFTSTA")),
        _table_header(760),
        _row(740, (TEXT, "Statusmeldung")),
        _header(720, "21025"),
        _row(700, (TEXT, "Kommunikation von"), (ST1, "NB an LF"), (ST2, "LF an NB")),
        _row(680, (ST1, "Statusmeldung"), (ST2, "Antwort")),
        _row(660, (TEXT, "Nachrichten-Kopfsegment")),
        _row(640, (SEG, "UNH"), (ST1, "Muss"), (ST2, "Muss")),
        _row(620, (SG, "SG2"), (SEG, "NAD"), (DE, "3035"), (TEXT, "MS"), (ST1, "Muss")),
        _row(608, (TEXT, "Marktpartner"), (BED, "[1]")),
        _row(20, (TEXT, "Seite 1 von 3")),
    )


def test_single_section(single_page):
    doc = structure_document([single_page])

    assert doc.page_count == 1
    assert len(doc.sections) == 1
    section = doc.sections[0]
    assert section.title == "Statusmeldung"
    assert section.pruefidentifikator == ("21025",)
    assert section.kommunikation_von == ("NB an LF", "LF an NB")
    assert section.status_col1_header == "Statusmeldung"
    assert section.status_col2_header == "Antwort"
    assert section.page_start == 1
    assert section.rows == (
        Row.label("Nachrichten-Kopfsegment"),
        Row(segment_code="UNH", status_col1="Muss", status_col2="Muss"),
        Row(
            segment_group="SG2",
            segment_code="NAD",
            data_element="3035",
            beschreibung="MS Marktpartner",
            status_col1="Muss",
            bedingung="[1]",
        ),
    )


def test_label_row_has_only_description(single_page):
    label = structure_document([single_page]).sections[0].rows[0]
    assert label.is_label
    assert label.beschreibung == "Nachrichten-Kopfsegment"
    assert not label.has_structure
    assert label.status_col1 == label.status_col2 == label.bedingung == ""


def test_repeated_header_on_next_page_continues_section(single_page):
    page2 = _page(
        _table_header(760),
        _header(740, "21025"),
        _row(720, (TEXT, "Kommunikation von"), (ST1, "anders")),
        _row(700, (ST1, "Information")),
        _row(680, (TEXT, "(Fortsetzung)")),
        _row(660, (SG, "SG4"), (SEG, "STS"), (DE, "9015"), (ST1, "Kann")),
    )
    doc = structure_document([single_page, page2])

    assert len(doc.sections) == 1
    section = doc.sections[0]
    # metadata: first occurrence wins
    assert section.kommunikation_von == ("NB an LF", "LF an NB")
    assert section.status_col1_header == "Statusmeldung"
    # the cell split across the page break is merged into the last row
    assert section.rows[2].beschreibung == "MS Marktpartner (Fortsetzung)"
    assert section.rows[3].segment_code == "STS"
    assert len(section.rows) == 4


def test_new_section_on_later_page_carries_pending_title(single_page):
    page2 = _page(
        _header(740, "21026 21027"),
        _row(720, (TEXT, "Sendungsdaten")),
        _row(700, (SG, "SG1"), (SEG, "RFF"), (DE, "1153"), (TEXT, "Z13"), (ST1, "X")),
    )
    doc = structure_document([single_page, page2])

    assert [s.pruefidentifikator for s in doc.sections] == [("21025",), ("21026", "21027")]
    second = doc.sections[1]
    assert second.page_start == 2
    # last label seen before the header
    assert second.title == "Nachrichten-Kopfsegment"
    assert second.rows[0] == Row.label("Sendungsdaten")
    assert second.rows[1].data_element == "1153"
    assert doc.sections[0].key == "21025"
    assert second.key == "21026,21027"


def test_codes_from_both_status_columns():
    doc = structure_document([_page(_header(700, "21025", "21026"))])
    assert doc.sections[0].pruefidentifikator == ("21025", "21026")


def test_marker_word_without_numeric_code_is_not_a_header():
    page = _page(
        _header(720, "21025"),
        _row(700, (SG, "SG3"), (SEG, "CTA"), (DE, "3139"), (ST1, "Muss")),
        _row(690, (TEXT, "Prüfidentifikator"), (ST1, "X")),
    )
    doc = structure_document([page])

    assert len(doc.sections) == 1
    row = doc.sections[0].rows[0]
    assert row.beschreibung == "Prüfidentifikator"
    assert row.status_col1 == "Muss X"


def test_header_with_malformed_code_is_not_a_header():
    page = _page(_header(720, "2102"), _header(700, "210255"))
    assert structure_document([page]).sections == ()


def test_data_row_before_first_section_is_dropped():
    page = _page(
        _row(740, (SG, "SG2"), (SEG, "NAD"), (DE, "3035"), (ST1, "Muss")),
        _header(720, "21025"),
    )
    doc = structure_document([page])
    assert doc.sections[0].rows == ()
    assert doc.sections[0].title == ""


def test_description_continuation_keeps_label():
    page = _page(
        _header(720, "21025"),
        _row(700, (TEXT, "Kopf")),
        _row(680, (TEXT, "Fortsetzung")),
    )
    rows = structure_document([page]).sections[0].rows
    assert rows == (Row.label("Kopf Fortsetzung"),)


def test_status_continuation_turns_label_into_plain_row():
    page = _page(
        _header(720, "21025"),
        _row(700, (TEXT, "Kopf")),
        _row(680, (TEXT, "Fortsetzung"), (ST1, "Muss")),
    )
    rows = structure_document([page]).sections[0].rows
    assert rows == (Row(beschreibung="Kopf Fortsetzung", status_col1="Muss"),)
    assert not any(row.is_label and row.status_col1 for row in rows)


def test_continuation_without_prior_row_is_dropped():
    page = _page(
        _header(720, "21025"),
        _row(700, (TEXT, "lose Zeile"), (ST1, "Muss")),
    )
    assert structure_document([page]).sections[0].rows == ()


def test_data_element_alone_is_structural_content():
    page = _page(
        _header(720, "21025"),
        _row(700, (DE, "3139"), (TEXT, "Funktion")),
    )
    rows = structure_document([page]).sections[0].rows
    assert rows == (Row(data_element="3139", beschreibung="Funktion"),)


def test_group_and_code_pair_is_a_data_row():
    page = _page(_header(720, "21025"), _row(700, (SG, "Gruppe"), (SEG, "ZZZ")))
    rows = structure_document([page]).sections[0].rows
    assert rows[0].segment_group == "Gruppe"


def test_empty_input():
    doc = structure_document([])
    assert doc.sections == ()
    assert doc.page_count == 0
    assert doc.version == "unknown"


def test_page_with_only_header_and_footer():
    page = _page(_row(800, (TEXT, "Kopf")), _row(10, (TEXT, "Fuß")))
    doc = structure_document([page])
    assert doc.sections == ()
    assert doc.page_count == 1


def test_fragment_order_does_not_matter(single_page):
    forward = structure_document([single_page])
    backward = structure_document([list(reversed(single_page))])
    assert forward == backward
    assert forward.to_dict() == backward.to_dict()


def test_filter_content_band():
    fragments = [
        TextFragment("Kopf", 100, 775),
        TextFragment("Inhalt", 100, 500),
        TextFragment("  ", 100, 400),
        TextFragment("Fuß", 100, 30),
    ]
    assert [f.text for f in filter_content(fragments)] == ["Inhalt"]


def test_group_rows_tolerance():
    fragments = [
        TextFragment("c", 10, 496),
        TextFragment("a", 10, 506),
        TextFragment("e", 30, 492),
        TextFragment("b", 20, 500),
        TextFragment("d", 10, 480),
    ]
    rows = group_rows(fragments)
    # "e" is 8pt below "b" but chains through "c"
    assert [[f.text for f in row] for row in rows] == [["a"], ["b", "c", "e"], ["d"]]


def test_group_rows_with_wider_tolerance():
    fragments = [TextFragment("a", 10, 640), TextFragment("b", 10, 632)]
    assert len(group_rows(fragments)) == 2
    assert len(group_rows(fragments, DEFAULT_LAYOUT.copy(row_y_tolerance=10))) == 1


@pytest.mark.parametrize(
    "x, column",
    [
        (10, "segment_group"),
        (88, "segment_code"),
        (117.9, "segment_code"),
        (118, "data_element"),
        (170, "beschreibung"),
        (305, "status_col1"),
        (370, "status_col2"),
        (435, "bedingung"),
        (560, "bedingung"),
    ],
)
def test_column_for(x, column):
    assert column_for(x) == column


def test_parse_row_joins_same_column_in_x_order():
    row = parse_row(
        [
            TextFragment("Kopf", 240, 500),
            TextFragment("Nachrichten", 180, 501),
            TextFragment("Muss", 310, 500),
        ]
    )
    assert row.beschreibung == "Nachrichten Kopf"
    assert row.status_col1 == "Muss"
    assert not row.is_label


def test_detect_version_repairs_split_number():
    fragments = [
        TextFragment("Version:", 100, 700),
        TextFragment("2.", 150, 700),
        TextFragment("1", 160, 700),
    ]
    assert detect_version(fragments) == "2.1"


def test_detect_version_plain():
    fragments = [TextFragment("Version:", 100, 700), TextFragment("2.0h", 150, 700)]
    assert detect_version(fragments) == "2.0h"


def test_detect_version_collapsed_fallback():
    fragments = [TextFragment("Version", 100, 700), TextFragment(": 2.1", 140, 700)]
    assert detect_version(fragments) == "2.1"


def test_detect_version_unknown():
    assert detect_version([TextFragment("IFTSTA", 100, 700)]) == "unknown"


def test_structure_document_reads_version_from_first_page(single_page):
    first = [TextFragment("Version:", 100, 810), TextFragment("2.1", 150, 810)] + single_page
    assert structure_document([first]).version == "2.1"
