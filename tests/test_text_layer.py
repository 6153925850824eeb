"""
Tests for native PDF text-layer extraction.
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from table_recon.utils.text_layer import (
    split_line_into_runs,
    line_to_fragments,
    extract_text_fragments,
    _find_text_lines,
)
from table_recon.utils.fragments import Origin
from table_recon.utils.tables import TableReconstructor


class FakeChar:
    """Stands in for pdfminer's LTChar."""

    def __init__(self, text, x0, width=5.0, size=10.0):
        self._text = text
        self.x0 = x0
        self.x1 = x0 + width
        self.size = size

    def get_text(self):
        return self._text


class FakeAnno:
    """Stands in for pdfminer's LTAnno (no geometry)."""

    def __init__(self, text=" "):
        self._text = text

    def get_text(self):
        return self._text


class FakeLine(list):
    """A text line: an iterable of chars with a bottom edge."""

    def __init__(self, chars, y0):
        super().__init__(chars)
        self.y0 = y0


def word(text, x0, width=5.0, size=10.0):
    return [FakeChar(c, x0 + i * width, width, size) for i, c in enumerate(text)]


class TestRuns:
    """Tests for splitting lines into runs."""

    def test_column_gap_splits(self):
        """A gap wider than the font size separates runs."""
        chars = word("Name", 0) + [FakeAnno()] + word("Qty", 60)
        assert split_line_into_runs(chars) == [("Name", 0, 20), ("Qty", 60, 75)]

    def test_word_space_joins(self):
        """A normal word space keeps words in one run."""
        chars = word("Unit", 0) + [FakeAnno()] + word("Price", 23)
        runs = split_line_into_runs(chars)
        assert len(runs) == 1
        assert runs[0][0] == "Unit Price"

    def test_whitespace_chars_ignored(self):
        """Space glyphs do not create words."""
        chars = [FakeChar(" ", 0)] + word("A", 10)
        assert split_line_into_runs(chars) == [("A", 10, 15)]

    def test_empty_line(self):
        """Lines without glyphs produce nothing."""
        assert split_line_into_runs([FakeAnno("\n")]) == []


class TestFragments:
    """Tests for fragment construction."""

    def test_line_to_fragments(self):
        """Runs become fragments on the line's bottom edge."""
        line = FakeLine(word("Name", 0) + word("Qty", 60), y0=712.5)
        fragments = line_to_fragments(line)
        assert [f.text for f in fragments] == ["Name", "Qty"]
        assert fragments[0].y == 712.5
        assert fragments[1].x == 60
        assert fragments[1].width == 15

    def test_find_text_lines(self):
        """Lines are found at any depth of the layout tree."""
        line_a = FakeLine(word("a", 0), 10)
        line_b = FakeLine(word("b", 0), 20)
        tree = [[line_a], [[line_b]]]
        assert _find_text_lines(tree, FakeLine) == [line_a, line_b]

    def test_missing_pdf(self, tmp_path):
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            extract_text_fragments(tmp_path / "nope.pdf")


def build_text_pdf(cells, path):
    """
    Write a one-page PDF with each (x, y, text) cell drawn in Helvetica 12.

    Object offsets for the xref table are computed while writing.
    """
    content = "".join(
        f"BT /F1 12 Tf {x} {y} Td ({text}) Tj ET\n" for x, y, text in cells
    ).encode("latin-1")
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Resources << /Font << /F1 4 0 R >> >> /Contents 5 0 R >>",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
        b"<< /Length %d >>\nstream\n" % len(content) + content + b"\nendstream",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_at = len(out)
    out += b"xref\n0 %d\n" % (len(objects) + 1)
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    out += b"startxref\n%d\n%%%%EOF\n" % xref_at

    path.write_bytes(bytes(out))
    return path


class TestExtractTextFragments:
    """Tests against a real PDF parsed by pdfminer."""

    @pytest.fixture
    def price_list_pdf(self, tmp_path):
        cells = [
            (50, 700, "Name"), (200, 700, "Qty"), (300, 700, "Price"),
            (50, 680, "Apple"), (200, 680, "3"), (300, 680, "1.20"),
            (50, 660, "Pear"), (200, 660, "12"), (300, 660, "0.80"),
        ]
        return build_text_pdf(cells, tmp_path / "prices.pdf")

    def test_one_fragment_per_cell(self, price_list_pdf):
        """Every drawn cell becomes one native fragment at its origin."""
        document = extract_text_fragments(price_list_pdf)

        assert document.origin == Origin.NATIVE
        assert document.page_count == 1
        by_text = {f.text: f for f in document.pages[0]}
        assert set(by_text) == {
            "Name", "Qty", "Price", "Apple", "3", "1.20", "Pear", "12", "0.80"
        }
        assert by_text["Name"].x == pytest.approx(50, abs=0.5)
        assert by_text["Price"].x == pytest.approx(300, abs=0.5)
        assert 690 < by_text["Name"].y <= 700
        assert by_text["Name"].y - by_text["Apple"].y == pytest.approx(20, abs=0.5)

    def test_reconstructs_table(self, price_list_pdf):
        """Extracted fragments rebuild the drawn table."""
        table = TableReconstructor().reconstruct(extract_text_fragments(price_list_pdf))

        assert table.headers == ["Name", "Qty", "Price"]
        assert table.rows == [
            {"Name": "Apple", "Qty": "3", "Price": "1.20"},
            {"Name": "Pear", "Qty": "12", "Price": "0.80"},
        ]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
