"""
Native PDF text-layer extraction.

Reads positioned text with pdfminer.six and turns each visually
separate run of characters into a Fragment. Coordinates stay in PDF user
space (origin bottom-left), so the document is tagged Origin.NATIVE.
"""

import logging
from pathlib import Path
from typing import List, Tuple, Union, Iterable, Any

from .fragments import Fragment, FragmentDocument, Origin

logger = logging.getLogger(__name__)

# Characters further apart than this start a new word
WORD_GAP = 1.0


def _find_text_lines(layout_obj: Any, line_type: type) -> List[Any]:
    """Recursively collect text lines from a pdfminer layout tree."""
    if isinstance(layout_obj, line_type):
        return [layout_obj]
    found = []
    if hasattr(layout_obj, "__iter__"):
        for child in layout_obj:
            found.extend(_find_text_lines(child, line_type))
    return found


def _words_from_chars(chars: Iterable[Any]) -> List[Tuple[str, float, float, float]]:
    """
    Group line characters into words.

    Returns:
        (text, x0, x1, font_size) per word
    """
    words = []
    word_chars: List[str] = []
    start_x = last_x = size = 0.0
    for char in chars:
        # LTAnno (virtual spaces) carries no geometry
        if not hasattr(char, "x0"):
            continue
        text = char.get_text()
        if not text.strip():
            continue
        if not word_chars or char.x0 - last_x > WORD_GAP:
            if word_chars:
                words.append(("".join(word_chars), start_x, last_x, size))
            word_chars, start_x = [text], char.x0
            size = getattr(char, "size", 0.0)
        else:
            word_chars.append(text)
        last_x = char.x1
    if word_chars:
        words.append(("".join(word_chars), start_x, last_x, size))
    return words


def split_line_into_runs(chars: Iterable[Any]) -> List[Tuple[str, float, float]]:
    """
    Split a text line into runs separated by gaps wider than the font size.

    A normal inter-word space is narrower than the font size; a column
    gutter is wider, so each run approximates one table cell.

    Returns:
        (text, x0, x1) per run
    """
    runs = []
    current: List[str] = []
    start_x = end_x = 0.0
    for text, x0, x1, size in _words_from_chars(chars):
        gap_thresh = size if size > 0 else WORD_GAP
        if not current or x0 - end_x > gap_thresh:
            if current:
                runs.append((" ".join(current), start_x, end_x))
            current, start_x = [text], x0
        else:
            current.append(text)
        end_x = x1
    if current:
        runs.append((" ".join(current), start_x, end_x))
    return runs


def line_to_fragments(line: Any) -> List[Fragment]:
    """Convert one pdfminer text line into fragments on its bottom edge."""
    return [
        Fragment(text=text, x=float(x0), y=float(line.y0), width=float(x1 - x0))
        for text, x0, x1 in split_line_into_runs(line)
    ]


def extract_text_fragments(pdf_path: Union[str, Path]) -> FragmentDocument:
    """
    Extract the text layer of every page.

    Args:
        pdf_path: Path to the PDF file

    Returns:
        FragmentDocument with Origin.NATIVE, one page list per PDF page

    Raises:
        FileNotFoundError: If the PDF doesn't exist
        ImportError: If pdfminer.six is not installed
        RuntimeError: If the PDF can't be parsed
    """
    pdf_path = Path(pdf_path)
    if not pdf_path.exists():
        raise FileNotFoundError(f"PDF file not found: {pdf_path}")

    try:
        from pdfminer.high_level import extract_pages
        from pdfminer.layout import LAParams, LTTextLine
        from pdfminer.pdfparser import PDFSyntaxError
    except ImportError:
        raise ImportError(
            "pdfminer.six is required. Install with: pip install pdfminer.six"
        )

    pages: List[List[Fragment]] = []
    try:
        for page_layout in extract_pages(str(pdf_path), laparams=LAParams()):
            fragments = []
            for line in _find_text_lines(page_layout, LTTextLine):
                fragments.extend(line_to_fragments(line))
            pages.append(fragments)
    except PDFSyntaxError as e:
        raise RuntimeError(f"Failed to parse PDF: {e}")

    document = FragmentDocument(pages=pages, origin=Origin.NATIVE)
    logger.info(
        f"Text layer: {document.page_count} pages, "
        f"{document.total_characters} characters"
    )
    return document
