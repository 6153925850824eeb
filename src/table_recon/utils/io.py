"""
I/O utilities for the table reconstruction pipeline.

Handles:
- PDF page rasterization (one page at a time)
- PDF page counting
- Image loading and validation
- JSON serialization
- Input type detection
"""

import json
import logging
from pathlib import Path
from typing import List, Union, Any

import numpy as np

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.tiff', '.tif', '.bmp')


# ============================================================================
# PDF to Image Conversion
# ============================================================================

def render_pdf_page(
    pdf_path: Union[str, Path],
    page_number: int,
    dpi: int = 144
) -> np.ndarray:
    """
    Rasterize a single PDF page using pdf2image (poppler backend).

    Only one page is held in memory per call, so scanned documents can
    be recognized page by page.

    Args:
        pdf_path: Path to the PDF file
        page_number: Page to render (1-indexed)
        dpi: Render resolution

    Returns:
        Numpy array (BGR format) of the page

    Raises:
        FileNotFoundError: If PDF file doesn't exist
        ImportError: If pdf2image is not installed
        RuntimeError: If poppler is missing or the PDF can't be parsed
    """
    pdf_path = Path(pdf_path)
    if not pdf_path.exists():
        raise FileNotFoundError(f"PDF file not found: {pdf_path}")

    try:
        from pdf2image import convert_from_path
        from pdf2image.exceptions import PDFPageCountError, PDFSyntaxError
    except ImportError:
        raise ImportError(
            "pdf2image is required. Install with: pip install pdf2image\n"
            "Also ensure poppler is installed on your system."
        )

    from .images import pil_to_bgr

    try:
        logger.debug(f"Rendering page {page_number} of {pdf_path} at {dpi} DPI")
        pil_images = convert_from_path(
            pdf_path,
            dpi=dpi,
            first_page=page_number,
            last_page=page_number,
            fmt='png'
        )
    except (PDFPageCountError, PDFSyntaxError) as e:
        raise RuntimeError(f"Failed to parse PDF: {e}")
    except Exception as e:
        if "poppler" in str(e).lower():
            raise RuntimeError(
                "Poppler is not installed. Install with:\n"
                "  macOS: brew install poppler\n"
                "  Linux: sudo apt-get install poppler-utils"
            )
        raise

    if not pil_images:
        raise RuntimeError(f"Page {page_number} could not be rendered from {pdf_path}")

    return pil_to_bgr(pil_images[0])


def get_pdf_page_count(pdf_path: Union[str, Path]) -> int:
    """
    Get the number of pages in a PDF file.

    Raises:
        RuntimeError: If poppler can't read the file
    """
    try:
        from pdf2image import pdfinfo_from_path
    except ImportError:
        raise ImportError("pdf2image is required. Install with: pip install pdf2image")

    try:
        info = pdfinfo_from_path(str(pdf_path))
    except Exception as e:
        raise RuntimeError(f"Could not get PDF page count: {e}")
    return int(info.get('Pages', 0))


# ============================================================================
# Image Loading
# ============================================================================

def load_image(image_path: Union[str, Path]) -> np.ndarray:
    """
    Load an image from file.

    Raises:
        FileNotFoundError: If image file doesn't exist
        ValueError: If image cannot be decoded
    """
    import cv2

    image_path = Path(image_path)
    if not image_path.exists():
        raise FileNotFoundError(f"Image file not found: {image_path}")

    img = cv2.imread(str(image_path), cv2.IMREAD_COLOR)

    if img is None:
        raise ValueError(f"Could not decode image: {image_path}")

    logger.debug(f"Loaded image: {image_path}, shape: {img.shape}")
    return img


# ============================================================================
# JSON Serialization
# ============================================================================

def save_json(
    data: Any,
    output_path: Union[str, Path],
    indent: int = 2,
    ensure_ascii: bool = False
) -> Path:
    """
    Save data to a JSON file.

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent, ensure_ascii=ensure_ascii)

    logger.debug(f"Saved JSON: {output_path}")
    return output_path


def load_json(json_path: Union[str, Path]) -> Any:
    """Load data from a JSON file."""
    json_path = Path(json_path)
    if not json_path.exists():
        raise FileNotFoundError(f"JSON file not found: {json_path}")

    with open(json_path, 'r', encoding='utf-8') as f:
        return json.load(f)


# ============================================================================
# Directory Management
# ============================================================================

def ensure_dir(path: Union[str, Path]) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


# ============================================================================
# File Type Detection
# ============================================================================

def detect_input_type(input_path: Union[str, Path]) -> str:
    """
    Detect the type of input file or directory.

    Returns:
        One of: 'pdf', 'image', 'folder', 'unknown'
    """
    input_path = Path(input_path)

    if input_path.is_dir():
        return 'folder'

    if not input_path.exists():
        return 'unknown'

    suffix = input_path.suffix.lower()
    if suffix == '.pdf':
        return 'pdf'
    elif suffix in IMAGE_EXTENSIONS:
        return 'image'

    return 'unknown'


def expand_inputs(paths: List[Union[str, Path]]) -> List[Path]:
    """
    Expand folders into the PDFs and images they contain.

    Files are kept in the given order; folder contents are sorted.
    """
    expanded = []
    for raw in paths:
        path = Path(raw)
        kind = detect_input_type(path)
        if kind == 'folder':
            children = sorted(
                p for p in path.iterdir()
                if detect_input_type(p) in ('pdf', 'image')
            )
            logger.info(f"Found {len(children)} documents in {path}")
            expanded.extend(children)
        elif kind in ('pdf', 'image'):
            expanded.append(path)
        else:
            logger.warning(f"Skipping unsupported input: {path}")
    return expanded
