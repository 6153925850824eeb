"""
Text OCR module for table reconstruction.

Provides:
- Tesseract word recognition into positioned fragments
- Recognition options (allow-list, deny-list, page segmentation mode)
- Script detection for automatic language selection
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..config import language_for_script, DEFAULT_LANGUAGE
from .fragments import Fragment

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class OCROptions:
    """Tunable Tesseract parameters; none of them change fragment shape."""
    char_whitelist: Optional[str] = None
    char_blacklist: Optional[str] = None
    page_seg_mode: Optional[str] = None
    oem: int = 3

    def to_tesseract_config(self) -> str:
        """Build the command-line config string passed to tesseract."""
        parts = [f"--oem {self.oem}"]
        if self.page_seg_mode:
            parts.append(f"--psm {self.page_seg_mode}")
        if self.char_whitelist:
            parts.append(f"-c tessedit_char_whitelist={self.char_whitelist}")
        if self.char_blacklist:
            parts.append(f"-c tessedit_char_blacklist={self.char_blacklist}")
        return " ".join(parts)

    @classmethod
    def from_config(cls, config) -> "OCROptions":
        return cls(
            char_whitelist=config.char_whitelist,
            char_blacklist=config.char_blacklist,
            page_seg_mode=config.page_seg_mode,
            oem=config.oem,
        )


# ============================================================================
# Tesseract Engine
# ============================================================================

class TesseractEngine:
    """OCR using Tesseract, returning one fragment per recognized word."""

    def __init__(
        self,
        options: Optional[OCROptions] = None,
        preprocess: bool = True
    ):
        try:
            import pytesseract
            self.pytesseract = pytesseract

            # Test that tesseract is installed
            pytesseract.get_tesseract_version()

        except Exception as e:
            raise ImportError(
                f"Tesseract not available: {e}\n"
                "Install with: pip install pytesseract\n"
                "Also install Tesseract: https://github.com/tesseract-ocr/tesseract"
            )

        self.options = options or OCROptions()
        self.preprocess = preprocess

    def recognize(self, image: np.ndarray, language: str = DEFAULT_LANGUAGE) -> List[Fragment]:
        """
        Recognize words on a page image.

        Args:
            image: Page image (BGR or grayscale)
            language: Tesseract language code, e.g. "eng" or "eng+hin"

        Returns:
            Fragments in image pixel space (origin top-left)
        """
        if self.preprocess:
            from .images import prepare_for_ocr
            image = prepare_for_ocr(image)

        data = self.pytesseract.image_to_data(
            image,
            lang=language,
            config=self.options.to_tesseract_config(),
            output_type=self.pytesseract.Output.DICT
        )
        fragments = words_to_fragments(data)
        logger.debug(f"Tesseract ({language}) recognized {len(fragments)} words")
        return fragments

    def detect_language(self, image: np.ndarray) -> str:
        """
        Guess the language pack from the page's dominant script.

        Falls back to English when orientation/script detection fails.
        """
        try:
            osd = self.pytesseract.image_to_osd(image)
        except Exception as e:
            logger.error(f"Language detection failed: {e}")
            return DEFAULT_LANGUAGE

        script = parse_osd_script(osd)
        logger.info(f"Detected script: {script}")
        return language_for_script(script)


# ============================================================================
# Utility Functions
# ============================================================================

def words_to_fragments(data: dict) -> List[Fragment]:
    """
    Convert pytesseract image_to_data output into fragments.

    Entries with negative confidence are layout rows (blocks, lines),
    not words, and are skipped. Empty words are kept; row grouping
    drops them.
    """
    fragments = []
    for i in range(len(data['text'])):
        if float(data['conf'][i]) < 0:
            continue
        fragments.append(Fragment(
            text=str(data['text'][i]),
            x=float(data['left'][i]),
            y=float(data['top'][i]),
            width=float(data['width'][i]),
        ))
    return fragments


def parse_osd_script(osd: str) -> Optional[str]:
    """Pull the script name out of tesseract OSD output."""
    match = re.search(r'Script:\s*(\S+)', osd)
    return match.group(1) if match else None
