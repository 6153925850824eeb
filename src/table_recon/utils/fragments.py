"""
Positioned text fragments - the input of table reconstruction.

Provides:
- Origin enumeration (native text layer vs OCR)
- Fragment data class
- FragmentDocument: pages of fragments sharing one origin
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any, Iterator

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

class Origin(str, Enum):
    """Where fragments came from; decides the direction of the Y axis."""
    NATIVE = "native"  # PDF user space, Y grows upward
    OCR = "ocr"        # image space, Y grows downward


@dataclass(frozen=True)
class Fragment:
    """A single positioned piece of text."""
    text: str
    x: float
    y: float
    width: float = 0.0

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()

    @property
    def right(self) -> float:
        return self.x + self.width

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "x": self.x,
            "y": self.y,
            "width": self.width,
        }


@dataclass
class FragmentDocument:
    """
    Ordered pages of fragments for one document.

    Origin is a property of the whole document: the native-vs-OCR
    decision is made once upstream, so pages never mix conventions.
    """
    pages: List[List[Fragment]] = field(default_factory=list)
    origin: Origin = Origin.NATIVE

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def iter_fragments(self) -> Iterator[Fragment]:
        for page in self.pages:
            yield from page

    def all_fragments(self) -> List[Fragment]:
        return list(self.iter_fragments())

    @property
    def total_characters(self) -> int:
        """Character count over every fragment, used for scan detection."""
        return sum(len(f.text) for f in self.iter_fragments())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "origin": self.origin.value,
            "pages": [[f.to_dict() for f in page] for page in self.pages],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FragmentDocument":
        pages = [
            [Fragment(
                text=str(item.get("text", "")),
                x=float(item["x"]),
                y=float(item["y"]),
                width=float(item.get("width", 0.0)),
            ) for item in page]
            for page in data.get("pages", [])
        ]
        return cls(pages=pages, origin=Origin(data.get("origin", Origin.NATIVE.value)))
