"""
Row grouping for a single page.

Provides:
- RowBucket accumulators keyed by a representative Y
- First-match Y bucketing in arrival order
- Origin-aware row ordering
- Gap-based adjacency merge (alternative row construction)
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .fragments import Fragment, Origin

logger = logging.getLogger(__name__)

NATIVE_Y_TOLERANCE = 5.0
OCR_Y_TOLERANCE = 8.0


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class RowBucket:
    """Fragments judged to share one visual line."""
    key: float
    fragments: List[Fragment] = field(default_factory=list)

    def accepts(self, y: float, tolerance: float) -> bool:
        return abs(self.key - y) < tolerance


# ============================================================================
# Grouping
# ============================================================================

def default_tolerance(origin: Origin) -> float:
    """Y tolerance for an origin; OCR coordinates jitter more."""
    return OCR_Y_TOLERANCE if origin == Origin.OCR else NATIVE_Y_TOLERANCE


def group_rows(
    fragments: Sequence[Fragment],
    tolerance: float = NATIVE_Y_TOLERANCE
) -> List[RowBucket]:
    """
    Bucket a page's fragments into rows by Y proximity.

    Buckets are scanned in creation order and the first one within
    tolerance wins, even if a later bucket is closer. Blank fragments
    are skipped.

    Returns:
        Buckets in creation order (not yet sorted)
    """
    buckets: List[RowBucket] = []
    for fragment in fragments:
        if fragment.is_blank:
            continue
        for bucket in buckets:
            if bucket.accepts(fragment.y, tolerance):
                bucket.fragments.append(fragment)
                break
        else:
            buckets.append(RowBucket(key=fragment.y, fragments=[fragment]))
    return buckets


def order_rows(buckets: Sequence[RowBucket], origin: Origin) -> List[RowBucket]:
    """
    Sort buckets into visual top-to-bottom order.

    Native PDF space has Y increasing upward, so larger keys come first.
    OCR image space has Y increasing downward, so smaller keys come first.
    """
    return sorted(buckets, key=lambda b: b.key, reverse=(origin == Origin.NATIVE))


def group_page(
    fragments: Sequence[Fragment],
    origin: Origin,
    tolerance: Optional[float] = None
) -> List[RowBucket]:
    """Group and order one page's rows."""
    if tolerance is None:
        tolerance = default_tolerance(origin)
    rows = order_rows(group_rows(fragments, tolerance), origin)
    logger.debug(f"Grouped {len(fragments)} fragments into {len(rows)} rows")
    return rows


# ============================================================================
# Adjacency Merge
# ============================================================================

def merge_adjacent(fragments: Sequence[Fragment], gap_threshold: float) -> List[str]:
    """
    Merge a row's fragments into cells by horizontal gap.

    Fragments are walked left to right; a fragment whose left edge is
    closer than gap_threshold to the right edge of the previous one is
    appended to the current cell with a single space, otherwise it
    starts a new cell.

    Returns:
        Cell strings in left-to-right order
    """
    cells: List[str] = []
    previous = None
    for fragment in sorted(fragments, key=lambda f: f.x):
        if fragment.is_blank:
            continue
        text = fragment.text.strip()
        if previous is not None and fragment.x - previous.right < gap_threshold:
            cells[-1] = f"{cells[-1]} {text}"
        else:
            cells.append(text)
        previous = fragment
    return cells
