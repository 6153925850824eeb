"""
Column lane inference and row-to-lane projection.

A lane is an inferred vertical column band, represented by the X of the
fragment that opened it. Lanes are computed once per document and shared
by every page and row, which keeps sparse rows aligned.
"""

import logging
from typing import List, Sequence

import numpy as np

from .fragments import Fragment

logger = logging.getLogger(__name__)

DEFAULT_X_CLUSTER_THRESHOLD = 20.0


def infer_lanes(
    fragments: Sequence[Fragment],
    threshold: float = DEFAULT_X_CLUSTER_THRESHOLD
) -> List[float]:
    """
    Cluster the X positions of all fragments into ordered lane anchors.

    Every value is compared with the anchor of the active lane, not with
    the previous value, so a slowly drifting cluster can stay in one lane.

    Args:
        fragments: Every fragment of the document, blank ones included
        threshold: Distance past the anchor that opens a new lane

    Returns:
        Ascending list of lane anchor X positions (empty for no fragments)
    """
    xs = sorted(f.x for f in fragments)
    if not xs:
        return []

    lanes = [xs[0]]
    anchor = xs[0]
    for x in xs[1:]:
        if x - anchor > threshold:
            anchor = x
            lanes.append(anchor)

    logger.debug(f"Inferred {len(lanes)} lanes from {len(xs)} fragments")
    return lanes


def nearest_lane(x: float, lanes: Sequence[float]) -> int:
    """Index of the lane closest to x; ties go to the leftmost lane."""
    distances = np.abs(np.asarray(lanes, dtype=float) - x)
    # argmin returns the first minimum
    return int(np.argmin(distances))


def project_row(fragments: Sequence[Fragment], lanes: Sequence[float]) -> List[str]:
    """
    Project one row's fragments onto the lanes.

    Fragments landing in the same lane are joined with a single space,
    in the order they are given.

    Returns:
        One cell string per lane
    """
    cells = [""] * len(lanes)
    if not lanes:
        return cells

    for fragment in fragments:
        idx = nearest_lane(fragment.x, lanes)
        cells[idx] = (cells[idx] + " " + fragment.text).strip()

    return cells
