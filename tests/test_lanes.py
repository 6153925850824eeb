"""
Tests for column lane inference and projection.
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from table_recon.utils.fragments import Fragment
from table_recon.utils.lanes import infer_lanes, nearest_lane, project_row


def frags(*xs):
    return [Fragment(text=f"t{i}", x=x, y=0.0) for i, x in enumerate(xs)]


class TestInferLanes:
    """Tests for infer_lanes."""

    def test_no_fragments(self):
        """Zero fragments yield zero lanes."""
        assert infer_lanes([]) == []

    def test_single_fragment(self):
        """One fragment anchors one lane."""
        assert infer_lanes(frags(42.0)) == [42.0]

    def test_unordered_input(self):
        """X values are sorted before clustering."""
        assert infer_lanes(frags(200, 0, 100, 3, 104, 198)) == [0, 100, 198]

    def test_threshold_is_exclusive(self):
        """A value exactly at the threshold stays in the lane."""
        assert infer_lanes(frags(0, 20)) == [0]
        assert infer_lanes(frags(0, 20.5)) == [0, 20.5]

    def test_compares_against_anchor(self):
        """Small steps still open a lane once the anchor is far enough away."""
        # 15-unit steps never exceed the threshold pairwise
        assert infer_lanes(frags(0, 15, 30, 45)) == [0, 30]

    def test_all_same_x(self):
        """Identical X values collapse into one lane."""
        assert infer_lanes(frags(50, 50, 50)) == [50]

    def test_custom_threshold(self):
        """Threshold is configurable."""
        assert infer_lanes(frags(0, 8, 16), threshold=5) == [0, 8, 16]

    def test_blank_fragments_count(self):
        """Blank fragments still contribute X values."""
        fragments = frags(0) + [Fragment(text="  ", x=300, y=0)]
        assert infer_lanes(fragments) == [0, 300]


class TestProjection:
    """Tests for nearest_lane and project_row."""

    def test_nearest_lane(self):
        """Fragments go to the closest anchor."""
        lanes = [0, 100, 200]
        assert nearest_lane(12, lanes) == 0
        assert nearest_lane(160, lanes) == 2
        assert nearest_lane(-30, lanes) == 0

    def test_tie_goes_left(self):
        """Equidistant fragments land in the leftmost lane."""
        assert nearest_lane(50, [0, 100]) == 0

    def test_project_row_fixed_width(self):
        """Output always has one cell per lane."""
        row = [Fragment("a", 0, 0), Fragment("c", 205, 0)]
        assert project_row(row, [0, 100, 200]) == ["a", "", "c"]

    def test_same_lane_joined(self):
        """Fragments sharing a lane are space-joined in arrival order."""
        row = [Fragment("Unit", 0, 0), Fragment("Price", 12, 0)]
        assert project_row(row, [0, 100]) == ["Unit Price", ""]

    def test_text_trimmed(self):
        """Joined cells are trimmed."""
        row = [Fragment("  x ", 0, 0)]
        assert project_row(row, [0]) == ["x"]

    def test_no_lanes(self):
        """No lanes produce an empty row."""
        assert project_row([Fragment("a", 0, 0)], []) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
