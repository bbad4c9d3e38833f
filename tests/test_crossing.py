"""
Tests for the crossing detector.
"""

import numpy as np
import pytest

from signalbt.crossing import Relationship, crossing_indices, detect_crossing


class TestConstantReference:
    def test_up_crossings(self):
        series = [None, -1, 1, 2, 3, -1, -2, 1]
        events = detect_crossing(series, 0, Relationship.GT)
        assert crossing_indices(events) == [2, 7]

    def test_down_crossings(self):
        series = [None, -1, 1, 2, 3, -1, -2, 1]
        events = detect_crossing(series, 0, "lt")
        assert crossing_indices(events) == [5]

    def test_aligned_with_series(self):
        series = [1.0, 2.0, 3.0]
        assert len(detect_crossing(series, 0, "gt")) == len(series)

    def test_equality_does_not_satisfy(self):
        events = detect_crossing([-1, 0, 1], 0, "gt")
        assert crossing_indices(events) == [2]

    def test_sustained_relationship_fires_once(self):
        events = detect_crossing([-1, 1, 2, 3, 4, 5], 0, "gt")
        assert crossing_indices(events) == [1]

    def test_first_bar_never_fires(self):
        events = detect_crossing([5, 6], 0, "gt")
        assert events == [False, False]

    def test_no_events_in_warm_up(self):
        events = detect_crossing([None, None, None], 0, "gt")
        assert not any(events)

    def test_no_event_across_undefined_gap(self):
        events = detect_crossing([-1, None, 1], 0, "gt")
        assert not any(events)

    def test_threshold_reference(self):
        events = detect_crossing([0.0, 0.05, 0.08, 0.02, 0.09], 0.07, "gt")
        assert crossing_indices(events) == [2, 4]

    @pytest.mark.parametrize("zero", [np.float32(0), np.float64(0), np.int64(0)])
    def test_numpy_scalar_reference(self, zero):
        events = detect_crossing([-1.0, 0.5, 1.0, -0.5], zero, "gt")
        assert crossing_indices(events) == [1]

    def test_at_most_once_per_run(self):
        series = [(-1) ** (i // 3) * (i % 5 + 1) for i in range(60)]
        events = detect_crossing(series, 0, "gt")
        for i in crossing_indices(events):
            assert series[i] > 0
            assert not series[i - 1] > 0


class TestSeriesReference:
    def test_line_cross(self):
        events = detect_crossing([1, 2, 3, 4], [2, 2, 2, 2], "gt")
        assert crossing_indices(events) == [2]

    def test_undefined_reference_skipped(self):
        events = detect_crossing([1, 3, 1, 3], [None, 2, 2, 2], "gt")
        assert crossing_indices(events) == [3]

    def test_length_mismatch(self):
        with pytest.raises(ValueError, match="does not match"):
            detect_crossing([1, 2, 3], [1, 2], "gt")


class TestRelationship:
    def test_unknown_relationship(self):
        with pytest.raises(ValueError):
            detect_crossing([1, 2], 0, "eq")
