"""Tests for timer summaries"""
import pytest

from metrics.percentiles import round_half_away_from_zero, summarize


class TestRounding:
    """Test half-away-from-zero rounding"""

    @pytest.mark.parametrize("value,expected", [
        (0.2, 0),
        (0.5, 1),
        (1.5, 2),
        (2.5, 3),
        (2.49, 2),
        (-2.5, -3),
    ])
    def test_rounding(self, value, expected):
        assert round_half_away_from_zero(value) == expected


class TestSummarize:
    """Test percentile statistics"""

    def test_empty(self):
        assert summarize([]) is None

    def test_single_sample(self):
        summary = summarize([30.0], 75)

        assert summary.lower == summary.mean == summary.upper == summary.upper_percentile == 30.0

    def test_two_samples(self):
        summary = summarize([40.0, 30.0], 90)

        assert summary.lower == 30.0
        assert summary.upper == 40.0
        assert summary.mean == 35.0
        assert summary.upper_percentile == 40.0

    def test_threshold_drops_top_samples(self):
        """With ten samples the 90th percentile excludes the largest one"""
        summary = summarize(range(1, 11), 90)

        assert summary.lower == 1
        assert summary.upper == 10
        assert summary.upper_percentile == 9
        assert summary.mean == 5.0

    def test_threshold_rounds_half_up(self):
        """Five samples at the 90th percentile: 0.5 rounds to one dropped sample"""
        summary = summarize([5.0, 1.0, 4.0, 2.0, 3.0], 90)

        assert summary.upper_percentile == 4.0
        assert summary.mean == 2.5
        assert summary.upper == 5.0

    def test_hundredth_percentile_keeps_everything(self):
        summary = summarize([1.0, 2.0, 3.0], 100)

        assert summary.upper_percentile == 3.0
        assert summary.mean == 2.0

    def test_low_percentile_keeps_smallest_sample(self):
        summary = summarize([1.0, 2.0], 1)

        assert summary.upper_percentile == 1.0
        assert summary.mean == 1.0

    def test_items_order(self):
        summary = summarize([30.0], 90)

        assert [key for key, _ in summary.items()] == ["lower", "mean", "upper", "upper_90"]

    def test_input_not_mutated(self):
        samples = [3.0, 1.0, 2.0]
        summarize(samples)

        assert samples == [3.0, 1.0, 2.0]
