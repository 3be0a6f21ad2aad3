"""Tests for the overall score and weight snapshot."""

import math

import pytest

from tai_report.services.scoring.weighting import (
    WeightSource,
    compute_overall_score,
    normalize_weight_snapshot,
)
from tai_report.services.types import IndicatorWeight


class TestWeightSources:
    def test_plain_mean_without_project_configuration(self):
        result = compute_overall_score({"ACCURACY": 0.9, "SAFETY": 0.3})

        assert result.overall_score == pytest.approx(0.6)
        assert result.source is WeightSource.UNWEIGHTED
        assert result.weight_snapshot is None

    def test_equal_weights_skip_not_applicable_indicators(self):
        priorities = [
            IndicatorWeight("ACCURACY", rank=1),
            IndicatorWeight("SAFETY", rank=2),
        ]

        result = compute_overall_score({"ACCURACY": 0.9, "SAFETY": -1}, priorities)

        assert result.overall_score == pytest.approx(0.9)
        assert result.source is WeightSource.EQUAL_WEIGHTS
        assert result.weight_snapshot == {"ACCURACY": 0.5, "SAFETY": 0.5}
        assert result.contributing == ("ACCURACY",)

    def test_user_weights(self):
        priorities = [
            IndicatorWeight("ACCURACY", rank=1, weight=0.3),
            IndicatorWeight("SAFETY", rank=2, weight=0.7),
        ]

        result = compute_overall_score({"ACCURACY": 1.0, "SAFETY": 0.5}, priorities)

        assert result.source is WeightSource.USER_WEIGHTS
        assert result.overall_score == pytest.approx(0.3 * 1.0 + 0.7 * 0.5)
        assert result.weight_snapshot == pytest.approx({"ACCURACY": 0.3, "SAFETY": 0.7})

    def test_unnormalized_user_weights_are_normalized_in_snapshot(self):
        priorities = [
            IndicatorWeight("ACCURACY", rank=1, weight=2),
            IndicatorWeight("SAFETY", rank=2, weight=6),
        ]

        result = compute_overall_score({"ACCURACY": 0.4, "SAFETY": 0.8}, priorities)

        assert result.overall_score == pytest.approx((0.4 * 2 + 0.8 * 6) / 8)
        assert result.weight_snapshot == pytest.approx({"ACCURACY": 0.25, "SAFETY": 0.75})

    def test_missing_and_non_positive_weights_are_skipped(self):
        priorities = [
            IndicatorWeight("ACCURACY", rank=1, weight=1.0),
            IndicatorWeight("SAFETY", rank=2, weight=None),
            IndicatorWeight("PRIVACY", rank=3, weight=0.0),
        ]

        result = compute_overall_score(
            {"ACCURACY": 0.2, "SAFETY": 1.0, "PRIVACY": 1.0}, priorities
        )

        assert result.overall_score == pytest.approx(0.2)

    def test_indicator_without_weight_entry_is_skipped(self):
        priorities = [IndicatorWeight("ACCURACY", rank=1, weight=1.0)]

        result = compute_overall_score({"ACCURACY": 0.2, "FAIRNESS": 1.0}, priorities)

        assert result.overall_score == pytest.approx(0.2)


class TestEdgeCases:
    def test_no_valid_indicator_gives_zero(self):
        result = compute_overall_score({"SAFETY": -1, "PRIVACY": -1})

        assert result.overall_score == 0.0

    def test_empty_scores_give_zero(self):
        assert compute_overall_score({}).overall_score == 0.0

    def test_nan_scores_are_ignored(self):
        result = compute_overall_score({"SAFETY": math.nan, "PRIVACY": 0.4})

        assert result.overall_score == pytest.approx(0.4)

    def test_snapshot_already_normalized_is_unchanged(self):
        assert normalize_weight_snapshot({"A": 0.3, "B": 0.7}) == pytest.approx(
            {"A": 0.3, "B": 0.7}
        )

    def test_zero_sum_snapshot_is_kept_raw(self):
        assert normalize_weight_snapshot({"A": 0.0, "B": 0.0}) == {"A": 0.0, "B": 0.0}
