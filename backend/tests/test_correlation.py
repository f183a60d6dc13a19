"""
Tests for analytics/correlation.py — Pearson matrix and strongest-pair summary.
"""

import os
import sys
import pytest
import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from analytics.correlation import (
    align_series,
    correlate,
    pair_coefficient,
    pearson,
    strongest_pairs,
    correlation_matrix,
)

TERMS = ["Spring 2022", "Summer 2022", "Fall 2022", "Spring 2023", "Fall 2023"]


def _series(name, values, terms=TERMS):
    return {"name": name, "points": [{"term": t, "value": v} for t, v in zip(terms, values)]}


class TestPearson:

    def test_perfect_positive(self):
        assert pearson([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)

    def test_perfect_negative(self):
        assert pearson([1, 2, 3], [3, 2, 1]) == pytest.approx(-1.0)

    def test_matches_numpy(self):
        x, y = [3.1, 2.9, 3.3, 3.0, 3.4], [2.8, 2.7, 3.0, 3.1, 3.2]
        assert pearson(x, y) == pytest.approx(np.corrcoef(x, y)[0, 1])

    def test_fewer_than_two_points(self):
        assert pearson([3.0], [2.0]) is None
        assert pearson([], []) is None

    def test_zero_variance(self):
        assert pearson([3.0, 3.0, 3.0], [1.0, 2.0, 3.0]) is None

    def test_constant_up_to_rounding(self):
        assert pearson([3.4, 3.4000000000000004, 3.4], [1.0, 2.0, 3.0]) is None

    def test_small_real_variation_still_correlates(self):
        assert pearson([3.40, 3.41, 3.42], [1.0, 2.0, 3.0]) == pytest.approx(1.0)


class TestAlignSeries:

    def test_restricts_to_shared_terms_in_calendar_order(self):
        x = {"Fall 2023": 3.0, "Spring 2023": 2.5, "Fall 2022": 2.9}
        y = {"Spring 2023": 3.3, "Fall 2023": 3.6, "Summer 2023": 3.1}
        aligned = align_series(x, y)
        assert aligned["terms"] == ["Spring 2023", "Fall 2023"]
        assert aligned["x"] == [2.5, 3.0]
        assert aligned["y"] == [3.3, 3.6]


class TestCorrelationMatrix:

    def test_self_correlation_is_one(self):
        result = correlate([_series("CS 1332", [3.0, 3.2, 3.1, 2.9, 3.3])])
        assert result["matrix"][0][0]["coefficient"] == 1.0

    def test_symmetric(self):
        series = [
            _series("CS 1332", [3.0, 3.2, 3.1, 2.9, 3.3]),
            _series("CS 2110", [2.7, 2.9, 3.0, 2.8, 3.1]),
            _series("MATH 1554", [2.5, 2.4, 2.6, 2.7, 2.3]),
        ]
        result = correlate(series)
        for a in result["labels"]:
            for b in result["labels"]:
                assert pair_coefficient(result, a, b) == pair_coefficient(result, b, a)

    def test_pair_shape(self):
        result = correlate([_series("X", [1, 2, 3]), _series("Y", [1, 3, 2])])
        assert result["labels"] == ["X", "Y"]
        assert set(result["matrix"][0][1]) == {"name_a", "name_b", "coefficient"}
        assert result["matrix"][0][1]["name_a"] == "X"
        assert result["matrix"][0][1]["name_b"] == "Y"

    def test_uses_common_terms_only(self):
        x = _series("X", [3.0, 3.2, 3.1, 2.9, 3.3])
        y = {"name": "Y", "points": [
            {"term": "Fall 2023", "value": 3.6},
            {"term": "Spring 2022", "value": 3.0},
            {"term": "Fall 2022", "value": 3.2},
        ]}
        expected = np.corrcoef([3.0, 3.1, 3.3], [3.0, 3.2, 3.6])[0, 1]
        assert pair_coefficient(correlate([x, y]), "X", "Y") == pytest.approx(expected)

    def test_one_common_term_is_none(self):
        x = _series("X", [3.0, 3.1], terms=["Fall 2022", "Spring 2023"])
        y = _series("Y", [2.0, 2.5], terms=["Spring 2023", "Fall 2023"])
        assert pair_coefficient(correlate([x, y]), "X", "Y") is None

    def test_constant_series_is_none_everywhere(self):
        flat = _series("FLAT", [3.0, 3.0, 3.0, 3.0, 3.0])
        other = _series("X", [3.0, 3.2, 3.1, 2.9, 3.3])
        result = correlate([flat, other])
        assert pair_coefficient(result, "FLAT", "X") is None
        assert pair_coefficient(result, "FLAT", "FLAT") is None

    def test_null_points_ignored(self):
        x = _series("X", [3.0, None, 3.1, 2.9, 3.3])
        matrix = correlation_matrix([x, x])["matrix"]
        assert matrix[0][1]["coefficient"] == pytest.approx(1.0)

    def test_empty_input(self):
        result = correlate([])
        assert result["labels"] == []
        assert result["matrix"] == []
        assert result["summary"]["positive"] == []


class TestSummary:

    @pytest.fixture
    def series(self):
        base = [3.0, 3.2, 3.1, 2.9, 3.3]
        return [
            _series("A", base),
            _series("B", [2 * v + 1 for v in base]),
            _series("C", [-v for v in base]),
            _series("D", [1, 2, 3, 4, 5], terms=TERMS[:4] + ["Summer 2023"]),
        ]

    def test_strongest_positive(self, series):
        summary = correlate(series)["summary"]
        assert [(p["name_a"], p["name_b"]) for p in summary["positive"]] == [("A", "B")]

    def test_strongest_negative(self, series):
        summary = correlate(series)["summary"]
        names = {(p["name_a"], p["name_b"]) for p in summary["negative"]}
        assert names == {("A", "C"), ("B", "C")}
        assert all(p["coefficient"] < -0.7 for p in summary["negative"])

    def test_diagonal_and_duplicates_excluded(self, series):
        summary = correlate(series)["summary"]
        pairs = summary["positive"] + summary["negative"]
        assert all(p["name_a"] != p["name_b"] for p in pairs)
        keys = [tuple(sorted((p["name_a"], p["name_b"]))) for p in pairs]
        assert len(keys) == len(set(keys))

    def test_capped_at_three(self):
        base = [3.0, 3.2, 3.1, 2.9, 3.3]
        series = [_series(f"S{i}", [v + i for v in base]) for i in range(5)]
        summary = correlate(series)["summary"]
        assert len(summary["positive"]) == 3
        assert summary["negative"] == []

    def test_weak_pairs_omitted(self):
        # r = 0.6, below the 0.7 threshold
        result = correlate([_series("X", [1, 2, 3, 4]), _series("Y", [2, 1, 4, 3])])
        assert pair_coefficient(result, "X", "Y") == pytest.approx(0.6)
        assert result["summary"]["positive"] == []

    def test_threshold_is_configurable(self):
        result = correlate([_series("X", [1, 2, 3, 4]), _series("Y", [2, 1, 4, 3])], threshold=0.5)
        assert len(result["summary"]["positive"]) == 1

    def test_summary_lines(self, series):
        lines = correlate(series)["summary"]["lines"]
        assert lines[0].startswith("The general trend between A, B, C, and D")
        assert any("A and B are highly positively correlated" in line for line in lines)
        assert "Meanwhile," in lines

    def test_summary_lines_without_correlations(self):
        lines = correlate([_series("X", [1, 2, 3, 4]), _series("Y", [2, 1, 4, 3])])["summary"]["lines"]
        assert lines == [
            "- There doesn't seem to be any notable positive correlations (r > 0.7).",
            "- There doesn't seem to be any notable negative correlations (r < -0.7).",
        ]

    def test_strongest_pairs_skips_undefined(self):
        matrix = [
            [{"name_a": "X", "name_b": "X", "coefficient": None},
             {"name_a": "X", "name_b": "Y", "coefficient": None}],
            [{"name_a": "Y", "name_b": "X", "coefficient": None},
             {"name_a": "Y", "name_b": "Y", "coefficient": 1.0}],
        ]
        assert strongest_pairs(matrix) == {"positive": [], "negative": []}
