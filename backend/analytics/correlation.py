"""
correlation.py — Pairwise Pearson correlation between GPA-over-time series.

Each series is {"name": str, "points": [{"term": str, "value": float}, ...]}.
For every ordered pair the two series are restricted to the terms they
share, put in calendar order, and correlated with scipy.stats.pearsonr.

The coefficient is None when fewer than 2 terms are shared or either
side has zero variance.
"""

import heapq
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from scipy import stats as sp_stats

from analytics.narrative import narrate_correlation_summary
from analytics.records import _sanitize
from analytics.terms import canonical_term, sort_terms


CORRELATION_THRESHOLD = 0.7
SUMMARY_TOP_K = 3


# ── Helpers ─────────────────────────────────────────────────────────

def _points_by_term(series: Dict[str, Any]) -> Dict[str, float]:
    """Canonical term -> value, later duplicates win, null values dropped."""
    out: Dict[str, float] = {}
    for point in series.get("points") or []:
        value = point.get("value")
        if value is None:
            continue
        out[canonical_term(point["term"])] = float(value)
    return out


def align_series(x: Dict[str, float], y: Dict[str, float]) -> Dict[str, List[float]]:
    """Restrict two term->value maps to their shared terms, calendar ordered."""
    common = sort_terms(set(x) & set(y))
    return {
        "terms": common,
        "x": [x[t] for t in common],
        "y": [y[t] for t in common],
    }


def _is_constant(values: np.ndarray) -> bool:
    """Zero variance, allowing for float rounding left by the weighted fold."""
    return bool(np.isclose(values, values[0], rtol=1e-9, atol=1e-12).all())


def pearson(x: Sequence[float], y: Sequence[float]) -> Optional[float]:
    """Pearson r, or None when undefined (n < 2 or zero variance)."""
    xv = np.asarray(x, dtype=float)
    yv = np.asarray(y, dtype=float)
    if len(xv) < 2 or len(xv) != len(yv):
        return None
    if _is_constant(xv) or _is_constant(yv):
        return None
    r, _ = sp_stats.pearsonr(xv, yv)
    r = float(r)
    if np.isnan(r):
        return None
    return float(np.clip(r, -1.0, 1.0))


# ── Matrix ──────────────────────────────────────────────────────────

def correlation_matrix(series: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Full symmetric matrix of {name_a, name_b, coefficient} pairs."""
    labels = [str(s["name"]) for s in series]
    points = [_points_by_term(s) for s in series]
    n = len(series)

    coefficients: List[List[Optional[float]]] = [[None] * n for _ in range(n)]
    for i in range(n):
        for j in range(i, n):
            aligned = align_series(points[i], points[j])
            r = pearson(aligned["x"], aligned["y"])
            if i == j and r is not None:
                r = 1.0
            coefficients[i][j] = r
            coefficients[j][i] = r

    matrix = [
        [
            {"name_a": labels[i], "name_b": labels[j], "coefficient": coefficients[i][j]}
            for j in range(n)
        ]
        for i in range(n)
    ]
    return {"labels": labels, "matrix": matrix}


def strongest_pairs(
    matrix: List[List[Dict[str, Any]]],
    threshold: float = CORRELATION_THRESHOLD,
    top_k: int = SUMMARY_TOP_K,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Up to top_k strongest positive (r > threshold) and negative
    (r < -threshold) pairs. Diagonal, duplicate and undefined pairs are
    left out.
    """
    seen = set()
    pairs: List[Dict[str, Any]] = []
    for i, row in enumerate(matrix):
        for j, pair in enumerate(row):
            if i == j or pair["coefficient"] is None:
                continue
            pair_key = tuple(sorted((i, j)))
            if pair_key in seen:
                continue
            seen.add(pair_key)
            pairs.append(pair)

    positive = heapq.nlargest(top_k, (p for p in pairs if p["coefficient"] > threshold),
                              key=lambda p: p["coefficient"])
    negative = heapq.nsmallest(top_k, (p for p in pairs if p["coefficient"] < -threshold),
                               key=lambda p: p["coefficient"])
    return {"positive": positive, "negative": negative}


def correlate(
    series: List[Dict[str, Any]],
    threshold: float = CORRELATION_THRESHOLD,
    top_k: int = SUMMARY_TOP_K,
) -> Dict[str, Any]:
    """Correlation matrix plus a short summary of the strongest relationships."""
    result = correlation_matrix(series)
    strongest = strongest_pairs(result["matrix"], threshold=threshold, top_k=top_k)
    result["summary"] = {
        "threshold": threshold,
        "positive": strongest["positive"],
        "negative": strongest["negative"],
        "lines": narrate_correlation_summary(
            result["labels"], strongest["positive"], strongest["negative"], threshold
        ),
    }
    return _sanitize(result)


def pair_coefficient(result: Dict[str, Any], name_a: str, name_b: str) -> Optional[float]:
    """Look up one coefficient in a correlate() result by series names."""
    labels = result["labels"]
    return result["matrix"][labels.index(name_a)][labels.index(name_b)]["coefficient"]
