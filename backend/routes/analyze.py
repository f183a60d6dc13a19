"""
Analyze routes — grade analytics API endpoints.

Every endpoint takes already-fetched section records in the request body
({"data": [...]}) and returns the engine output as JSON.
"""

import os
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException

from analytics.aggregate import VIEWS, breakdown, gpa_series, overall, term_averages
from analytics.correlation import correlate
from analytics.history import query_history
from analytics.rankings import biggest_movers, rank

router = APIRouter()

MIN_ENROLLMENT = int(os.getenv("MIN_ENROLLMENT", "3"))
CORRELATION_THRESHOLD = float(os.getenv("CORRELATION_THRESHOLD", "0.7"))
CORRELATION_TOP_K = int(os.getenv("CORRELATION_TOP_K", "3"))


def _records_from_payload(payload: dict) -> List[Dict[str, Any]]:
    """Extract section records from request payload."""
    data = payload.get("data")
    if not data:
        raise HTTPException(400, "No data provided.")
    return data


def _check_view(view: str) -> str:
    if view not in VIEWS:
        raise HTTPException(404, f"Unknown view '{view}'. Use one of: {list(VIEWS)}")
    return view


@router.post("/{view}/overall")
async def overall_stats(view: str, payload: dict):
    """
    One course's or instructor's all-time weighted statistics.
    Expects: { "data": [...records...], "id": "CS 1332" } (id optional)
    """
    records = _records_from_payload(payload)
    try:
        return overall(
            records, view=_check_view(view), entity_id=payload.get("id"),
            min_enrollment=MIN_ENROLLMENT,
        )
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.post("/{view}/breakdown")
async def breakdown_stats(view: str, payload: dict):
    """Statistics split by counterpart (instructor within course, course within instructor)."""
    records = _records_from_payload(payload)
    try:
        return breakdown(
            records, view=_check_view(view), entity_id=payload.get("id"),
            min_enrollment=MIN_ENROLLMENT,
        )
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.post("/{view}/history")
async def history(view: str, payload: dict):
    """Term -> {term stats, per-counterpart stats, section rows}, calendar ordered."""
    records = _records_from_payload(payload)
    try:
        return query_history(
            records, view=_check_view(view), entity_id=payload.get("id"),
            min_enrollment=MIN_ENROLLMENT,
        )
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.post("/{view}/term-averages")
async def averages_by_term(view: str, payload: dict):
    """Per-term, per-entity weighted statistics."""
    records = _records_from_payload(payload)
    try:
        return term_averages(records, view=_check_view(view), min_enrollment=MIN_ENROLLMENT)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.post("/{view}/rankings")
async def rankings(view: str, payload: dict):
    """
    Difficulty rankings per term with rank deltas.
    Expects: { "data": [...records...], "options": { "calendar_adjacent": false, "term": null } }
    """
    records = _records_from_payload(payload)
    options = payload.get("options", {})
    try:
        ranked = rank(
            term_averages(records, view=_check_view(view), min_enrollment=MIN_ENROLLMENT),
            calendar_adjacent=bool(options.get("calendar_adjacent", False)),
        )
    except ValueError as e:
        raise HTTPException(400, str(e))

    result: Dict[str, Any] = {"rankings": ranked}
    term = options.get("term")
    if term:
        if term not in ranked:
            raise HTTPException(404, f"Term '{term}' not found.")
        result["movers"] = biggest_movers(ranked, term)
    return result


@router.post("/correlations")
async def correlations(payload: dict):
    """
    Correlation matrix over GPA-over-time series.
    Expects either { "series": [{"name", "points": [{"term", "value"}]}] }
    or { "data": [...records...], "view": "course", "keys": ["CS 1332", ...] }.
    """
    series = payload.get("series")
    try:
        if not series:
            records = _records_from_payload(payload)
            view = _check_view(payload.get("view", "course"))
            series = gpa_series(
                term_averages(records, view=view, min_enrollment=MIN_ENROLLMENT),
                keys=payload.get("keys"),
            )
        return correlate(series, threshold=CORRELATION_THRESHOLD, top_k=CORRELATION_TOP_K)
    except (KeyError, ValueError) as e:
        raise HTTPException(400, f"Invalid correlation input: {e}")
