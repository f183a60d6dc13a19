"""
aggregate.py — Enrollment-weighted grade aggregation.

Folds section records into running weighted statistics:
- Grade distribution (A, B, C, D, F, W percentages) and GPA
- Total enrollment
- Ordered sets of terms, sections and counterpart ids seen

The same engine serves both views of the data:
- "course":     grouped by course_id, counterparts are instructors
- "instructor": grouped by instructor_id, counterparts are courses
"""

from functools import reduce
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

import numpy as np

from analytics.filters import filter_records
from analytics.records import GRADE_FIELDS, Records, _sanitize, normalize_records
from analytics.terms import sort_terms


KeyFn = Union[str, Callable[[Dict[str, Any]], Any]]

VIEWS: Dict[str, Dict[str, str]] = {
    "course": {"key": "course_id", "counterpart": "instructor_id"},
    "instructor": {"key": "instructor_id", "counterpart": "course_id"},
}


def resolve_view(view: str) -> Dict[str, str]:
    """Look up a view by name ('course' or 'instructor')."""
    if view not in VIEWS:
        raise ValueError(f"Unknown view '{view}'. Expected one of: {list(VIEWS)}")
    return VIEWS[view]


def _key_of(record: Dict[str, Any], key: Optional[KeyFn]) -> Any:
    if key is None:
        return None
    if callable(key):
        return key(record)
    return record.get(key)


def _add(ids: Tuple[Any, ...], value: Any) -> Tuple[Any, ...]:
    """Ordered-set insert on a tuple."""
    if value is None or value in ids:
        return ids
    return ids + (value,)


# ── Reducer ─────────────────────────────────────────────────────────

def new_aggregate(key: Any = None) -> Dict[str, Any]:
    """An empty aggregate: no enrollment, every grade field None."""
    acc: Dict[str, Any] = {
        "key": key,
        "terms": (),
        "sections": (),
        "counterparts": (),
        "total_enrollment": 0,
    }
    for field in GRADE_FIELDS:
        acc[field] = None
    return acc


def fold(acc: Dict[str, Any], record: Dict[str, Any], counterpart: Optional[KeyFn] = None) -> Dict[str, Any]:
    """
    Fold one section record into an aggregate and return the new aggregate.

    Each grade field is an online enrollment-weighted mean. A null record
    value counts as 0 weighted by the record's enrollment; it is not
    skipped. A field stays None only while every folded value was None.
    """
    out = dict(acc)
    total = acc["total_enrollment"]
    enrollment = int(record.get("enrollment") or 0)
    denominator = total + enrollment

    for field in GRADE_FIELDS:
        current = acc[field]
        value = record.get(field)
        if current is None and value is None:
            continue
        if denominator == 0:
            out[field] = current if current is not None else value
            continue
        if total == 0 and value is not None:
            out[field] = float(value)
            continue
        weighted = (current or 0) * total + (value or 0) * enrollment
        out[field] = weighted / denominator

    out["total_enrollment"] = denominator
    out["terms"] = _add(acc["terms"], record.get("term"))
    out["sections"] = _add(acc["sections"], record.get("section"))
    if counterpart is not None:
        out["counterparts"] = _add(acc["counterparts"], _key_of(record, counterpart))
    return out


def weighted_mean(values: Iterable[Optional[float]], weights: Iterable[int]) -> Optional[float]:
    """One-shot sum(v * w) / sum(w) with None values counted as 0."""
    vals = list(values)
    if not vals or all(v is None for v in vals):
        return None
    v = np.array([0.0 if x is None else float(x) for x in vals])
    w = np.array(list(weights), dtype=float)
    if w.sum() == 0:
        return None
    return float(np.average(v, weights=w))


# ── Aggregation ─────────────────────────────────────────────────────

def aggregate(
    records: Records,
    group_by: Optional[KeyFn] = None,
    counterpart: Optional[KeyFn] = None,
    key: Any = None,
) -> Union[Dict[str, Any], Dict[Any, Dict[str, Any]]]:
    """
    Fold records in input order.

    With group_by=None returns a single aggregate (labelled `key`);
    otherwise returns {group key: aggregate} in first-seen key order.
    group_by and counterpart are a record field name or a callable.

    This is the raw engine shape: terms, sections and counterparts are
    tuples. The query functions below (overall, breakdown, ...) pass their
    result through _sanitize, which turns them into JSON-ready lists.
    """
    rows = normalize_records(records)

    if group_by is None:
        return reduce(lambda acc, r: fold(acc, r, counterpart), rows, new_aggregate(key))

    groups: Dict[Any, Dict[str, Any]] = {}
    for record in rows:
        group = _key_of(record, group_by)
        acc = groups.get(group)
        if acc is None:
            acc = new_aggregate(group)
        groups[group] = fold(acc, record, counterpart)
    return groups


# ── Query Shapes ────────────────────────────────────────────────────

def select_entity(records: List[Dict[str, Any]], view: str, entity_id: Optional[str]) -> List[Dict[str, Any]]:
    """Keep only the records of one course or instructor; all records when entity_id is None."""
    if entity_id is None:
        return records
    key_col = resolve_view(view)["key"]
    return [r for r in records if r[key_col] == str(entity_id).strip()]


def overall(records: Records, view: str = "course", entity_id: Optional[str] = None, **filter_kwargs) -> Dict[str, Any]:
    """
    One entity's all-time statistics over filtered records.

    With entity_id the records are restricted to that course or instructor;
    without it the first kept record's key labels the result.
    """
    view_cfg = resolve_view(view)
    kept = select_entity(filter_records(records, **filter_kwargs), view, entity_id)
    if entity_id is None and kept:
        entity_id = kept[0][view_cfg["key"]]
    result = aggregate(kept, counterpart=view_cfg["counterpart"], key=entity_id)
    return _sanitize(result)


def breakdown(records: Records, view: str = "course", entity_id: Optional[str] = None, **filter_kwargs) -> List[Dict[str, Any]]:
    """Statistics split by counterpart (instructors of a course, courses of an instructor)."""
    view_cfg = resolve_view(view)
    kept = select_entity(filter_records(records, **filter_kwargs), view, entity_id)
    groups = aggregate(kept, group_by=view_cfg["counterpart"], counterpart=view_cfg["key"])
    return _sanitize(list(groups.values()))


def term_averages(records: Records, view: str = "course", **filter_kwargs) -> Dict[str, List[Dict[str, Any]]]:
    """
    Per-term, per-entity aggregates: {term: [aggregate, ...]}.

    Terms come out in calendar order, entities in first-seen order.
    This is the input shape the rankings engine consumes.
    """
    view_cfg = resolve_view(view)
    kept = filter_records(records, **filter_kwargs)
    groups = aggregate(
        kept,
        group_by=lambda r: (r["term"], r[view_cfg["key"]]),
        counterpart=view_cfg["counterpart"],
    )

    by_term: Dict[str, List[Dict[str, Any]]] = {}
    for (term, entity), acc in groups.items():
        acc["key"] = entity
        by_term.setdefault(term, []).append(acc)

    return _sanitize({term: by_term[term] for term in sort_terms(by_term)})


def gpa_series(term_aggregates: Dict[str, List[Dict[str, Any]]], keys: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
    """
    GPA-over-time series per entity, ready for the correlation engine.

    Returns [{"name": key, "points": [{"term", "value"}, ...]}, ...] with
    points in calendar order and null GPAs left out.
    """
    wanted = list(keys) if keys is not None else None
    series: Dict[str, List[Dict[str, Any]]] = {}
    if wanted is not None:
        for k in wanted:
            series[k] = []

    for term in sort_terms(term_aggregates):
        for acc in term_aggregates[term]:
            name = acc["key"]
            if wanted is not None and name not in series:
                continue
            if acc.get("GPA") is None:
                continue
            series.setdefault(name, []).append({"term": term, "value": acc["GPA"]})

    return [{"name": name, "points": points} for name, points in series.items()]
