"""
history.py — Term-by-term grade history for one course or instructor.

One pass over the records builds three aligned levels:
- term:                       overall statistics for the term
- term x counterpart:         e.g. each instructor's statistics for a course in that term
- term x counterpart x section: the raw per-section rows behind them

Every level uses the same fold as aggregate.py, so summing a term's
breakdown always reproduces the term itself.
"""

from typing import Any, Dict, List, Optional

from analytics.aggregate import fold, new_aggregate, resolve_view, select_entity
from analytics.filters import filter_records
from analytics.records import Records, _sanitize, normalize_records, truncate_section
from analytics.terms import sort_terms


def build_history(records: Records, view: str = "course") -> Dict[str, Dict[str, Any]]:
    """
    Build {term: term_aggregate} from records, terms in first-seen order.

    Each term_aggregate carries the aggregate fields plus:
      breakdown:    {counterpart id: aggregate restricted to the term}
      section_rows: {counterpart id: [truncated section rows]}

    Records are expected to be filtered already.
    """
    view_cfg = resolve_view(view)
    key_col, counterpart_col = view_cfg["key"], view_cfg["counterpart"]

    term_stats: Dict[str, Dict[str, Any]] = {}
    breakdowns: Dict[str, Dict[str, Dict[str, Any]]] = {}
    section_rows: Dict[str, Dict[str, List[Dict[str, Any]]]] = {}

    for record in normalize_records(records):
        term = record["term"]
        related = record[counterpart_col]

        if term not in term_stats:
            term_stats[term] = new_aggregate(term)
            breakdowns[term] = {}
            section_rows[term] = {}
        if related not in breakdowns[term]:
            breakdowns[term][related] = new_aggregate(related)
            section_rows[term][related] = []

        term_stats[term] = fold(term_stats[term], record, counterpart_col)
        breakdowns[term][related] = fold(breakdowns[term][related], record, key_col)
        section_rows[term][related].append(truncate_section(record))

    history: Dict[str, Dict[str, Any]] = {}
    for term, stats in term_stats.items():
        entry = dict(stats)
        entry["term"] = term
        entry["breakdown"] = breakdowns[term]
        entry["section_rows"] = section_rows[term]
        history[term] = entry

    return _sanitize(history)


def sorted_history(history: Dict[str, Dict[str, Any]], reverse: bool = False) -> Dict[str, Dict[str, Any]]:
    """Same history, terms in calendar order."""
    return {term: history[term] for term in sort_terms(history, reverse=reverse)}


def history_series(history: Dict[str, Dict[str, Any]], name: str, field: str = "GPA") -> Dict[str, Any]:
    """One correlation series from a history: {"name", "points"} in calendar order."""
    points = []
    for term in sort_terms(history):
        value = history[term].get(field)
        if value is not None:
            points.append({"term": term, "value": value})
    return {"name": name, "points": points}


def query_history(
    records: Records,
    view: str = "course",
    chronological: bool = True,
    entity_id: Optional[str] = None,
    **filter_kwargs,
) -> Dict[str, Dict[str, Any]]:
    """
    Filter then build the history; terms in calendar order unless asked otherwise.
    With entity_id only that course's (or instructor's) records are used.
    """
    kept = select_entity(filter_records(records, **filter_kwargs), view, entity_id)
    history = build_history(kept, view=view)
    return sorted_history(history) if chronological else history


def counterpart_history(history: Dict[str, Dict[str, Any]], counterpart_id: str) -> Dict[str, Optional[Dict[str, Any]]]:
    """One counterpart's per-term aggregate, None for terms it was absent from."""
    return {
        term: entry["breakdown"].get(counterpart_id)
        for term, entry in sorted_history(history).items()
    }
