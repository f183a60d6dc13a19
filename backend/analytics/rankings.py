"""
rankings.py — Difficulty rankings and term-over-term rank changes.

Within each term, entities (courses or instructors) are sorted by GPA
ascending, so rank 1 is the lowest GPA, i.e. the hardest. Ties keep
their input order.

rank_delta = previous rank - current rank:
  positive  -> moved toward rank 1 (harder than before, relatively)
  negative  -> moved away from rank 1
  None      -> not ranked in the comparison term
"""

import logging
from typing import Any, Dict, List, Optional

from analytics.aggregate import term_averages
from analytics.records import Records, _sanitize
from analytics.terms import canonical_term, preceding_term, previous_term, sort_terms


logger = logging.getLogger(__name__)


def rank_term(aggregates: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Rank one term's aggregates by GPA ascending (stable)."""
    rankable = [a for a in aggregates if a.get("GPA") is not None]
    skipped = len(aggregates) - len(rankable)
    if skipped:
        logger.debug("Skipped %d aggregates without a GPA", skipped)

    ordered = sorted(rankable, key=lambda a: a["GPA"])
    return [
        {
            "key": agg["key"],
            "rank": index + 1,
            "GPA": agg["GPA"],
            "total_enrollment": agg.get("total_enrollment", 0),
            "rank_delta": None,
        }
        for index, agg in enumerate(ordered)
    ]


def _comparison_term(term: str, ranked_terms: List[str], calendar_adjacent: bool) -> Optional[str]:
    if calendar_adjacent:
        return previous_term(term)
    return preceding_term(term, ranked_terms)


def rank(
    term_aggregates: Dict[str, List[Dict[str, Any]]],
    calendar_adjacent: bool = False,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Rank every term and attach rank deltas.

    By default each term is compared with the latest earlier term present
    in `term_aggregates`. With calendar_adjacent=True it is compared with
    the literal previous calendar slot (Fall 2024 -> Summer 2024), which
    yields None deltas whenever that slot has no data.
    Term keys are canonicalized first, so "fall 2023" and "Fall 2023"
    are one term.
    """
    by_term: Dict[str, List[Dict[str, Any]]] = {}
    for term, aggregates in term_aggregates.items():
        by_term.setdefault(canonical_term(term), []).extend(aggregates)

    terms = sort_terms(by_term)
    ranked: Dict[str, List[Dict[str, Any]]] = {term: rank_term(by_term[term]) for term in terms}

    for term in terms:
        prev = _comparison_term(term, terms, calendar_adjacent)
        prev_ranks = {e["key"]: e["rank"] for e in ranked.get(prev, [])} if prev else {}
        for entry in ranked[term]:
            prev_rank = prev_ranks.get(entry["key"])
            entry["rank_delta"] = None if prev_rank is None else prev_rank - entry["rank"]

    return _sanitize(ranked)


def rankings(records: Records, view: str = "course", calendar_adjacent: bool = False, **filter_kwargs) -> Dict[str, List[Dict[str, Any]]]:
    """Rankings straight from section records: filter, average per term, rank."""
    return rank(term_averages(records, view=view, **filter_kwargs), calendar_adjacent=calendar_adjacent)


def biggest_movers(ranked: Dict[str, List[Dict[str, Any]]], term: str, top_n: int = 5) -> Dict[str, List[Dict[str, Any]]]:
    """Entities whose rank moved most toward (harder) and away from rank 1 in `term`."""
    entries = [e for e in ranked.get(term, []) if e["rank_delta"] is not None]
    harder = sorted((e for e in entries if e["rank_delta"] > 0), key=lambda e: -e["rank_delta"])
    easier = sorted((e for e in entries if e["rank_delta"] < 0), key=lambda e: e["rank_delta"])
    return {"harder": harder[:top_n], "easier": easier[:top_n]}
