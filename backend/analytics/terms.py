"""
terms.py — Academic term ordering helpers.

Term labels look like "Spring 2024", "Summer 2024", "Fall 2024".
Within a year the calendar order is Spring < Summer < Fall.

Every component that orders terms (history, rankings, correlation)
goes through term_sort_key so they all agree on one total order.
"""

import re
from typing import Iterable, List, Optional, Tuple


SEASON_ORDER = ["Spring", "Summer", "Fall"]
SEASON_META = {
    "spring": {"order": 1},
    "summer": {"order": 2},
    "fall": {"order": 3},
}

_TERM_RE = re.compile(r"^\s*([A-Za-z]+)\s+(\d{4})\s*$")


def parse_term(term: str) -> Tuple[int, int]:
    """Split a term label into (year, season order)."""
    match = _TERM_RE.match(str(term))
    if not match:
        raise ValueError(f"Unrecognized term label: {term!r}")
    season, year = match.group(1).lower(), int(match.group(2))
    if season not in SEASON_META:
        raise ValueError(f"Unrecognized season in term label: {term!r}")
    return year, SEASON_META[season]["order"]


def canonical_term(term: str) -> str:
    """Normalized label for a term: '  fall 2023 ' -> 'Fall 2023'."""
    year, season = parse_term(term)
    return f"{SEASON_ORDER[season - 1]} {year}"


def term_sort_key(term: str) -> int:
    """Sortable integer for a term, e.g. 'Fall 2024' -> 20243."""
    year, season = parse_term(term)
    return year * 10 + season


def sort_terms(term_list: Iterable[str], reverse: bool = False) -> List[str]:
    """Sort term labels in calendar order."""
    return sorted(term_list, key=term_sort_key, reverse=reverse)


def previous_term(term: str) -> str:
    """The calendar slot immediately before `term` (Spring -> previous Fall)."""
    year, season = parse_term(term)
    if season == 1:
        return f"{SEASON_ORDER[-1]} {year - 1}"
    return f"{SEASON_ORDER[season - 2]} {year}"


def preceding_term(term: str, available: Iterable[str]) -> Optional[str]:
    """Latest term in `available` that comes strictly before `term`."""
    target = term_sort_key(term)
    earlier = [t for t in available if term_sort_key(t) < target]
    if not earlier:
        return None
    return max(earlier, key=term_sort_key)
