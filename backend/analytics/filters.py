"""
filters.py — Section record filter.

Drops sections that must not count toward grade statistics:
- Enrollment below the minimum (default 3)
- Excluded course numbers (research hours, special topics, theses,
  recitations, labs)
- Pass/fail graded sections (any of S, U, V present)
- Sections without a GPA

Course-centric and instructor-centric views both go through
filter_sections, so the two can never disagree about what counts.
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Tuple

import pandas as pd

from analytics.records import Records, to_frame, to_records


logger = logging.getLogger(__name__)

MIN_ENROLLMENT = 3

# Tokens matched anywhere in the course number suffix, e.g. "CS 4699" or "PHYS 2211L".
EXCLUDED_COURSE_NUMBERS: Tuple[str, ...] = (
    "2699", "4699", "2698", "4698", "9000", "7000", "R", "X", "L", "8001",
)

_SUBJECT_RE = re.compile(r"^\s*[A-Za-z]+\s*(.*)$")


def course_number(course_id: Any) -> str:
    """Course number suffix after the subject code: 'CS 1332' -> '1332'."""
    raw = "" if course_id is None else str(course_id).strip()
    match = _SUBJECT_RE.match(raw)
    return match.group(1).strip() if match else raw


def is_excluded_course(course_id: Any, excluded: Iterable[str] = EXCLUDED_COURSE_NUMBERS) -> bool:
    number = course_number(course_id)
    return any(token in number for token in excluded)


# ── Main Filter ─────────────────────────────────────────────────────

def filter_sections(
    records: Records,
    min_enrollment: int = MIN_ENROLLMENT,
    excluded: Iterable[str] = EXCLUDED_COURSE_NUMBERS,
) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    """
    Filter section records and return (kept_df, filter_report).

    A record is dropped when any rule matches; the report counts each
    rule separately, so one record can appear under several reasons.
    """
    df = to_frame(records)
    excluded = tuple(excluded)

    low_enrollment = df["enrollment"] < min_enrollment
    excluded_course = df["course_id"].apply(lambda cid: is_excluded_course(cid, excluded)).astype(bool)
    pass_fail = df[["S", "U", "V"]].notna().any(axis=1)
    missing_gpa = df["GPA"].isna()

    drop = low_enrollment | excluded_course | pass_fail | missing_gpa
    kept = df[~drop].reset_index(drop=True)

    report: Dict[str, Any] = {
        "original_rows": len(df),
        "kept_rows": len(kept),
        "dropped_rows": int(drop.sum()),
        "reasons": {
            "low_enrollment": int(low_enrollment.sum()),
            "excluded_course": int(excluded_course.sum()),
            "pass_fail": int(pass_fail.sum()),
            "missing_gpa": int(missing_gpa.sum()),
        },
        "min_enrollment": min_enrollment,
    }
    logger.debug("Filtered section records: kept %d of %d", len(kept), len(df))
    return kept, report


def filter_records(
    records: Records,
    min_enrollment: int = MIN_ENROLLMENT,
    excluded: Iterable[str] = EXCLUDED_COURSE_NUMBERS,
) -> List[Dict[str, Any]]:
    """Filtered records as canonical dicts, in input order."""
    kept, _ = filter_sections(records, min_enrollment=min_enrollment, excluded=excluded)
    return to_records(kept)


def generate_filter_report(report: Dict[str, Any]) -> str:
    """Generate a human-readable filter report text."""
    reasons = report["reasons"]
    lines = [
        "═══ Section Filter Report ═══",
        f"Original: {report['original_rows']} sections",
        f"Kept:     {report['kept_rows']} sections",
        f"Dropped:  {report['dropped_rows']} sections",
        "",
        "Rules matched:",
        f"  • Enrollment below {report['min_enrollment']}: {reasons['low_enrollment']}",
        f"  • Excluded course number: {reasons['excluded_course']}",
        f"  • Pass/fail grading: {reasons['pass_fail']}",
        f"  • Missing GPA: {reasons['missing_gpa']}",
    ]
    return "\n".join(lines)
