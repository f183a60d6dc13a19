"""
records.py — Section record normalization.

Section records arrive as JSON objects (or DataFrame rows) with slightly
different column spellings depending on the source. This module maps them
onto one canonical shape so every engine stage reads the same keys:

    term, course_id, section, instructor_id, enrollment,
    A, B, C, D, F, W, GPA, S, U, V, I

Numeric columns are coerced with pandas; NaN becomes None on the way out.
Term labels are rewritten to their canonical spelling ("Fall 2023"), so a
malformed term label is rejected here with a ValueError.
"""

from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np
import pandas as pd

from analytics.terms import canonical_term


GRADE_FIELDS = ["A", "B", "C", "D", "F", "W", "GPA"]
PASS_FAIL_FIELDS = ["S", "U", "V", "I"]
ID_FIELDS = ["term", "course_id", "section", "instructor_id"]
SECTION_ROW_FIELDS = ["section", "enrollment"] + GRADE_FIELDS

COLUMN_ALIASES: Dict[str, List[str]] = {
    "term": ["term", "semester"],
    "course_id": ["course_id", "courseid", "course"],
    "section": ["section", "section_id", "sectionid"],
    "instructor_id": ["instructor_id", "instructorid", "prof_id", "profid", "instructor"],
    "enrollment": ["enrollment", "enrolled", "total_enrollment"],
    "A": ["a"], "B": ["b"], "C": ["c"], "D": ["d"], "F": ["f"], "W": ["w"],
    "GPA": ["gpa", "avg_gpa"],
    "S": ["s"], "U": ["u"], "V": ["v"], "I": ["i"],
}

Records = Union[pd.DataFrame, Iterable[Dict[str, Any]]]


# ── Helpers ─────────────────────────────────────────────────────────

def _find_col(df: pd.DataFrame, aliases: List[str]) -> Optional[str]:
    """Find the first column matching any alias (case-insensitive)."""
    cols_lower = {str(c).lower().strip(): c for c in df.columns}
    for a in aliases:
        if a.lower() in cols_lower:
            return cols_lower[a.lower()]
    return None


def _sanitize(obj):
    """Recursively coerce numpy/pandas scalars to JSON-safe Python types."""
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize(v) for v in obj]
    if isinstance(obj, (np.bool_,)):
        return bool(obj)
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.floating, float)):
        v = float(obj)
        return None if (np.isnan(v) or np.isinf(v)) else v
    return obj


# ── Normalization ───────────────────────────────────────────────────

def to_frame(records: Records) -> pd.DataFrame:
    """Build a canonical DataFrame from records or an existing DataFrame."""
    df = records.copy() if isinstance(records, pd.DataFrame) else pd.DataFrame(list(records))
    canonical = ID_FIELDS + ["enrollment"] + GRADE_FIELDS + PASS_FAIL_FIELDS

    if df.empty and len(df.columns) == 0:
        df = pd.DataFrame(columns=canonical)

    out = pd.DataFrame(index=df.index)
    for field in canonical:
        col = _find_col(df, COLUMN_ALIASES[field])
        if col is None:
            if field in ID_FIELDS or field == "enrollment":
                raise ValueError(f"Section records are missing the '{field}' column.")
            out[field] = np.nan
            continue
        out[field] = df[col]

    for field in ID_FIELDS:
        out[field] = out[field].where(out[field].isna(), out[field].astype(str).str.strip())
    # One label per term, so "fall 2023" and "Fall 2023" group together
    out["term"] = out["term"].map(canonical_term, na_action="ignore")

    out["enrollment"] = pd.to_numeric(out["enrollment"], errors="coerce").fillna(0).astype(int)
    for field in GRADE_FIELDS + PASS_FAIL_FIELDS:
        out[field] = pd.to_numeric(out[field], errors="coerce")

    return out.reset_index(drop=True)


def to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Canonical DataFrame back to plain dicts, NaN -> None."""
    return [_sanitize(row) for row in df.to_dict(orient="records")]


def normalize_records(records: Records) -> List[Dict[str, Any]]:
    """Any accepted record input -> list of canonical record dicts."""
    return to_records(to_frame(records))


def truncate_section(record: Dict[str, Any]) -> Dict[str, Any]:
    """Per-section row kept in history: section, enrollment, A..W, GPA."""
    return {field: record.get(field) for field in SECTION_ROW_FIELDS}
