"""
Filter routes — preview which section records count toward statistics.
"""

import os

from fastapi import APIRouter, HTTPException

from analytics.filters import filter_sections, generate_filter_report
from analytics.records import to_records

router = APIRouter()

MIN_ENROLLMENT = int(os.getenv("MIN_ENROLLMENT", "3"))


@router.post("/preview")
async def preview_filter(payload: dict):
    """
    Preview what the section filter keeps and drops.
    Expects: { "data": [...records...] }
    """
    data = payload.get("data")
    if not data:
        raise HTTPException(400, "No data provided.")

    try:
        kept, report = filter_sections(data, min_enrollment=MIN_ENROLLMENT)
    except ValueError as e:
        raise HTTPException(400, str(e))

    return {
        "filter_report": report,
        "report_text": generate_filter_report(report),
        "kept_row_count": len(kept),
        "preview": to_records(kept.head(20)),
    }
