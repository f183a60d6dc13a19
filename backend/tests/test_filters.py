"""
Tests for analytics/filters.py — which section records count toward statistics.
"""

import os
import sys
import pytest
import pandas as pd

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from analytics.filters import (
    course_number,
    filter_records,
    filter_sections,
    generate_filter_report,
    is_excluded_course,
)


def _section(**overrides):
    record = {
        "term": "Fall 2023", "course_id": "CS 1332", "section": "A",
        "instructor_id": "smith", "enrollment": 30,
        "A": 40.0, "B": 30.0, "C": 20.0, "D": 5.0, "F": 3.0, "W": 2.0, "GPA": 3.0,
        "S": None, "U": None, "V": None, "I": None,
    }
    record.update(overrides)
    return record


class TestCourseNumber:

    def test_spaced_course_id(self):
        assert course_number("CS 1332") == "1332"

    def test_unspaced_course_id(self):
        assert course_number("PHYS2211L") == "2211L"

    @pytest.mark.parametrize("course_id", [
        "CS 4699", "CS 2699", "ECE 4698", "CS 7000", "CS 9000", "CS 8001",
        "PHYS 2211L", "MATH 1552R", "CS 1XXX",
    ])
    def test_excluded_numbers(self, course_id):
        assert is_excluded_course(course_id)

    @pytest.mark.parametrize("course_id", ["CS 1332", "MATH 1554", "LMC 3403"])
    def test_regular_courses_not_excluded(self, course_id):
        # Subject letters (the L in LMC) are not part of the course number.
        assert not is_excluded_course(course_id)


class TestFilterRecords:

    def test_keeps_regular_section(self):
        assert len(filter_records([_section()])) == 1

    def test_drops_enrollment_below_three_even_with_gpa(self):
        records = [_section(section="A", enrollment=2, GPA=3.9), _section(section="B", enrollment=3)]
        kept = filter_records(records)
        assert [r["section"] for r in kept] == ["B"]

    def test_drops_excluded_course(self):
        kept = filter_records([_section(course_id="CS 4699"), _section(course_id="CS 1331")])
        assert [r["course_id"] for r in kept] == ["CS 1331"]

    @pytest.mark.parametrize("field", ["S", "U", "V"])
    def test_drops_pass_fail_sections(self, field):
        assert filter_records([_section(**{field: 0.0})]) == []

    def test_incomplete_indicator_alone_does_not_drop(self):
        assert len(filter_records([_section(I=1.0)])) == 1

    def test_drops_missing_gpa(self):
        assert filter_records([_section(GPA=None)]) == []

    def test_preserves_input_order(self):
        records = [_section(section=s) for s in ["C", "A", "B"]]
        assert [r["section"] for r in filter_records(records)] == ["C", "A", "B"]

    def test_null_grades_come_back_as_none(self):
        kept = filter_records([_section(W=None)])
        assert kept[0]["W"] is None

    def test_accepts_column_aliases(self):
        record = {
            "Term": "Fall 2023", "courseId": "CS 1332", "section": "A",
            "instructorId": "smith", "enrollment": 12, "gpa": 3.1,
        }
        kept = filter_records([record])
        assert kept[0]["GPA"] == pytest.approx(3.1)
        assert kept[0]["course_id"] == "CS 1332"
        assert kept[0]["A"] is None

    def test_accepts_dataframe(self):
        df = pd.DataFrame([_section(), _section(enrollment=1)])
        assert len(filter_records(df)) == 1

    def test_empty_input(self):
        assert filter_records([]) == []

    def test_missing_required_column_raises(self):
        record = _section()
        del record["instructor_id"]
        with pytest.raises(ValueError):
            filter_records([record])

    def test_min_enrollment_is_configurable(self):
        assert filter_records([_section(enrollment=5)], min_enrollment=10) == []


class TestFilterReport:

    def test_counts_each_reason(self):
        records = [
            _section(),
            _section(enrollment=1),
            _section(course_id="CS 4699"),
            _section(S=100.0),
            _section(GPA=None),
        ]
        kept, report = filter_sections(records)
        assert len(kept) == 1
        assert report["original_rows"] == 5
        assert report["dropped_rows"] == 4
        assert report["reasons"] == {
            "low_enrollment": 1,
            "excluded_course": 1,
            "pass_fail": 1,
            "missing_gpa": 1,
        }

    def test_report_text(self):
        _, report = filter_sections([_section(), _section(enrollment=0)])
        text = generate_filter_report(report)
        assert "Kept:     1 sections" in text
        assert "Enrollment below 3: 1" in text
