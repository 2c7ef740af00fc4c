from datetime import date

import pytest

from institute.services.csvio import parse_csv
from institute.services.importer import (
    bulk_enroll, build_payload, course_roster, import_grades, import_records,
)
from institute.services.validators import ReferenceIndex, classify_grade_rows
from tests.conftest import COURSES, STUDENTS


def test_student_scenario_submits_only_the_valid_row(store):
    parsed = parse_csv("full_name,email,student_id\nA,a@x.com,S1\nB,bad-email,S2\n,c@x.com,S3")

    report = import_records(store, "students", parsed.records)

    assert report.submitted == 1
    assert report.skipped_invalid == 2
    assert report.failed_on_submit == 0
    assert [o.status for o in report.outcomes] == ["created", "invalid", "invalid"]
    assert store.created == [("students", {
        "full_name": "A", "email": "a@x.com", "student_id": "S1", "status": "active",
    })]
    assert report.outcome == "partial"
    assert report.message == "Imported 1; 2 skipped due to errors"


def test_submission_failures_do_not_stop_the_batch(store):
    store.fail_when = lambda entity_type, record: record["student_id"] == "S2"
    records = [
        {"full_name": "A", "email": "a@x.com", "student_id": "S1"},
        {"full_name": "B", "email": "b@x.com", "student_id": "S2"},
        {"full_name": "", "email": "c@x.com", "student_id": "S3"},
        {"full_name": "D", "email": "d@x.com", "student_id": "S4"},
    ]

    report = import_records(store, "students", records)

    assert report.submitted + report.skipped_invalid + report.failed_on_submit == len(records)
    assert (report.submitted, report.skipped_invalid, report.failed_on_submit) == (2, 1, 1)
    assert [o.status for o in report.outcomes] == ["created", "failed", "invalid", "created"]
    assert "duplicate key" in report.outcomes[1].errors[0]
    assert [r["student_id"] for _, r in store.created] == ["S1", "S4"]


def test_valid_rows_are_submitted_in_input_order(store):
    records = [
        {"course_code": code, "course_name": "Course", "credits": credits}
        for code, credits in [("C5", "5"), ("C1", "0"), ("C3", "3"), ("C9", "11"), ("C2", "2")]
    ]

    report = import_records(store, "courses", records)

    assert [r["course_code"] for _, r in store.created] == ["C5", "C3", "C2"]
    assert [o.row_number for o in report.outcomes] == [1, 2, 3, 4, 5]
    assert store.created[0][1]["credits"] == 5


@pytest.mark.parametrize("fail_all,expected", [(False, "success"), (True, "failed")])
def test_report_outcome(store, fail_all, expected):
    if fail_all:
        store.fail_when = lambda entity_type, record: True

    report = import_records(store, "students", [{"full_name": "A", "email": "a@x.com", "student_id": "S1"}])

    assert report.outcome == expected


def test_empty_import(store):
    assert import_records(store, "students", []).outcome == "empty"


def test_enrollment_import_resolves_business_keys(store):
    refs = ReferenceIndex(STUDENTS, COURSES)
    records = [
        {"student_id": "S1", "course_code": "CS101", "status": "enrolled", "enrollment_date": "2025-01-05"},
        {"student_id": "S9", "course_code": "CS101", "status": "", "enrollment_date": ""},
    ]

    report = import_records(store, "enrollments", records, refs)

    assert [o.status for o in report.outcomes] == ["created", "not_found"]
    assert store.created == [("enrollments", {
        "student_id": "stu-1", "course_id": "crs-1", "status": "enrolled", "enrollment_date": "2025-01-05",
    })]


def test_dependent_import_needs_references(store):
    with pytest.raises(ValueError):
        import_records(store, "attendance", [])


def test_grade_payload_carries_letter_and_author():
    refs = ReferenceIndex(STUDENTS, COURSES)
    payload = build_payload("grades", {
        "student_id": "S2", "course_code": "MA101", "assessment_name": "Quiz 1",
        "assessment_type": "quiz", "obtained_marks": "17", "max_marks": "20",
    }, refs, actor_id="fac-2")

    assert payload == {
        "student_id": "stu-2", "course_id": "crs-2", "assessment_name": "Quiz 1",
        "assessment_type": "quiz", "obtained_marks": 17.0, "max_marks": 20.0,
        "grade_letter": "A", "entered_by": "fac-2",
    }


def test_course_roster_lists_only_enrolled_students(seeded_store):
    assert [s["id"] for s in course_roster(seeded_store, "crs-1")] == ["stu-1", "stu-2"]
    assert course_roster(seeded_store, "crs-2") == []


def test_grade_sheet_import(seeded_store):
    roster = course_roster(seeded_store, "crs-1")
    rows = classify_grade_rows(parse_csv("student_id,marks\nS1,48\nS2,70\nS5,10"), roster, 50)

    report = import_grades(seeded_store, rows, "crs-1", "Final", 50, entered_by="fac-1")

    assert [o.status for o in report.outcomes] == ["created", "invalid", "not_found"]
    assert report.message == "Imported 1; 2 skipped due to errors"
    entity_type, grade = seeded_store.created[0]
    assert entity_type == "grades"
    assert grade["student_id"] == "stu-1"
    assert grade["obtained_marks"] == 48
    assert grade["grade_letter"] == "A+"
    assert grade["entered_by"] == "fac-1"


def test_bulk_enroll(seeded_store):
    seeded_store.fail_when = lambda entity_type, record: record.get("student_id") == "stu-9"

    result = bulk_enroll(
        seeded_store, "crs-2", ["stu-1", "stu-2", "stu-2", "stu-9"], today=date(2025, 3, 1),
    )

    # stu-1 had a dropped enrollment, stu-2 is new, stu-9 fails
    assert (result.enrolled, result.skipped, result.failed) == (2, 0, 1)
    assert result.message == "2 enrolled, 1 failed"
    dropped = next(e for e in seeded_store.tables["enrollments"] if e["id"] == "enr-3")
    assert dropped["status"] == "enrolled"
    assert dropped["enrollment_date"] == "2025-03-01"


def test_bulk_enroll_skips_already_enrolled(seeded_store):
    result = bulk_enroll(seeded_store, "crs-1", ["stu-1", "stu-2"])

    assert (result.enrolled, result.skipped, result.failed) == (0, 2, 0)
    assert result.message == "2 already enrolled"
    assert seeded_store.created == []


def test_grade_sheet_keeps_the_last_row_per_student(seeded_store):
    roster = course_roster(seeded_store, "crs-1")
    rows = classify_grade_rows(parse_csv("student_id,marks\nS1,40\nS2,30\ns1,45"), roster, 50)

    report = import_grades(seeded_store, rows, "crs-1", "Final", 50)

    assert [(o.row_number, o.status) for o in report.outcomes] == [
        (1, "invalid"), (2, "created"), (3, "created"),
    ]
    assert report.outcomes[0].errors == ["Duplicate row for this student"]
    assert report.submitted + report.skipped_invalid + report.failed_on_submit == 3
    stu_1 = [g for t, g in seeded_store.created if g["student_id"] == "stu-1"]
    assert len(stu_1) == 1
    assert stu_1[0]["obtained_marks"] == 45
