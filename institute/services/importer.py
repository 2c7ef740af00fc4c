"""
Bulk import orchestration.

Every row is validated first; the valid ones are then written one at a time,
in file order. A write that fails is logged and recorded against its row and
the batch carries on, so the caller always gets a full per-row report.
"""

import logging
from datetime import date
from typing import Iterable, Optional

from pydantic import ValidationError

from institute.core.database import EntityStore
from institute.core.errors import StoreError
from institute.schemas.entities import (
    CREATE_SCHEMAS, EnrollmentCreate, GradeCreate,
)
from institute.schemas.imports import BulkEnrollmentResult, ImportReport, RowOutcome
from institute.services.grading import letter_grade, percentage
from institute.services.validators import (
    DEPENDENT_TYPES, GradeRow, ReferenceIndex, validate_record,
)

logger = logging.getLogger(__name__)


def build_payload(
    entity_type: str,
    record: dict,
    references: Optional[ReferenceIndex] = None,
    actor_id: Optional[str] = None,
) -> dict:
    """Turn a validated CSV row into the insert payload for its table."""
    schema = CREATE_SCHEMAS[entity_type]
    data = {
        name: value.strip()
        for name, value in record.items()
        if name in schema.model_fields and value is not None and value.strip()
    }
    if "status" in data:
        data["status"] = data["status"].lower()

    if entity_type in DEPENDENT_TYPES:
        data["student_id"] = references.student(record["student_id"])
        data["course_id"] = references.course(record["course_code"])

    if entity_type == "attendance":
        data["marked_by"] = actor_id
    elif entity_type == "grades":
        pct = percentage(float(data["obtained_marks"]), float(data["max_marks"]))
        data["grade_letter"] = letter_grade(pct)
        data["entered_by"] = actor_id

    return schema.model_validate(data).model_dump(exclude_none=True)


def _submit(store: EntityStore, entity_type: str, row_number: int, record: dict, payload: dict) -> RowOutcome:
    try:
        created = store.create(entity_type, payload)
    except StoreError as e:
        logger.warning("Import of %s row %d failed: %s", entity_type, row_number, e)
        return RowOutcome(row_number=row_number, status="failed", errors=[str(e)], record=record)
    return RowOutcome(
        row_number=row_number, status="created", record=record, entity_id=created.get("id"),
    )


def import_records(
    store: EntityStore,
    entity_type: str,
    records: Iterable[dict],
    references: Optional[ReferenceIndex] = None,
    actor_id: Optional[str] = None,
) -> ImportReport:
    if entity_type in DEPENDENT_TYPES and references is None:
        raise ValueError(f"{entity_type} import needs a ReferenceIndex to resolve students and courses")

    outcomes: dict[int, RowOutcome] = {}
    valid = []
    for row_number, record in enumerate(records, start=1):
        result = validate_record(entity_type, record, references)
        if result.is_valid:
            valid.append((row_number, record))
        else:
            outcomes[row_number] = RowOutcome(
                row_number=row_number, status=result.status, errors=result.errors, record=record,
            )

    logger.info(
        "Importing %s: %d valid, %d skipped",
        entity_type, len(valid), len(outcomes),
    )

    for row_number, record in valid:
        try:
            payload = build_payload(entity_type, record, references, actor_id)
        except ValidationError as e:
            outcomes[row_number] = RowOutcome(
                row_number=row_number, status="invalid",
                errors=[err["msg"] for err in e.errors()], record=record,
            )
            continue
        outcomes[row_number] = _submit(store, entity_type, row_number, record, payload)

    report = ImportReport(
        entity_type=entity_type,
        outcomes=[outcomes[n] for n in sorted(outcomes)],
    )
    logger.info("Import of %s finished: %s", entity_type, report.message)
    return report


def course_roster(store: EntityStore, course_id: str) -> list[dict]:
    """Students currently enrolled in the course."""
    enrolled = {
        e["student_id"]
        for e in store.list("enrollments", {"course_id": course_id, "status": "enrolled"})
    }
    return [s for s in store.list("students") if s["id"] in enrolled]


def import_grades(
    store: EntityStore,
    rows: Iterable[GradeRow],
    course_id: str,
    assessment_name: str,
    max_marks: float,
    assessment_type: str = "exam",
    assessment_date: Optional[str] = None,
    entered_by: Optional[str] = None,
) -> ImportReport:
    """
    Write one grade per student from an already classified grade sheet.
    When a student appears on several valid rows the last one wins; the
    earlier rows are reported as skipped.
    """
    rows = list(rows)
    last_row = {row.student["id"]: row.row_number for row in rows if row.status == "valid"}

    outcomes = []
    for row in rows:
        record = {"student_id": row.student_key, "marks": row.marks}
        if row.status != "valid":
            outcomes.append(RowOutcome(
                row_number=row.row_number, status=row.status,
                errors=[row.message] if row.message else [], record=record,
            ))
            continue
        if last_row[row.student["id"]] != row.row_number:
            outcomes.append(RowOutcome(
                row_number=row.row_number, status="invalid",
                errors=["Duplicate row for this student"], record=record,
            ))
            continue

        obtained = float(row.marks)
        payload = GradeCreate(
            student_id=row.student["id"],
            course_id=course_id,
            assessment_name=assessment_name,
            assessment_type=assessment_type,
            obtained_marks=obtained,
            max_marks=max_marks,
            grade_letter=letter_grade(percentage(obtained, max_marks)),
            assessment_date=assessment_date,
            entered_by=entered_by,
        ).model_dump(exclude_none=True)
        outcomes.append(_submit(store, "grades", row.row_number, record, payload))

    report = ImportReport(entity_type="grades", outcomes=outcomes)
    logger.info("Grade import for course %s: %s", course_id, report.message)
    return report


def bulk_enroll(
    store: EntityStore,
    course_id: str,
    student_ids: Iterable[str],
    today: Optional[date] = None,
) -> BulkEnrollmentResult:
    """
    Enroll each student in the course. Students already enrolled are skipped,
    dropped ones are re-enrolled with today's date.
    """
    today = today or date.today()
    existing = {e["student_id"]: e for e in store.list("enrollments", {"course_id": course_id})}
    result = BulkEnrollmentResult()

    for student_id in dict.fromkeys(student_ids):
        current = existing.get(student_id)
        try:
            if current and current.get("status") == "enrolled":
                result.skipped += 1
                continue
            if current:
                store.update("enrollments", current["id"], {
                    "status": "enrolled",
                    "enrollment_date": today.isoformat(),
                })
            else:
                store.create("enrollments", EnrollmentCreate(
                    student_id=student_id,
                    course_id=course_id,
                    enrollment_date=today.isoformat(),
                ).model_dump(exclude_none=True))
            result.enrolled += 1
        except StoreError as e:
            logger.warning("Enrolling student %s in course %s failed: %s", student_id, course_id, e)
            result.failed += 1

    logger.info("Bulk enrollment for course %s: %s", course_id, result.message)
    return result
