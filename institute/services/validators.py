"""
Row validation for bulk import.

Single-field checks return ``(ok, message)`` pairs; ``validate_record``
runs the rule table for an entity type over one parsed CSV row and collects
every failure instead of stopping at the first one.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Literal, Optional

from institute.core.errors import ImportFormatError, UnknownEntityType
from institute.schemas.entities import (
    CREDITS_MIN, CREDITS_MAX, SEMESTER_MIN, SEMESTER_MAX,
)
from institute.services.csvio import ParsedCSV

ValidationStatus = Literal["valid", "invalid", "not_found"]

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

STUDENT_STATUSES = ("active", "inactive", "suspended", "graduated")
FACULTY_STATUSES = ("active", "inactive", "on_leave")
COURSE_STATUSES = ("active", "inactive")
ENROLLMENT_STATUSES = ("enrolled", "dropped", "completed")
ATTENDANCE_STATUSES = ("present", "absent", "late", "excused")

REQUIRED_FIELDS = {
    "students": ("full_name", "email", "student_id"),
    "faculty": ("full_name", "email", "faculty_id"),
    "courses": ("course_code", "course_name", "credits"),
    "enrollments": ("student_id", "course_code"),
    "attendance": ("student_id", "course_code", "date", "status"),
    "grades": ("student_id", "course_code", "assessment_name", "obtained_marks", "max_marks"),
}

# Rows of these types point at a student and a course by business key
DEPENDENT_TYPES = ("enrollments", "attendance", "grades")


@dataclass
class ValidationResult:
    status: ValidationStatus
    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.status == "valid"


class ReferenceIndex:
    """Business key → row id lookups for students and courses (case-insensitive)."""

    def __init__(self, students: Iterable[dict] = (), courses: Iterable[dict] = ()):
        self._students = {
            str(s["student_id"]).casefold(): s["id"] for s in students if s.get("student_id")
        }
        self._courses = {
            str(c["course_code"]).casefold(): c["id"] for c in courses if c.get("course_code")
        }

    def student(self, student_key: str) -> Optional[str]:
        return self._students.get(student_key.strip().casefold())

    def course(self, course_code: str) -> Optional[str]:
        return self._courses.get(course_code.strip().casefold())


# ---------------------------------------------------------------------------
# Field checks
# ---------------------------------------------------------------------------
def validate_email(email):
    if not EMAIL_RE.match(email):
        return False, f"Invalid email address: {email}"
    return True, "Valid email"


def validate_int_range(value, field_name, low, high):
    try:
        number = int(value)
    except (ValueError, TypeError):
        return False, f"{field_name} must be a whole number"
    if number < low or number > high:
        return False, f"{field_name} must be between {low} and {high}"
    return True, f"Valid {field_name}"


def validate_choice(value, field_name, choices):
    if value.lower() not in choices:
        return False, f"{field_name} must be one of: {', '.join(choices)}"
    return True, f"Valid {field_name}"


def validate_date(value, field_name="date"):
    if not DATE_RE.match(value):
        return False, f"{field_name} must be in YYYY-MM-DD format"
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False, f"{field_name} must be in YYYY-MM-DD format"
    return True, "Valid date"


def parse_marks(value) -> Optional[float]:
    try:
        number = float(value)
    except (ValueError, TypeError):
        return None
    return number if math.isfinite(number) else None


def validate_marks(marks, max_marks):
    obtained = parse_marks(marks)
    maximum = parse_marks(max_marks)
    if maximum is None or maximum <= 0:
        return False, "Max marks must be a positive number"
    if obtained is None or obtained < 0 or obtained > maximum:
        return False, f"Marks must be between 0 and {max_marks}"
    return True, "Valid marks"


# Optional-field checks per entity type: (field, check) where check takes the value
FIELD_CHECKS = {
    "students": (
        ("status", lambda v: validate_choice(v, "status", STUDENT_STATUSES)),
        ("date_of_birth", lambda v: validate_date(v, "date_of_birth")),
    ),
    "faculty": (
        ("status", lambda v: validate_choice(v, "status", FACULTY_STATUSES)),
        ("joining_date", lambda v: validate_date(v, "joining_date")),
    ),
    "courses": (
        ("credits", lambda v: validate_int_range(v, "credits", CREDITS_MIN, CREDITS_MAX)),
        ("semester", lambda v: validate_int_range(v, "semester", SEMESTER_MIN, SEMESTER_MAX)),
        ("status", lambda v: validate_choice(v, "status", COURSE_STATUSES)),
    ),
    "enrollments": (
        ("status", lambda v: validate_choice(v, "status", ENROLLMENT_STATUSES)),
        ("enrollment_date", lambda v: validate_date(v, "enrollment_date")),
    ),
    "attendance": (
        ("date", validate_date),
        ("status", lambda v: validate_choice(v, "status", ATTENDANCE_STATUSES)),
    ),
    "grades": (
        ("assessment_date", lambda v: validate_date(v, "assessment_date")),
    ),
}


def _value(record: dict, name: str) -> str:
    value = record.get(name)
    return "" if value is None else str(value).strip()


def validate_record(
    entity_type: str,
    record: dict,
    references: Optional[ReferenceIndex] = None,
) -> ValidationResult:
    """
    Check one row against the rules for ``entity_type``.

    Missing required fields are reported one per field, in rule-table order,
    followed by format failures. For enrollments, attendance and grades an
    unknown student or course (when ``references`` is given) makes the row
    ``not_found`` regardless of any other failure.
    """
    if entity_type not in REQUIRED_FIELDS:
        raise UnknownEntityType(entity_type)

    errors = [f"{name} is required" for name in REQUIRED_FIELDS[entity_type] if not _value(record, name)]

    email = _value(record, "email")
    if email:
        ok, message = validate_email(email)
        if not ok:
            errors.append(message)

    for name, check in FIELD_CHECKS.get(entity_type, ()):
        value = _value(record, name)
        if value:
            ok, message = check(value)
            if not ok:
                errors.append(message)

    if entity_type == "grades" and _value(record, "obtained_marks") and _value(record, "max_marks"):
        ok, message = validate_marks(_value(record, "obtained_marks"), _value(record, "max_marks"))
        if not ok:
            errors.append(message)

    if references is not None and entity_type in DEPENDENT_TYPES:
        missing_refs = []
        student_key = _value(record, "student_id")
        if student_key and references.student(student_key) is None:
            missing_refs.append(f"Student '{student_key}' not found")
        course_code = _value(record, "course_code")
        if course_code and references.course(course_code) is None:
            missing_refs.append(f"Course '{course_code}' not found")
        if missing_refs:
            return ValidationResult("not_found", missing_refs + errors)

    return ValidationResult("invalid" if errors else "valid", errors)


# ---------------------------------------------------------------------------
# Grade sheet import (one assessment, one course)
# ---------------------------------------------------------------------------
STUDENT_COLUMNS = ("student_id", "studentid", "roll_number", "rollnumber", "roll")
MARKS_COLUMNS = ("marks", "score", "obtained_marks", "grade")


@dataclass
class GradeRow:
    row_number: int
    student_key: str
    marks: str
    status: ValidationStatus
    message: Optional[str] = None
    student: Optional[dict] = None


def _find_column(headers: Iterable[str], aliases: tuple[str, ...]) -> Optional[str]:
    for header in headers:
        if header.lower() in aliases:
            return header
    return None


def classify_grade_row(
    row_number: int,
    student_key: str,
    marks: str,
    roster: Iterable[dict],
    max_marks: float,
) -> GradeRow:
    """
    An unknown student is ``not_found`` even if the marks are also bad;
    otherwise marks outside [0, max_marks] are ``invalid``.
    """
    wanted = student_key.casefold()
    student = next(
        (s for s in roster if str(s.get("student_id", "")).casefold() == wanted),
        None,
    )
    if student is None:
        return GradeRow(row_number, student_key, marks, "not_found",
                        "Student not enrolled in this course")

    value = parse_marks(marks)
    if value is None or value < 0 or value > max_marks:
        return GradeRow(row_number, student_key, marks, "invalid",
                        f"Marks must be between 0 and {max_marks:g}", student)

    return GradeRow(row_number, student_key, marks, "valid", None, student)


def classify_grade_rows(parsed: ParsedCSV, roster: list[dict], max_marks: float) -> list[GradeRow]:
    student_column = _find_column(parsed.headers, STUDENT_COLUMNS)
    marks_column = _find_column(parsed.headers, MARKS_COLUMNS)
    if student_column is None or marks_column is None:
        raise ImportFormatError("CSV must have 'student_id' and 'marks' columns")

    rows = []
    for row_number, record in enumerate(parsed.records, start=1):
        student_key = record.get(student_column, "").strip()
        if not student_key:
            continue
        rows.append(classify_grade_row(
            row_number, student_key, record.get(marks_column, "").strip(), roster, max_marks,
        ))
    return rows
