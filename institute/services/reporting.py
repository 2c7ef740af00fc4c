"""
Report aggregation over in-memory snapshots of the institute's tables.

Reports join child rows (attendance, grades, enrollments) to their student
and course by id with plain linear lookups. Dataset sizes are hundreds to a
few thousand rows.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, Iterable, Optional, TypeVar

from dateutil import parser

from institute.core.database import EntityStore
from institute.schemas.entities import (
    Announcement, Attendance, Course, Enrollment, Faculty, Feedback, Grade, Student,
)
from institute.schemas.reports import (
    DashboardStats, DatePolicy, Report, ReportFilters, ReportType,
)
from institute.services.csvio import write_csv
from institute.services.grading import letter_grade, percentage

logger = logging.getLogger(__name__)

T = TypeVar("T")

REPORT_ENTITIES = {
    "attendance": "attendance",
    "grades": "grades",
    "enrollment": "enrollments",
    "faculty": "faculty",
}


@dataclass
class ReportCollections:
    students: list[Student] = field(default_factory=list)
    faculty: list[Faculty] = field(default_factory=list)
    courses: list[Course] = field(default_factory=list)
    enrollments: list[Enrollment] = field(default_factory=list)
    attendance: list[Attendance] = field(default_factory=list)
    grades: list[Grade] = field(default_factory=list)
    announcements: list[Announcement] = field(default_factory=list)
    feedback: list[Feedback] = field(default_factory=list)


def load_collections(store: EntityStore, include_dashboard: bool = False) -> ReportCollections:
    """Fetch a read-only snapshot of every table a report needs."""
    collections = ReportCollections(
        students=[Student.model_validate(r) for r in store.list("students")],
        faculty=[Faculty.model_validate(r) for r in store.list("faculty")],
        courses=[Course.model_validate(r) for r in store.list("courses")],
        enrollments=[Enrollment.model_validate(r) for r in store.list("enrollments")],
        attendance=[Attendance.model_validate(r) for r in store.list("attendance")],
        grades=[Grade.model_validate(r) for r in store.list("grades")],
    )
    if include_dashboard:
        collections.announcements = [Announcement.model_validate(r) for r in store.list("announcements")]
        collections.feedback = [Feedback.model_validate(r) for r in store.list("feedback")]
    return collections


def _find(items: Iterable[T], item_id: Optional[str]) -> Optional[T]:
    return next((item for item in items if item.id == item_id), None)


def parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return parser.isoparse(value).date()
    except (ValueError, OverflowError):
        return None


def in_date_range(value: Optional[str], filters: ReportFilters, policy: DatePolicy = "fail_open") -> bool:
    """
    Inclusive on both bounds; a missing bound leaves that side open.
    A value that doesn't parse passes under ``fail_open`` and is dropped
    under ``fail_closed``.
    """
    if filters.date_from is None and filters.date_to is None:
        return True
    parsed = parse_date(value)
    if parsed is None:
        return policy == "fail_open"
    if filters.date_from is not None and parsed < filters.date_from:
        return False
    if filters.date_to is not None and parsed > filters.date_to:
        return False
    return True


def in_department(department: Optional[str], filters: ReportFilters) -> bool:
    return filters.department == "all" or department == filters.department


def _course_columns(course: Optional[Course]) -> dict:
    return {
        "course_code": course.course_code if course else "",
        "course_name": course.course_name if course else "",
        "department": (course.department or "") if course else "",
    }


def _student_columns(student: Optional[Student]) -> dict:
    return {
        "student_id": student.student_id if student else "",
        "student_name": student.full_name if student else "Unknown",
    }


def _course_rows(
    records: Iterable,
    date_of: Callable,
    collections: ReportCollections,
    filters: ReportFilters,
    policy: DatePolicy,
):
    """Yield (record, student, course) for records passing both filters."""
    for record in records:
        course = _find(collections.courses, record.course_id)
        if not in_department(course.department if course else None, filters):
            continue
        if not in_date_range(date_of(record), filters, policy):
            continue
        yield record, _find(collections.students, record.student_id), course


def attendance_report(collections: ReportCollections, filters: ReportFilters, policy: DatePolicy) -> Report:
    rows = []
    for record, student, course in _course_rows(
        collections.attendance, lambda a: a.date, collections, filters, policy,
    ):
        rows.append({
            "date": record.date or "",
            **_student_columns(student),
            **_course_columns(course),
            "status": record.status,
        })

    present = sum(1 for r in rows if r["status"] == "present")
    rate = round(present / len(rows) * 100, 1) if rows else 0.0
    return Report(
        report_type="attendance",
        columns=["date", "student_id", "student_name", "course_code", "course_name", "department", "status"],
        rows=rows,
        statistic_label="Present rate (%)",
        statistic=rate,
    )


def grades_report(collections: ReportCollections, filters: ReportFilters, policy: DatePolicy) -> Report:
    rows = []
    for grade, student, course in _course_rows(
        collections.grades, lambda g: g.assessment_date, collections, filters, policy,
    ):
        pct = grade.percentage if grade.percentage is not None else percentage(grade.obtained_marks, grade.max_marks)
        rows.append({
            "assessment_date": grade.assessment_date or "",
            **_student_columns(student),
            **_course_columns(course),
            "assessment_name": grade.assessment_name,
            "assessment_type": grade.assessment_type,
            "obtained_marks": grade.obtained_marks,
            "max_marks": grade.max_marks,
            "percentage": pct,
            "grade_letter": grade.grade_letter or letter_grade(pct),
        })

    average = round(sum(r["percentage"] for r in rows) / len(rows), 1) if rows else 0.0
    return Report(
        report_type="grades",
        columns=[
            "assessment_date", "student_id", "student_name", "course_code", "course_name",
            "department", "assessment_name", "assessment_type", "obtained_marks", "max_marks",
            "percentage", "grade_letter",
        ],
        rows=rows,
        statistic_label="Average percentage",
        statistic=average,
    )


def enrollment_report(collections: ReportCollections, filters: ReportFilters, policy: DatePolicy) -> Report:
    rows = []
    for enrollment, student, course in _course_rows(
        collections.enrollments, lambda e: e.enrollment_date, collections, filters, policy,
    ):
        rows.append({
            "enrollment_date": enrollment.enrollment_date or "",
            **_student_columns(student),
            **_course_columns(course),
            "status": enrollment.status,
        })

    return Report(
        report_type="enrollment",
        columns=["enrollment_date", "student_id", "student_name", "course_code", "course_name", "department", "status"],
        rows=rows,
        statistic_label="Active enrollments",
        statistic=sum(1 for r in rows if r["status"] == "enrolled"),
    )


def faculty_report(collections: ReportCollections, filters: ReportFilters, policy: DatePolicy) -> Report:
    # Faculty rows have no date of their own; the date range doesn't apply
    rows = []
    for member in collections.faculty:
        if not in_department(member.department, filters):
            continue
        assigned = [c.course_code for c in collections.courses if c.faculty_id == member.id]
        rows.append({
            "faculty_id": member.faculty_id,
            "full_name": member.full_name,
            "department": member.department or "",
            "qualification": member.qualification or "",
            "status": member.status,
            "course_count": len(assigned),
            "courses": "; ".join(assigned),
        })

    return Report(
        report_type="faculty",
        columns=["faculty_id", "full_name", "department", "qualification", "status", "course_count", "courses"],
        rows=rows,
        statistic_label="Assigned courses",
        statistic=sum(r["course_count"] for r in rows),
    )


BUILDERS = {
    "attendance": attendance_report,
    "grades": grades_report,
    "enrollment": enrollment_report,
    "faculty": faculty_report,
}


def build_report(
    report_type: ReportType,
    collections: ReportCollections,
    filters: Optional[ReportFilters] = None,
    policy: DatePolicy = "fail_open",
) -> Report:
    report = BUILDERS[report_type](collections, filters or ReportFilters(), policy)
    logger.debug("Built %s report: %d rows", report_type, len(report.rows))
    return report


def export_csv(report: Report, delimiter: str = ",") -> str:
    return write_csv(report.columns, report.rows, delimiter)


def export_filename(report_type: ReportType, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{report_type}_{REPORT_ENTITIES[report_type]}_{today.isoformat()}.csv"


def _is_live(announcement: Announcement, now: datetime) -> bool:
    if not announcement.published or not announcement.expires_at:
        return False
    try:
        expires = parser.isoparse(announcement.expires_at)
    except (ValueError, OverflowError):
        return False
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    return expires >= now


def dashboard_stats(collections: ReportCollections, now: Optional[datetime] = None) -> DashboardStats:
    now = now or datetime.now(timezone.utc)
    attendance = collections.attendance
    present = sum(1 for a in attendance if a.status == "present")
    return DashboardStats(
        total_students=len(collections.students),
        total_faculty=len(collections.faculty),
        total_courses=len(collections.courses),
        total_enrollments=len(collections.enrollments),
        active_enrollments=sum(1 for e in collections.enrollments if e.status == "enrolled"),
        average_attendance=round(present / len(attendance) * 100) if attendance else 0,
        pending_feedback=sum(1 for f in collections.feedback if f.status == "pending"),
        live_announcements=sum(1 for a in collections.announcements if _is_live(a, now)),
    )
