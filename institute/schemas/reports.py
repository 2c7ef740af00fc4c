"""
Pydantic schemas for report previews and dashboard statistics.
"""

from datetime import date
from pydantic import BaseModel
from typing import Optional, List, Literal


ReportType = Literal["attendance", "grades", "enrollment", "faculty"]
DatePolicy = Literal["fail_open", "fail_closed"]


class ReportFilters(BaseModel):
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    department: str = "all"


class Report(BaseModel):
    report_type: ReportType
    columns: List[str]
    rows: List[dict]
    statistic_label: str
    statistic: float


class DashboardStats(BaseModel):
    total_students: int
    total_faculty: int
    total_courses: int
    total_enrollments: int
    active_enrollments: int
    average_attendance: int
    pending_feedback: int
    live_announcements: int
