"""
Pydantic schemas for the institute's entities.

Each entity has a ``*Create`` payload (what a form submission or a CSV row
becomes once validated), an ``*Update`` patch with every field optional, and
a read model carrying the store-assigned ``id``.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Literal


ENTITY_TABLES = {
    "students": "students",
    "faculty": "faculties",
    "courses": "courses",
    "enrollments": "enrollments",
    "attendance": "attendance",
    "grades": "grades",
    "announcements": "announcements",
    "feedback": "feedback",
    "audit_logs": "audit_logs",
}

IMPORTABLE_TYPES = ("students", "faculty", "courses", "enrollments", "attendance", "grades")

CREDITS_MIN = 1
CREDITS_MAX = 10
SEMESTER_MIN = 1
SEMESTER_MAX = 8

StudentStatus = Literal["active", "inactive", "suspended", "graduated"]
FacultyStatus = Literal["active", "inactive", "on_leave"]
CourseStatus = Literal["active", "inactive"]
EnrollmentStatus = Literal["enrolled", "dropped", "completed"]
AttendanceStatus = Literal["present", "absent", "late", "excused"]
Priority = Literal["low", "normal", "high", "urgent"]
FeedbackStatus = Literal["pending", "in_review", "resolved", "closed"]


# ---- Student ----
class StudentCreate(BaseModel):
    full_name: str
    email: EmailStr
    student_id: str
    phone: Optional[str] = None
    date_of_birth: Optional[str] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    status: StudentStatus = "active"
    user_id: Optional[str] = None


class StudentUpdate(BaseModel):
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    date_of_birth: Optional[str] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    status: Optional[StudentStatus] = None
    user_id: Optional[str] = None


class Student(StudentCreate):
    id: str
    # Stored values may be null or outside the enums
    email: Optional[str] = None
    status: Optional[str] = None


# ---- Faculty ----
class FacultyCreate(BaseModel):
    full_name: str
    email: EmailStr
    faculty_id: str
    phone: Optional[str] = None
    department: Optional[str] = None
    qualification: Optional[str] = None
    specialization: Optional[str] = None
    joining_date: Optional[str] = None
    status: FacultyStatus = "active"
    user_id: Optional[str] = None


class FacultyUpdate(BaseModel):
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    qualification: Optional[str] = None
    specialization: Optional[str] = None
    joining_date: Optional[str] = None
    status: Optional[FacultyStatus] = None
    user_id: Optional[str] = None


class Faculty(FacultyCreate):
    id: str
    email: Optional[str] = None
    status: Optional[str] = None


# ---- Course ----
class CourseCreate(BaseModel):
    course_code: str
    course_name: str
    credits: int = Field(ge=CREDITS_MIN, le=CREDITS_MAX)
    description: Optional[str] = None
    department: Optional[str] = None
    semester: Optional[int] = Field(default=None, ge=SEMESTER_MIN, le=SEMESTER_MAX)
    faculty_id: Optional[str] = None
    status: CourseStatus = "active"


class CourseUpdate(BaseModel):
    course_name: Optional[str] = None
    credits: Optional[int] = Field(default=None, ge=CREDITS_MIN, le=CREDITS_MAX)
    description: Optional[str] = None
    department: Optional[str] = None
    semester: Optional[int] = Field(default=None, ge=SEMESTER_MIN, le=SEMESTER_MAX)
    faculty_id: Optional[str] = None
    status: Optional[CourseStatus] = None


class Course(CourseCreate):
    id: str
    # Stored rows predate the credits bound; don't reject them on read
    credits: int = 0
    status: Optional[str] = None


# ---- Enrollment ----
class EnrollmentCreate(BaseModel):
    student_id: str
    course_id: str
    status: EnrollmentStatus = "enrolled"
    enrollment_date: Optional[str] = None


class EnrollmentUpdate(BaseModel):
    status: Optional[EnrollmentStatus] = None
    enrollment_date: Optional[str] = None
    grade: Optional[str] = None


class Enrollment(EnrollmentCreate):
    id: str
    status: str = "enrolled"
    grade: Optional[str] = None


# ---- Attendance ----
class AttendanceCreate(BaseModel):
    student_id: str
    course_id: str
    date: str
    status: AttendanceStatus
    notes: Optional[str] = None
    marked_by: Optional[str] = None


class AttendanceUpdate(BaseModel):
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = None


class Attendance(AttendanceCreate):
    id: str
    date: Optional[str] = None
    status: str


# ---- Grade ----
class GradeCreate(BaseModel):
    student_id: str
    course_id: str
    assessment_name: str
    assessment_type: str = "exam"
    obtained_marks: float = Field(ge=0)
    max_marks: float = Field(gt=0)
    grade_letter: Optional[str] = None
    assessment_date: Optional[str] = None
    notes: Optional[str] = None
    entered_by: Optional[str] = None


class GradeUpdate(BaseModel):
    assessment_name: Optional[str] = None
    assessment_type: Optional[str] = None
    obtained_marks: Optional[float] = Field(default=None, ge=0)
    max_marks: Optional[float] = Field(default=None, gt=0)
    assessment_date: Optional[str] = None
    notes: Optional[str] = None


class Grade(GradeCreate):
    id: str
    obtained_marks: float = 0
    max_marks: float = 0
    percentage: Optional[float] = None


# ---- Announcement ----
class AnnouncementCreate(BaseModel):
    title: str
    content: str
    priority: Priority = "normal"
    published: bool = False
    target_audience: List[str] = ["all"]
    expires_at: Optional[str] = None
    published_by: Optional[str] = None


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    priority: Optional[Priority] = None
    published: Optional[bool] = None
    target_audience: Optional[List[str]] = None
    expires_at: Optional[str] = None


class Announcement(AnnouncementCreate):
    id: str
    priority: Optional[str] = None
    published: Optional[bool] = None


# ---- Feedback ----
class FeedbackCreate(BaseModel):
    student_id: str
    subject: str
    category: str
    description: str
    priority: Priority = "normal"
    status: FeedbackStatus = "pending"


class FeedbackUpdate(BaseModel):
    status: Optional[FeedbackStatus] = None
    priority: Optional[Priority] = None
    admin_response: Optional[str] = None
    responded_by: Optional[str] = None


class Feedback(FeedbackCreate):
    id: str
    priority: Optional[str] = None
    status: Optional[str] = None
    admin_response: Optional[str] = None


# ---- Audit log (read only) ----
class AuditLog(BaseModel):
    id: str
    action: str
    table_name: str
    user_id: Optional[str] = None
    record_id: Optional[str] = None
    old_values: Optional[dict] = None
    new_values: Optional[dict] = None
    created_at: Optional[str] = None


CREATE_SCHEMAS = {
    "students": StudentCreate,
    "faculty": FacultyCreate,
    "courses": CourseCreate,
    "enrollments": EnrollmentCreate,
    "attendance": AttendanceCreate,
    "grades": GradeCreate,
    "announcements": AnnouncementCreate,
    "feedback": FeedbackCreate,
}

UPDATE_SCHEMAS = {
    "students": StudentUpdate,
    "faculty": FacultyUpdate,
    "courses": CourseUpdate,
    "enrollments": EnrollmentUpdate,
    "attendance": AttendanceUpdate,
    "grades": GradeUpdate,
    "announcements": AnnouncementUpdate,
    "feedback": FeedbackUpdate,
}
