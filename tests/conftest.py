import copy
import itertools

import pytest
from fastapi.testclient import TestClient

from institute.core.config import Settings
from institute.core.context import AppContext
from institute.core.errors import StoreError
from institute.main import create_app


class FakeStore:
    """In-memory stand-in for SupabaseStore."""

    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.created: list[tuple[str, dict]] = []
        self.fail_when = None  # callable(entity_type, record) -> bool
        self.sessions: dict[str, str] = {}  # access token -> user id
        self._ids = itertools.count(1)

    def seed(self, entity_type, rows):
        self.tables.setdefault(entity_type, []).extend(copy.deepcopy(rows))

    def create(self, entity_type, record):
        if self.fail_when and self.fail_when(entity_type, record):
            raise StoreError("duplicate key value violates unique constraint", entity_type)
        row = {"id": f"{entity_type}-{next(self._ids)}", **record}
        self.tables.setdefault(entity_type, []).append(row)
        self.created.append((entity_type, record))
        return copy.deepcopy(row)

    def list(self, entity_type, filters=None):
        rows = self.tables.get(entity_type, [])
        for column, value in (filters or {}).items():
            rows = [r for r in rows if str(r.get(column)) == str(value)]
        return copy.deepcopy(rows)

    def update(self, entity_type, entity_id, patch):
        if self.fail_when and self.fail_when(entity_type, patch):
            raise StoreError("update rejected", entity_type)
        for row in self.tables.get(entity_type, []):
            if row["id"] == entity_id:
                row.update(patch)
                return copy.deepcopy(row)
        raise StoreError(f"No {entity_type} row with id {entity_id}", entity_type)

    def delete(self, entity_type, entity_id):
        rows = self.tables.get(entity_type, [])
        self.tables[entity_type] = [r for r in rows if r["id"] != entity_id]

    def find_user(self, **criteria):
        for profile in self.tables.get("profiles", []):
            if all(profile.get(k) == v for k, v in criteria.items()):
                return dict(profile)
        return None

    def user_id_for_token(self, token):
        return self.sessions.get(token)


STUDENTS = [
    {"id": "stu-1", "student_id": "S1", "full_name": "Asha Rao", "email": "asha@example.com", "status": "active"},
    {"id": "stu-2", "student_id": "S2", "full_name": "Ben Ode", "email": "ben@example.com", "status": "active"},
]

FACULTY = [
    {"id": "fac-1", "faculty_id": "F1", "full_name": "Dr. Chen", "email": "chen@example.com",
     "department": "Computer Science", "qualification": "Ph.D.", "status": "active"},
    {"id": "fac-2", "faculty_id": "F2", "full_name": "Dr. Iyer", "email": "iyer@example.com",
     "department": "Mathematics", "qualification": "M.Sc", "status": "active"},
]

COURSES = [
    {"id": "crs-1", "course_code": "CS101", "course_name": "Intro to Programming", "credits": 3,
     "department": "Computer Science", "semester": 1, "faculty_id": "fac-1", "status": "active"},
    {"id": "crs-2", "course_code": "MA101", "course_name": "Calculus", "credits": 4,
     "department": "Mathematics", "semester": 1, "faculty_id": "fac-2", "status": "active"},
    {"id": "crs-3", "course_code": "CS201", "course_name": "Data Structures", "credits": 4,
     "department": "Computer Science", "semester": 3, "faculty_id": "fac-1", "status": "active"},
]

ENROLLMENTS = [
    {"id": "enr-1", "student_id": "stu-1", "course_id": "crs-1", "status": "enrolled", "enrollment_date": "2025-01-05"},
    {"id": "enr-2", "student_id": "stu-2", "course_id": "crs-1", "status": "enrolled", "enrollment_date": "2025-01-06"},
    {"id": "enr-3", "student_id": "stu-1", "course_id": "crs-2", "status": "dropped", "enrollment_date": "2025-02-01"},
]

ATTENDANCE = [
    {"id": "att-1", "student_id": "stu-1", "course_id": "crs-1", "date": "2025-01-10", "status": "present"},
    {"id": "att-2", "student_id": "stu-2", "course_id": "crs-1", "date": "2025-01-10", "status": "absent"},
    {"id": "att-3", "student_id": "stu-1", "course_id": "crs-1", "date": "2025-01-17", "status": "present"},
    {"id": "att-4", "student_id": "stu-1", "course_id": "crs-1", "date": "2025-02-03", "status": "absent"},
    {"id": "att-5", "student_id": "stu-1", "course_id": "crs-2", "date": "2025-01-10", "status": "present"},
]

GRADES = [
    {"id": "grd-1", "student_id": "stu-1", "course_id": "crs-1", "assessment_name": "Midterm",
     "assessment_type": "exam", "obtained_marks": 45, "max_marks": 50, "assessment_date": "2025-01-20"},
    {"id": "grd-2", "student_id": "stu-2", "course_id": "crs-1", "assessment_name": "Midterm",
     "assessment_type": "exam", "obtained_marks": 30, "max_marks": 50, "assessment_date": "2025-01-20"},
    {"id": "grd-3", "student_id": "stu-1", "course_id": "crs-2", "assessment_name": "Quiz 1",
     "assessment_type": "quiz", "obtained_marks": 8, "max_marks": 10, "assessment_date": "2025-01-25"},
]


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def seeded_store(store):
    store.seed("students", STUDENTS)
    store.seed("faculty", FACULTY)
    store.seed("courses", COURSES)
    store.seed("enrollments", ENROLLMENTS)
    store.seed("attendance", ATTENDANCE)
    store.seed("grades", GRADES)
    return store


@pytest.fixture
def settings():
    return Settings(AUTH_MODE="mock", SUPABASE_URL="", SUPABASE_KEY="")


@pytest.fixture
def client(seeded_store, settings):
    app = create_app(AppContext(settings=settings, store=seeded_store))
    return TestClient(app)


@pytest.fixture
def admin_headers():
    return {"Authorization": "Bearer admin-token"}


@pytest.fixture
def faculty_headers():
    return {"Authorization": "Bearer faculty-token"}


@pytest.fixture
def student_headers():
    return {"Authorization": "Bearer student-token"}
