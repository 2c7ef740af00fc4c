"""
Pydantic schemas for bulk import requests and their per-row reports.
"""

from pydantic import BaseModel, Field, computed_field
from typing import Optional, List, Literal


RowStatus = Literal["created", "invalid", "not_found", "failed"]


class CSVUpload(BaseModel):
    content: str  # raw file text, read by the client


class GradeImportRequest(BaseModel):
    course_id: str
    assessment_name: str
    assessment_type: str = "exam"
    max_marks: float = Field(default=100, gt=0)
    assessment_date: Optional[str] = None
    content: str


class BulkEnrollRequest(BaseModel):
    course_id: str
    student_ids: List[str]


# ---- Reports ----
class RowOutcome(BaseModel):
    row_number: int  # 1-based, header excluded
    status: RowStatus
    errors: List[str] = []
    record: dict = {}
    entity_id: Optional[str] = None


class ImportReport(BaseModel):
    entity_type: str
    outcomes: List[RowOutcome] = []

    @computed_field
    @property
    def total(self) -> int:
        return len(self.outcomes)

    @computed_field
    @property
    def submitted(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "created")

    @computed_field
    @property
    def skipped_invalid(self) -> int:
        return sum(1 for o in self.outcomes if o.status in ("invalid", "not_found"))

    @computed_field
    @property
    def failed_on_submit(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "failed")

    @computed_field
    @property
    def outcome(self) -> Literal["success", "partial", "failed", "empty"]:
        if not self.outcomes:
            return "empty"
        if self.submitted == self.total:
            return "success"
        if self.submitted == 0:
            return "failed"
        return "partial"

    @computed_field
    @property
    def message(self) -> str:
        return f"Imported {self.submitted}; {self.total - self.submitted} skipped due to errors"


class BulkEnrollmentResult(BaseModel):
    enrolled: int = 0
    skipped: int = 0
    failed: int = 0

    @computed_field
    @property
    def message(self) -> str:
        parts = []
        if self.enrolled:
            parts.append(f"{self.enrolled} enrolled")
        if self.skipped:
            parts.append(f"{self.skipped} already enrolled")
        if self.failed:
            parts.append(f"{self.failed} failed")
        return ", ".join(parts) or "Nothing to enroll"
