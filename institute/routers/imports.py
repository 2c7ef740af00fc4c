"""
Bulk import router — CSV templates, entity import, grade sheet import.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from institute.core.context import AppContext, get_context
from institute.core.errors import UnknownEntityType
from institute.core.security import require_role
from institute.schemas.entities import IMPORTABLE_TYPES
from institute.schemas.imports import CSVUpload, GradeImportRequest
from institute.services.csvio import TEMPLATES, grade_sheet_template, parse_csv, require_columns
from institute.services.importer import course_roster, import_grades, import_records
from institute.services.validators import (
    DEPENDENT_TYPES, REQUIRED_FIELDS, ReferenceIndex, classify_grade_rows,
)
from institute.utils.response import success_response

router = APIRouter(prefix="/api/imports", tags=["Bulk Import"])


def _importable(entity_type: str) -> str:
    if entity_type not in IMPORTABLE_TYPES:
        raise UnknownEntityType(entity_type)
    return entity_type


def _csv_download(content: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


# ═══════════════════════════════════════════════════════════
# GRADE SHEET — one assessment for one course
# ═══════════════════════════════════════════════════════════

@router.get("/grade-sheet/template")
async def download_grade_sheet_template(
    course_id: str = Query(...),
    assessment_type: str = Query(default="exam"),
    user: dict = Depends(require_role(["faculty", "admin"])),
    ctx: AppContext = Depends(get_context),
):
    """A student_id,marks sheet listing the course's enrolled students, marks left blank."""
    roster = course_roster(ctx.store, course_id)
    content = grade_sheet_template(roster, ctx.settings.CSV_DELIMITER)
    return _csv_download(content, f"grade_template_{assessment_type}.csv")


@router.post("/grade-sheet/preview")
async def preview_grade_sheet(
    body: GradeImportRequest,
    user: dict = Depends(require_role(["faculty", "admin"])),
    ctx: AppContext = Depends(get_context),
):
    """Classify each row as valid / invalid / not_found without writing anything."""
    parsed = parse_csv(body.content, ctx.settings.CSV_DELIMITER)
    roster = course_roster(ctx.store, body.course_id)
    rows = classify_grade_rows(parsed, roster, body.max_marks)
    return success_response(data=[
        {
            "row_number": r.row_number,
            "student_id": r.student_key,
            "marks": r.marks,
            "status": r.status,
            "message": r.message,
            "student_name": r.student.get("full_name") if r.student else None,
        }
        for r in rows
    ])


@router.post("/grade-sheet")
async def import_grade_sheet(
    body: GradeImportRequest,
    user: dict = Depends(require_role(["faculty", "admin"])),
    ctx: AppContext = Depends(get_context),
):
    parsed = parse_csv(body.content, ctx.settings.CSV_DELIMITER)
    roster = course_roster(ctx.store, body.course_id)
    rows = classify_grade_rows(parsed, roster, body.max_marks)
    report = import_grades(
        ctx.store,
        rows,
        course_id=body.course_id,
        assessment_name=body.assessment_name,
        max_marks=body.max_marks,
        assessment_type=body.assessment_type,
        assessment_date=body.assessment_date,
        entered_by=user.get("user_id"),
    )
    return success_response(data=report.model_dump(), message=report.message)


# ═══════════════════════════════════════════════════════════
# ENTITY IMPORT
# ═══════════════════════════════════════════════════════════

@router.get("/{entity_type}/template")
async def download_template(
    entity_type: str,
    user: dict = Depends(require_role(["admin", "faculty"])),
):
    template = TEMPLATES[_importable(entity_type)]
    return _csv_download(template, f"{entity_type}_template.csv")


@router.post("/{entity_type}")
async def import_csv(
    entity_type: str,
    body: CSVUpload,
    user: dict = Depends(require_role(["admin"])),
    ctx: AppContext = Depends(get_context),
):
    """
    Import one row per CSV line. The whole file is rejected only when it has
    no data or lacks a required column; bad rows are skipped and reported.
    """
    entity_type = _importable(entity_type)
    parsed = parse_csv(body.content, ctx.settings.CSV_DELIMITER)
    require_columns(parsed, REQUIRED_FIELDS[entity_type])

    references = None
    if entity_type in DEPENDENT_TYPES:
        references = ReferenceIndex(ctx.store.list("students"), ctx.store.list("courses"))

    report = import_records(
        ctx.store, entity_type, parsed.records, references, actor_id=user.get("user_id"),
    )
    return success_response(data=report.model_dump(), message=report.message)
