from fastapi import APIRouter, Depends, HTTPException

from institute.core.context import AppContext, get_context
from institute.core.security import require_role
from institute.schemas.imports import BulkEnrollRequest
from institute.services.importer import bulk_enroll
from institute.utils.response import success_response

router = APIRouter(prefix="/api/enrollments", tags=["Enrollments"])


@router.post("/bulk")
async def bulk_enroll_students(
    body: BulkEnrollRequest,
    user: dict = Depends(require_role(["admin"])),
    ctx: AppContext = Depends(get_context),
):
    """Enroll many students in one course, skipping those already enrolled."""
    if not body.student_ids:
        raise HTTPException(status_code=400, detail="No students selected")

    result = bulk_enroll(ctx.store, body.course_id, body.student_ids)
    return success_response(data=result.model_dump(), message=result.message)
