"""
Entity router — list / create / update / delete for every institute table.
Admins manage everything; faculty and students get read access to what
their portals show.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError

from institute.core.context import AppContext, get_context
from institute.core.errors import UnknownEntityType
from institute.core.security import ROLES, require_role
from institute.schemas.entities import CREATE_SCHEMAS, ENTITY_TABLES, UPDATE_SCHEMAS
from institute.utils.response import success_response

router = APIRouter(prefix="/api/entities", tags=["Entities"])

READ_ROLES = {
    "students": ["admin", "faculty"],
    "faculty": ["admin", "faculty"],
    "courses": ["admin", "faculty", "student"],
    "enrollments": ["admin", "faculty", "student"],
    "attendance": ["admin", "faculty", "student"],
    "grades": ["admin", "faculty", "student"],
    "announcements": ["admin", "faculty", "student"],
    "feedback": ["admin", "student"],
    "audit_logs": ["admin"],
}


def _writable(entity_type: str) -> str:
    if entity_type not in CREATE_SCHEMAS:
        if entity_type in ENTITY_TABLES:
            raise HTTPException(status_code=405, detail=f"{entity_type} is read only")
        raise UnknownEntityType(entity_type)
    return entity_type


def _validated(schema, body: dict, **dump_options) -> dict:
    try:
        return schema.model_validate(body).model_dump(**dump_options)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False),
        )


@router.get("/{entity_type}")
async def list_entities(
    entity_type: str,
    request: Request,
    user: dict = Depends(require_role(list(ROLES))),
    ctx: AppContext = Depends(get_context),
):
    """Query parameters become equality filters, e.g. ``?course_id=...``."""
    if entity_type not in ENTITY_TABLES:
        raise UnknownEntityType(entity_type)
    if user["role"] not in READ_ROLES[entity_type]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Role '{user['role']}' may not read {entity_type}",
        )
    rows = ctx.store.list(entity_type, dict(request.query_params))
    return success_response(data=rows)


@router.post("/{entity_type}")
async def create_entity(
    entity_type: str,
    body: dict,
    user: dict = Depends(require_role(["admin"])),
    ctx: AppContext = Depends(get_context),
):
    schema = CREATE_SCHEMAS[_writable(entity_type)]
    record = _validated(schema, body, exclude_none=True)
    created = ctx.store.create(entity_type, record)
    return success_response(data=created, message=f"{entity_type} record created")


@router.patch("/{entity_type}/{entity_id}")
async def update_entity(
    entity_type: str,
    entity_id: str,
    body: dict,
    user: dict = Depends(require_role(["admin"])),
    ctx: AppContext = Depends(get_context),
):
    schema = UPDATE_SCHEMAS[_writable(entity_type)]
    patch = _validated(schema, body, exclude_unset=True)
    if not patch:
        raise HTTPException(status_code=400, detail="Nothing to update")
    updated = ctx.store.update(entity_type, entity_id, patch)
    return success_response(data=updated, message=f"{entity_type} record updated")


@router.delete("/{entity_type}/{entity_id}")
async def delete_entity(
    entity_type: str,
    entity_id: str,
    user: dict = Depends(require_role(["admin"])),
    ctx: AppContext = Depends(get_context),
):
    ctx.store.delete(_writable(entity_type), entity_id)
    return success_response(message=f"{entity_type} record deleted")
