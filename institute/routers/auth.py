"""
Auth router — current user profile.

Sign-in itself happens against Supabase Auth on the frontend; the backend
only resolves the bearer token to a profile and role.
"""

from fastapi import APIRouter, Depends

from institute.core.security import get_current_user
from institute.utils.response import success_response

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.get("/me")
async def me(user: dict = Depends(get_current_user)):
    return success_response(data=user)
