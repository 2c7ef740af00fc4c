"""
Security module — bearer token verification + mock auth + role guard.

Auth Flow:
1. User signs in through Supabase Auth on the frontend → gets a JWT
2. Frontend sends the JWT as a Bearer token
3. Backend verifies it with Supabase Auth and loads the profile + role
4. Inactive profiles are rejected
5. Route dependencies check the role (admin / faculty / student)

Mock mode skips step 3 and accepts the demo tokens below or
``mock-<email>`` for any registered profile.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from institute.core.context import AppContext, get_context

security_scheme = HTTPBearer()

ROLES = ("admin", "faculty", "student")

# ---------------------------------------------------------------------------
# Mock users (demo mode without Supabase Auth)
# ---------------------------------------------------------------------------
MOCK_USERS = {
    "admin-token": {
        "user_id": "00000000-0000-0000-0000-000000000001",
        "email": "admin@institute.edu",
        "full_name": "Institute Admin",
        "role": "admin",
    },
    "faculty-token": {
        "user_id": "00000000-0000-0000-0000-000000000002",
        "email": "faculty@institute.edu",
        "full_name": "Demo Faculty",
        "role": "faculty",
    },
    "student-token": {
        "user_id": "00000000-0000-0000-0000-000000000003",
        "email": "student@institute.edu",
        "full_name": "Demo Student",
        "role": "student",
    },
}


def _user_from_profile(profile: dict) -> dict:
    if profile.get("is_active") is False:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been deactivated. Contact the institute admin.",
        )
    return {
        "user_id": profile["id"],
        "email": profile.get("email", ""),
        "full_name": profile.get("full_name") or "",
        "role": profile.get("role", "student"),
    }


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security_scheme),
    ctx: AppContext = Depends(get_context),
) -> dict:
    """Validate the Bearer token and return the user dict."""
    token = credentials.credentials

    if ctx.settings.AUTH_MODE == "mock":
        return _mock_auth(ctx, token)

    return _supabase_auth(ctx, token)


def _mock_auth(ctx: AppContext, token: str) -> dict:
    user = MOCK_USERS.get(token)
    if user:
        return user

    # Email-based token: "mock-someone@institute.edu"
    if token.startswith("mock-"):
        profile = ctx.store.find_user(email=token[5:])
        if profile:
            return _user_from_profile(profile)

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token.",
    )


def _supabase_auth(ctx: AppContext, token: str) -> dict:
    user_id = ctx.store.user_id_for_token(token)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    profile = ctx.store.find_user(id=user_id)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No profile registered for this account. Contact the institute admin.",
        )
    return _user_from_profile(profile)


# ---------------------------------------------------------------------------
# Role guard dependency
# ---------------------------------------------------------------------------
def require_role(allowed_roles: list[str]):
    """
    Usage:
        @router.get("/admin-only")
        async def endpoint(user=Depends(require_role(["admin"]))):
    """

    async def role_checker(
        user: dict = Depends(get_current_user),
    ) -> dict:
        if user["role"] not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{user['role']}' not authorized. Required: {allowed_roles}",
            )
        return user

    return role_checker
