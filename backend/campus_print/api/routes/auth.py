"""Admin Login — exchanges the configured admin credentials for a bearer token."""

from fastapi import APIRouter, Depends

from campus_print.api.dependencies import get_admin_auth
from campus_print.infrastructure.admin_auth import AdminAuth
from campus_print.schemas.auth import LoginRequest, TokenResponse

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest, admin_auth: AdminAuth = Depends(get_admin_auth),
):
    return TokenResponse(token=admin_auth.login(body.username, body.password))
