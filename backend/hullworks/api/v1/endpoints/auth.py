"""
HULLWORKS MES — Auth endpoints
POST /auth/login, /auth/logout, GET /auth/me
"""
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from hullworks.api.deps import CurrentUser, get_db, require_auth
from hullworks.config import get_settings
from hullworks.core.responses import success_response
from hullworks.core.security import create_access_token
from hullworks.schemas.auth import AuthUser, LoginRequest, TokenResponse
from hullworks.schemas.common import ApiResponse
from hullworks.services.user_service import UserService

router = APIRouter()
settings = get_settings()


@router.post("/login", response_model=ApiResponse[TokenResponse])
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Authenticate with email/password. Returns the token and sets it as an httpOnly cookie."""
    user = await UserService.authenticate(db, body.email, body.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    access_token = create_access_token(
        subject=str(user.id),
        role=user.role,
        department_id=str(user.department_id) if user.department_id else None,
        email=user.email,
    )
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=access_token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=int(settings.access_token_ttl.total_seconds()),
    )
    return ApiResponse(data=TokenResponse(
        access_token=access_token,
        user=AuthUser(
            id=user.id,
            email=user.email,
            role=user.role,
            department_id=user.department_id,
            department_name=user.department.name if user.department else None,
        ),
    ))


@router.post("/logout")
async def logout(response: Response) -> dict:
    """Clear the auth cookie."""
    response.delete_cookie(key=settings.AUTH_COOKIE_NAME)
    return success_response({"message": "Logged out"})


@router.get("/me", response_model=ApiResponse[AuthUser])
async def me(
    user: CurrentUser = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """Return the current user, re-read from the database."""
    record = await UserService.get(db, user.id)
    if not record.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is inactive")
    return ApiResponse(data=AuthUser(
        id=record.id,
        email=record.email,
        role=record.role,
        department_id=record.department_id,
        department_name=record.department.name if record.department else None,
    ))
