"""Authentication API router — register, login and own profile."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from logitrack.database.session import get_db
from logitrack.modules.auth.auth import AuthenticatedUser, get_current_user
from logitrack.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse
from logitrack.modules.auth.service import AuthService
from logitrack.modules.users.schemas import ProfileUpdate, UserResponse
from logitrack.modules.users.service import UserService
from logitrack.rate_limit import limiter

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse, status_code=201)
@limiter.limit("10/minute")
async def register(
    request: Request,
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """Create a user or driver account and sign it in."""
    svc = AuthService(db)
    await svc.register(
        username=body.username,
        password=body.password,
        email=body.email,
        full_name=body.full_name,
        user_type=body.user_type,
        phone_number=body.phone_number,
        address=body.address,
        city=body.city,
        postal_code=body.postal_code,
        service_area=body.service_area,
    )
    user, token, expires_in = await svc.authenticate(body.username, body.password)
    return TokenResponse(
        access_token=token,
        expires_in=expires_in,
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=TokenResponse)
@limiter.limit("20/minute")
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    svc = AuthService(db)
    user, token, expires_in = await svc.authenticate(body.username, body.password)
    return TokenResponse(
        access_token=token,
        expires_in=expires_in,
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
async def get_me(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    svc = UserService(db)
    return UserResponse.model_validate(await svc.get_user(user.id))


@router.patch("/me", response_model=UserResponse)
async def update_me(
    body: ProfileUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update the caller's own profile fields."""
    svc = UserService(db)
    updated = await svc.update_profile(user.id, **body.model_dump(exclude_unset=True))
    return UserResponse.model_validate(updated)
