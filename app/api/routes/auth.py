"""Authentication routes."""

from fastapi import APIRouter, status

from app.api.deps import CurrentUser, DB
from app.schemas.auth import AuthResponse, LoginRequest, SignupRequest
from app.services.auth_service import AuthService
from app.utils.envelopes import api_success

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=dict, status_code=status.HTTP_201_CREATED)
async def register(payload: SignupRequest, db: DB):
    """Register with email/password. New accounts start on the Free plan."""
    user = await AuthService.create_user(db, payload.email, payload.password, payload.name)
    token = AuthService.generate_token(user.id, payload.remember_me)
    return api_success(AuthResponse(user=AuthService.to_response(user), token=token).model_dump())


@router.post("/login", response_model=dict)
async def login(payload: LoginRequest, db: DB):
    user = await AuthService.authenticate_email(db, payload.email, payload.password)
    token = AuthService.generate_token(user.id, payload.remember_me)
    return api_success(AuthResponse(user=AuthService.to_response(user), token=token).model_dump())


@router.get("/me", response_model=dict)
async def me(current_user: CurrentUser):
    return api_success(AuthService.to_response(current_user).model_dump())
