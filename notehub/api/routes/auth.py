"""Auth Routes — account registration and login.

Invariants:
    - Both endpoints return a bearer token plus the caller's own account view
    - Duplicate username/email → 409 CONFLICT; bad credentials → 401 AUTH_ERROR
"""

from fastapi import APIRouter, Depends, status

from notehub.api.dependencies import get_account_service
from notehub.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from notehub.services.accounts import AccountService

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post(
    "/register", response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    body: RegisterRequest,
    accounts: AccountService = Depends(get_account_service),
):
    user, token = await accounts.register(body)
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
):
    user, token = await accounts.login(body.email, body.password)
    return AuthResponse(token=token, user=UserResponse.model_validate(user))
