"""User Routes — own account and public reputation profiles."""

from fastapi import APIRouter, Depends

from notehub.api.dependencies import (
    get_account_service, get_current_identity, get_reputation_service,
)
from notehub.core.domain_types import Identity
from notehub.schemas.auth import PublicProfile, UserResponse
from notehub.services.accounts import AccountService
from notehub.services.reputation import ReputationService

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_me(
    identity: Identity = Depends(get_current_identity),
    accounts: AccountService = Depends(get_account_service),
):
    return await accounts.get_user(identity.id)


@router.get("/{user_id}", response_model=PublicProfile)
async def get_profile(
    user_id: int,
    _: Identity = Depends(get_current_identity),
    reputation: ReputationService = Depends(get_reputation_service),
):
    """Public view: rating and completed-order count of any user."""
    return await reputation.profile(user_id)
