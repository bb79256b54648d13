"""User API routes."""

from fastapi import APIRouter

from app.core.auth.dependencies import CurrentUser
from app.modules.users.schemas import CurrentUserResponse
from app.modules.users.services import UserSvc


router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    summary="Get current user",
    description="Returns the caller's profile and whether they hold a consultancy grant.",
)
async def get_me(user: CurrentUser, service: UserSvc) -> CurrentUserResponse:
    """Get the authenticated user's profile."""
    return await service.get_profile(user)
