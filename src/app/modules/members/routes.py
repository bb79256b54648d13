"""Member API routes."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from app.core.permissions.scopes import AdminAccess, OrganizationAccess
from app.modules.members.schemas import (
    MemberCreate,
    MemberResponse,
    MemberUpdate,
    MemberWorkloadResponse,
)
from app.modules.members.services import MemberSvc
from app.modules.organizations.models import MemberStatus


router = APIRouter(prefix="/organizations/{organization_id}/members", tags=["members"])


@router.get("", response_model=list[MemberResponse], summary="List members")
async def list_members(
    organization_id: UUID,
    access: OrganizationAccess,
    service: MemberSvc,
    member_status: MemberStatus | None = Query(None, alias="status"),
) -> list[MemberResponse]:
    """List the organization's members, optionally filtered by status."""
    return await service.list_members(access.organization_id, member_status)


@router.post(
    "",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add member",
)
async def create_member(
    organization_id: UUID,
    data: MemberCreate,
    access: AdminAccess,
    service: MemberSvc,
) -> MemberResponse:
    """Add an existing user to the organization (admin only)."""
    member = await service.create_member(access, data)
    return MemberResponse.model_validate(member)


@router.get("/{member_id}", response_model=MemberResponse, summary="Get member")
async def get_member(
    organization_id: UUID,
    member_id: UUID,
    access: OrganizationAccess,
    service: MemberSvc,
) -> MemberResponse:
    """Get a member with their user profile."""
    return await service.get_member_detail(access.organization_id, member_id)


@router.patch("/{member_id}", response_model=MemberResponse, summary="Update member")
async def update_member(
    organization_id: UUID,
    member_id: UUID,
    data: MemberUpdate,
    access: AdminAccess,
    service: MemberSvc,
) -> MemberResponse:
    """Update a member's role, job title, departments or status (admin only)."""
    member = await service.update_member(access, member_id, data)
    return MemberResponse.model_validate(member)


@router.delete(
    "/{member_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove member",
)
async def remove_member(
    organization_id: UUID,
    member_id: UUID,
    access: AdminAccess,
    service: MemberSvc,
) -> None:
    """Remove a member and their assignments (admin only)."""
    await service.remove_member(access, member_id)


@router.get(
    "/{member_id}/workload",
    response_model=MemberWorkloadResponse,
    summary="Member workload",
)
async def get_member_workload(
    organization_id: UUID,
    member_id: UUID,
    access: OrganizationAccess,
    service: MemberSvc,
) -> MemberWorkloadResponse:
    """Summarize a member's open assignments."""
    return await service.get_workload(access.organization_id, member_id)
