"""Organization API routes."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from app.core.auth.dependencies import CurrentUser
from app.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.core.permissions.scopes import AdminAccess, OrganizationAccess
from app.modules.organizations.schemas import (
    AuditLogResponse,
    OrganizationCreate,
    OrganizationResponse,
    OrganizationStats,
    OrganizationUpdate,
)
from app.modules.organizations.services import OrganizationSvc


router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.get(
    "",
    response_model=list[OrganizationResponse],
    summary="List accessible organizations",
)
async def list_organizations(
    user: CurrentUser,
    service: OrganizationSvc,
) -> list[OrganizationResponse]:
    """List the organizations the caller can enter."""
    organizations = await service.list_for_user(user.id)
    return [OrganizationResponse.model_validate(org) for org in organizations]


@router.post(
    "",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create organization",
    description="Creates an organization. The caller becomes its first OWNER.",
)
async def create_organization(
    data: OrganizationCreate,
    user: CurrentUser,
    service: OrganizationSvc,
) -> OrganizationResponse:
    """Create an organization."""
    organization = await service.create_organization(user, data)
    return OrganizationResponse.model_validate(organization)


@router.get(
    "/{organization_id}",
    response_model=OrganizationResponse,
    summary="Get organization",
)
async def get_organization(
    organization_id: UUID,
    access: OrganizationAccess,
    service: OrganizationSvc,
) -> OrganizationResponse:
    """Get an organization by ID."""
    organization = await service.get_organization(access.organization_id)
    return OrganizationResponse.model_validate(organization)


@router.patch(
    "/{organization_id}",
    response_model=OrganizationResponse,
    summary="Update organization",
)
async def update_organization(
    organization_id: UUID,
    data: OrganizationUpdate,
    access: AdminAccess,
    service: OrganizationSvc,
) -> OrganizationResponse:
    """Update an organization's name or settings (admin only)."""
    organization = await service.update_organization(access, data)
    return OrganizationResponse.model_validate(organization)


@router.post(
    "/{organization_id}/archive",
    response_model=OrganizationResponse,
    summary="Archive organization",
    description="Archives the organization. Only owners may do this.",
)
async def archive_organization(
    organization_id: UUID,
    access: OrganizationAccess,
    service: OrganizationSvc,
) -> OrganizationResponse:
    """Archive an organization (owner only)."""
    organization = await service.archive_organization(access)
    return OrganizationResponse.model_validate(organization)


@router.get(
    "/{organization_id}/stats",
    response_model=OrganizationStats,
    summary="Organization statistics",
)
async def get_organization_stats(
    organization_id: UUID,
    access: OrganizationAccess,
    service: OrganizationSvc,
) -> OrganizationStats:
    """Get member, project, matrix and open-task counts."""
    return await service.get_stats(access.organization_id)


@router.get(
    "/{organization_id}/audit-logs",
    response_model=list[AuditLogResponse],
    summary="List audit logs",
)
async def list_audit_logs(
    organization_id: UUID,
    access: AdminAccess,
    service: OrganizationSvc,
    user_id: UUID | None = None,
    resource_type: str | None = None,
    resource_id: str | None = None,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
) -> list[AuditLogResponse]:
    """List the organization's audit entries, newest first (admin only)."""
    entries = await service.list_audit_logs(
        access.organization_id,
        user_id=user_id,
        resource_type=resource_type,
        resource_id=resource_id,
        limit=limit,
        offset=offset,
    )
    return [AuditLogResponse.model_validate(entry) for entry in entries]
