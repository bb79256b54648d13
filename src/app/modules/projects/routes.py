"""Project API routes."""

from uuid import UUID

from fastapi import APIRouter, status

from app.core.permissions.scopes import OrganizationAccess, ProjectAccess
from app.modules.projects.schemas import (
    ProjectCreate,
    ProjectResponse,
    ProjectStats,
    ProjectUpdate,
)
from app.modules.projects.services import ProjectSvc


router = APIRouter(tags=["projects"])


@router.get(
    "/organizations/{organization_id}/projects",
    response_model=list[ProjectResponse],
    summary="List projects",
)
async def list_projects(
    organization_id: UUID,
    access: OrganizationAccess,
    service: ProjectSvc,
    include_archived: bool = False,
) -> list[ProjectResponse]:
    """List the organization's projects, newest first."""
    return await service.list_projects(access.organization_id, include_archived)


@router.post(
    "/organizations/{organization_id}/projects",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create project",
)
async def create_project(
    organization_id: UUID,
    data: ProjectCreate,
    access: OrganizationAccess,
    service: ProjectSvc,
) -> ProjectResponse:
    """Create a project owned by the caller."""
    project = await service.create_project(access, data)
    return ProjectResponse.model_validate(project)


@router.get("/projects/{project_id}", response_model=ProjectResponse, summary="Get project")
async def get_project(
    project_id: UUID,
    access: ProjectAccess,
    service: ProjectSvc,
) -> ProjectResponse:
    """Get a project by ID."""
    project = await service.get_project(project_id)
    return ProjectResponse.model_validate(project)


@router.patch("/projects/{project_id}", response_model=ProjectResponse, summary="Update project")
async def update_project(
    project_id: UUID,
    data: ProjectUpdate,
    access: ProjectAccess,
    service: ProjectSvc,
) -> ProjectResponse:
    """Update a project."""
    project = await service.update_project(access, project_id, data)
    return ProjectResponse.model_validate(project)


@router.post(
    "/projects/{project_id}/archive",
    response_model=ProjectResponse,
    summary="Archive project",
)
async def archive_project(
    project_id: UUID,
    access: ProjectAccess,
    service: ProjectSvc,
) -> ProjectResponse:
    """Archive a project."""
    project = await service.archive_project(access, project_id)
    return ProjectResponse.model_validate(project)


@router.post(
    "/projects/{project_id}/restore",
    response_model=ProjectResponse,
    summary="Restore project",
)
async def restore_project(
    project_id: UUID,
    access: ProjectAccess,
    service: ProjectSvc,
) -> ProjectResponse:
    """Restore an archived project."""
    project = await service.restore_project(access, project_id)
    return ProjectResponse.model_validate(project)


@router.get(
    "/projects/{project_id}/stats",
    response_model=ProjectStats,
    summary="Project statistics",
)
async def get_project_stats(
    project_id: UUID,
    access: ProjectAccess,
    service: ProjectSvc,
) -> ProjectStats:
    """Count live matrices, tasks and assignments in a project."""
    return await service.get_stats(project_id)
