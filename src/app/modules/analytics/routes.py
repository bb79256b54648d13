"""Analytics API routes.

Every route is organization-scoped through the ``organization_id`` query
parameter and accepts an optional ``matrix_id`` narrowing filter.
"""

from uuid import UUID

from fastapi import APIRouter, Query

from app.core.permissions.scopes import OrganizationAccess
from app.modules.analytics.schemas import (
    BottleneckMember,
    CompletionMetrics,
    HeatmapRow,
    MemberWorkload,
    OrganizationAnalytics,
)
from app.modules.analytics.services import AnalyticsSvc


router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get(
    "/organization",
    response_model=OrganizationAnalytics,
    summary="Organization analytics",
)
async def get_organization_analytics(
    access: OrganizationAccess,
    service: AnalyticsSvc,
    organization_id: UUID,
    matrix_id: UUID | None = None,
) -> OrganizationAnalytics:
    """Headline task, member and assignment numbers."""
    return await service.get_organization_analytics(access, matrix_id)


@router.get(
    "/workload",
    response_model=list[MemberWorkload],
    summary="Member workload distribution",
)
async def get_member_workload(
    access: OrganizationAccess,
    service: AnalyticsSvc,
    organization_id: UUID,
    matrix_id: UUID | None = None,
) -> list[MemberWorkload]:
    """R/A/C/I counts and summed workload for every active member."""
    return await service.get_member_workload(access, matrix_id)


@router.get(
    "/bottlenecks",
    response_model=list[BottleneckMember],
    summary="Bottleneck detection",
    description="Members whose summed workload strictly exceeds the threshold, heaviest first.",
)
async def get_bottlenecks(
    access: OrganizationAccess,
    service: AnalyticsSvc,
    organization_id: UUID,
    matrix_id: UUID | None = None,
    threshold: float | None = Query(None, ge=0, le=100),
) -> list[BottleneckMember]:
    """List overloaded members."""
    return await service.get_bottlenecks(access, matrix_id, threshold)


@router.get("/completion", response_model=CompletionMetrics, summary="Completion metrics")
async def get_completion_metrics(
    access: OrganizationAccess,
    service: AnalyticsSvc,
    organization_id: UUID,
    matrix_id: UUID | None = None,
) -> CompletionMetrics:
    """Task status counts and completion timing."""
    return await service.get_completion_metrics(access, matrix_id)


@router.get("/heatmap", response_model=list[HeatmapRow], summary="Role heatmap")
async def get_role_heatmap(
    access: OrganizationAccess,
    service: AnalyticsSvc,
    organization_id: UUID,
    matrix_id: UUID | None = None,
) -> list[HeatmapRow]:
    """Member x role grid of counts and workload."""
    return await service.get_role_heatmap(access, matrix_id)
