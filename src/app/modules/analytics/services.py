"""Analytics service: scope loading plus aggregation."""

from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from app.config import settings
from app.core.errors import NotFoundError
from app.core.permissions.context import AccessContext
from app.modules.analytics.aggregator import AnalyticsAggregator, AnalyticsScope
from app.modules.analytics.repos import AnalyticsRepo
from app.modules.analytics.schemas import (
    BottleneckMember,
    CompletionMetrics,
    HeatmapRow,
    MemberWorkload,
    OrganizationAnalytics,
)


logger = structlog.get_logger()


def get_aggregator() -> AnalyticsAggregator:
    """Dependency that provides an aggregator configured from settings."""
    return AnalyticsAggregator(
        default_workload=settings.default_assignment_workload,
        overload_threshold=settings.overload_threshold,
    )


Aggregator = Annotated[AnalyticsAggregator, Depends(get_aggregator)]


class AnalyticsService:
    """Read-only analytics for one organization, optionally one matrix."""

    def __init__(self, repo: AnalyticsRepo, aggregator: Aggregator) -> None:
        self.repo = repo
        self.aggregator = aggregator

    async def load_scope(self, access: AccessContext, matrix_id: UUID | None) -> AnalyticsScope:
        """Load the collections for the caller's organization.

        Raises:
            NotFoundError: If ``matrix_id`` is not a live matrix of the organization
        """
        if matrix_id is not None and not await self.repo.matrix_in_organization(
            matrix_id, access.organization_id
        ):
            raise NotFoundError(
                "Matrix not found",
                resource="matrix",
                resource_id=str(matrix_id),
                error_code="matrix_not_found",
            )
        scope = await self.repo.load_scope(access.organization_id, matrix_id)
        logger.debug(
            "analytics_scope_loaded",
            matrix_id=str(matrix_id) if matrix_id else None,
            tasks=len(scope.tasks),
            members=len(scope.members),
            assignments=len(scope.assignments),
        )
        return scope

    async def get_organization_analytics(
        self,
        access: AccessContext,
        matrix_id: UUID | None = None,
    ) -> OrganizationAnalytics:
        scope = await self.load_scope(access, matrix_id)
        return self.aggregator.organization_summary(scope)

    async def get_member_workload(
        self,
        access: AccessContext,
        matrix_id: UUID | None = None,
    ) -> list[MemberWorkload]:
        scope = await self.load_scope(access, matrix_id)
        return self.aggregator.member_workload_distribution(scope)

    async def get_bottlenecks(
        self,
        access: AccessContext,
        matrix_id: UUID | None = None,
        threshold: float | None = None,
    ) -> list[BottleneckMember]:
        scope = await self.load_scope(access, matrix_id)
        return self.aggregator.bottlenecks(scope, threshold)

    async def get_completion_metrics(
        self,
        access: AccessContext,
        matrix_id: UUID | None = None,
    ) -> CompletionMetrics:
        scope = await self.load_scope(access, matrix_id)
        return self.aggregator.completion_metrics(scope)

    async def get_role_heatmap(
        self,
        access: AccessContext,
        matrix_id: UUID | None = None,
    ) -> list[HeatmapRow]:
        scope = await self.load_scope(access, matrix_id)
        return self.aggregator.role_heatmap(scope)


# Type alias for dependency injection
AnalyticsSvc = Annotated[AnalyticsService, Depends(AnalyticsService)]
