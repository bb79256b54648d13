"""Analytics repository: loads one organization's scoped collections."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import Select, func, select

from app.api.dependencies import DBSession
from app.modules.analytics.aggregator import AnalyticsScope, AssignmentFact, MemberFact, TaskFact
from app.modules.assignments.models import Assignment
from app.modules.matrices.models import Matrix
from app.modules.organizations.models import Member, MemberStatus
from app.modules.projects.models import Project
from app.modules.tasks.models import Task
from app.modules.users.models import User


class AnalyticsRepository:
    """Read-only queries feeding the analytics aggregator."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def matrix_in_organization(self, matrix_id: UUID, organization_id: UUID) -> bool:
        """Check that a live matrix belongs to the organization."""
        result = await self.session.execute(
            select(Matrix.id)
            .join(Project, Project.id == Matrix.project_id)
            .where(
                Matrix.id == matrix_id,
                Matrix.deleted_at.is_(None),
                Project.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none() is not None

    def _scoped(self, stmt: Select, organization_id: UUID, matrix_id: UUID | None) -> Select:
        stmt = stmt.where(
            Project.organization_id == organization_id,
            Matrix.deleted_at.is_(None),
            Task.deleted_at.is_(None),
        )
        if matrix_id is not None:
            stmt = stmt.where(Matrix.id == matrix_id)
        return stmt

    async def load_scope(
        self,
        organization_id: UUID,
        matrix_id: UUID | None = None,
    ) -> AnalyticsScope:
        """Load live tasks, active members and live assignments.

        Args:
            organization_id: The organization's UUID
            matrix_id: Narrow tasks and assignments to one matrix

        Returns:
            The scope the aggregator works on
        """
        task_result = await self.session.execute(
            self._scoped(
                select(Task.id, Task.status, Task.priority, Task.created_at, Task.updated_at)
                .join(Matrix, Matrix.id == Task.matrix_id)
                .join(Project, Project.id == Matrix.project_id),
                organization_id,
                matrix_id,
            )
        )
        tasks = [
            TaskFact(
                id=task_id,
                status=task_status,
                priority=priority,
                created_at=created_at,
                updated_at=updated_at,
            )
            for task_id, task_status, priority, created_at, updated_at in task_result.all()
        ]

        member_result = await self.session.execute(
            select(Member.id, User.name, Member.job_title)
            .join(User, User.id == Member.user_id)
            .where(
                Member.organization_id == organization_id,
                Member.status == MemberStatus.ACTIVE,
            )
            .order_by(Member.created_at)
        )
        members = [
            MemberFact(id=member_id, name=name, job_title=job_title)
            for member_id, name, job_title in member_result.all()
        ]

        assignment_result = await self.session.execute(
            self._scoped(
                select(
                    Assignment.task_id,
                    Assignment.member_id,
                    Assignment.raci_role,
                    Assignment.workload,
                    Task.status,
                    Task.priority,
                )
                .join(Task, Task.id == Assignment.task_id)
                .join(Matrix, Matrix.id == Task.matrix_id)
                .join(Project, Project.id == Matrix.project_id)
                .where(Assignment.deleted_at.is_(None)),
                organization_id,
                matrix_id,
            )
        )
        assignments = [
            AssignmentFact(
                task_id=task_id,
                member_id=member_id,
                raci_role=raci_role,
                workload=workload,
                task_status=task_status,
                task_priority=task_priority,
            )
            for task_id, member_id, raci_role, workload, task_status, task_priority in (
                assignment_result.all()
            )
        ]

        if matrix_id is not None:
            matrix_count = 1
        else:
            count_result = await self.session.execute(
                select(func.count())
                .select_from(Matrix)
                .join(Project, Project.id == Matrix.project_id)
                .where(Project.organization_id == organization_id, Matrix.deleted_at.is_(None))
            )
            matrix_count = count_result.scalar_one()

        return AnalyticsScope(
            tasks=tasks,
            members=members,
            assignments=assignments,
            matrix_count=matrix_count,
        )


# Type alias for dependency injection
AnalyticsRepo = Annotated[AnalyticsRepository, Depends(AnalyticsRepository)]
