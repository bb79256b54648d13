"""Storage-level guards on assignments and organization slugs.

These run below the service layer: they are what stops two concurrent
writers that both passed the in-process RACI check.
"""

from datetime import UTC, datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import atomic
from app.core.errors import ConflictError
from app.modules.assignments.models import Assignment, RaciRole
from app.modules.tasks.models import Task
from tests.factories import OrganizationFactory, add_member


pytestmark = pytest.mark.integration


@pytest.fixture
async def task(db: AsyncSession, matrix) -> Task:
    task = Task(matrix_id=matrix.id, name="Contract review", order_index=0)
    db.add(task)
    await db.commit()
    return task


@pytest.fixture
async def people(db: AsyncSession, organization):
    return [await add_member(db, organization), await add_member(db, organization)]


def make_assignment(task: Task, member, role: RaciRole) -> Assignment:
    return Assignment(
        matrix_id=task.matrix_id,
        task_id=task.id,
        member_id=member.id,
        raci_role=role,
    )


class TestAssignmentIndexes:
    """Tests for the partial unique indexes on assignments."""

    @pytest.mark.asyncio
    async def test_second_live_accountable_is_rejected(self, db: AsyncSession, task, people):
        db.add(make_assignment(task, people[0], RaciRole.ACCOUNTABLE))
        await db.commit()

        with pytest.raises(ConflictError) as exc_info:
            async with atomic(db, "Task already has an Accountable", "accountable_exists"):
                db.add(make_assignment(task, people[1], RaciRole.ACCOUNTABLE))

        assert exc_info.value.error_code == "accountable_exists"

    @pytest.mark.asyncio
    async def test_repeated_triple_is_rejected(self, db: AsyncSession, task, people):
        db.add(make_assignment(task, people[0], RaciRole.CONSULTED))
        await db.commit()

        with pytest.raises(ConflictError):
            async with atomic(db):
                db.add(make_assignment(task, people[0], RaciRole.CONSULTED))

    @pytest.mark.asyncio
    async def test_soft_deleted_rows_do_not_block(self, db: AsyncSession, task, people):
        removed = make_assignment(task, people[0], RaciRole.ACCOUNTABLE)
        removed.deleted_at = datetime.now(UTC)
        db.add(removed)
        await db.commit()

        async with atomic(db):
            db.add(make_assignment(task, people[0], RaciRole.ACCOUNTABLE))

    @pytest.mark.asyncio
    async def test_same_member_may_hold_different_roles(self, db: AsyncSession, task, people):
        async with atomic(db):
            db.add_all(
                [
                    make_assignment(task, people[0], RaciRole.ACCOUNTABLE),
                    make_assignment(task, people[0], RaciRole.RESPONSIBLE),
                ]
            )


class TestOrganizationSlug:
    """Slugs are unique among non-archived organizations only."""

    @pytest.mark.asyncio
    async def test_active_slug_is_unique(self, db: AsyncSession, organization):
        with pytest.raises(ConflictError):
            async with atomic(db):
                db.add(OrganizationFactory.build(slug=organization.slug))

    @pytest.mark.asyncio
    async def test_archived_slug_can_be_reused(self, db: AsyncSession, organization):
        organization.archived_at = datetime.now(UTC)
        await db.commit()

        async with atomic(db):
            db.add(OrganizationFactory.build(slug=organization.slug))
