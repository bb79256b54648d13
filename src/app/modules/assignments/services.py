"""Assignment service: the write path for RACI edges.

Creates and role changes pass the pre-commit gate of RaciValidator
before anything is written. The gate is read-then-decide; concurrent
writers are stopped by the partial unique indexes on ``assignments``,
which surface here as conflicts.
"""

from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends

from app.api.dependencies import DBSession
from app.core.audit import AuditAction, AuditSink, ResourceType
from app.core.database import atomic
from app.core.errors import BadRequestError, NotFoundError, RaciRuleViolation
from app.core.permissions.context import AccessContext
from app.modules.assignments.models import Assignment, RaciRole
from app.modules.assignments.repos import AssignmentRepo
from app.modules.assignments.schemas import (
    AssignmentCreate,
    AssignmentUpdate,
    MemberAssignmentStats,
    PriorityBreakdown,
    RoleBreakdown,
)
from app.modules.assignments.validation import (
    AssignmentRecord,
    AssignmentVerdict,
    Validator,
    check_new_assignment,
)
from app.modules.members.repos import MemberRepo
from app.modules.tasks.models import Task
from app.modules.tasks.repos import TaskRepo


logger = structlog.get_logger()

RACI_CONFLICT_MESSAGE = (
    "The assignment conflicts with an existing one: the task already has an "
    "Accountable person or the member already holds this role"
)


def _audit_view(assignment: Assignment) -> dict[str, str | int | None]:
    return {
        "task_id": str(assignment.task_id),
        "member_id": str(assignment.member_id),
        "raci_role": assignment.raci_role.value,
        "notes": assignment.notes,
        "workload": assignment.workload,
    }


class AssignmentService:
    """Service for assignment operations inside one matrix."""

    def __init__(
        self,
        db: DBSession,
        repo: AssignmentRepo,
        tasks: TaskRepo,
        members: MemberRepo,
        validator: Validator,
        audit: AuditSink,
    ) -> None:
        self.db = db
        self.repo = repo
        self.tasks = tasks
        self.members = members
        self.validator = validator
        self.audit = audit

    async def get_assignment(self, matrix_id: UUID, assignment_id: UUID) -> Assignment:
        """Get a live assignment of the matrix.

        Raises:
            NotFoundError: If the assignment is missing, deleted or in another matrix
        """
        assignment = await self.repo.get_in_matrix(assignment_id, matrix_id)
        if assignment is None:
            raise NotFoundError(
                "Assignment not found",
                resource="assignment",
                resource_id=str(assignment_id),
            )
        return assignment

    async def list_assignments(
        self,
        matrix_id: UUID,
        task_id: UUID | None = None,
        member_id: UUID | None = None,
        raci_role: RaciRole | None = None,
    ) -> list[Assignment]:
        return await self.repo.list_for_matrix(matrix_id, task_id, member_id, raci_role)

    async def create_assignment(self, access: AccessContext, data: AssignmentCreate) -> Assignment:
        """Assign a member a RACI role on a task.

        Args:
            access: The caller's matrix-scoped access context
            data: Assignment data

        Returns:
            The created assignment

        Raises:
            NotFoundError: If the task or member is not in scope
            RaciRuleViolation: If the role would break a RACI rule
            ConflictError: If a concurrent write got there first
        """
        matrix_id = access.require_matrix_id()
        task = await self._require_task(matrix_id, data.task_id)
        await self._require_member(access.organization_id, data.member_id)

        verdict = await self.validator.validate_assignment(task.id, data.member_id, data.raci_role)
        self._raise_if_rejected(verdict, task.id)

        async with atomic(self.db, RACI_CONFLICT_MESSAGE, "raci_conflict"):
            assignment = await self.repo.create(
                Assignment(
                    matrix_id=matrix_id,
                    task_id=task.id,
                    member_id=data.member_id,
                    raci_role=data.raci_role,
                    notes=data.notes,
                    workload=data.workload,
                    assigned_by=access.user_id,
                )
            )

        logger.info(
            "assignment_created",
            assignment_id=str(assignment.id),
            task_id=str(task.id),
            raci_role=assignment.raci_role.value,
        )
        await self.audit.record(
            access,
            AuditAction.CREATE_ASSIGNMENT,
            ResourceType.ASSIGNMENT,
            assignment.id,
            {"created": {**_audit_view(assignment), "task_name": task.name}},
        )
        return assignment

    async def update_assignment(
        self,
        access: AccessContext,
        assignment_id: UUID,
        data: AssignmentUpdate,
    ) -> Assignment:
        """Update an assignment's role, notes or workload.

        The RACI gate runs only when the role changes, with the
        assignment itself excluded from the comparison.

        Raises:
            NotFoundError: If the assignment is not a live assignment of the matrix
            RaciRuleViolation: If the new role would break a RACI rule
        """
        assignment = await self.get_assignment(access.require_matrix_id(), assignment_id)
        before = _audit_view(assignment)
        fields = data.model_dump(exclude_unset=True)

        new_role = fields.get("raci_role")
        if new_role is not None and new_role != assignment.raci_role:
            verdict = await self.validator.validate_assignment(
                assignment.task_id,
                assignment.member_id,
                new_role,
                exclude_assignment_id=assignment.id,
            )
            self._raise_if_rejected(verdict, assignment.task_id)

        async with atomic(self.db, RACI_CONFLICT_MESSAGE, "raci_conflict"):
            for field, value in fields.items():
                if field == "raci_role" and value is None:
                    continue
                setattr(assignment, field, value)
            assignment = await self.repo.update(assignment)

        await self.audit.record(
            access,
            AuditAction.UPDATE_ASSIGNMENT,
            ResourceType.ASSIGNMENT,
            assignment.id,
            {"before": before, "after": _audit_view(assignment)},
        )
        return assignment

    async def delete_assignment(self, access: AccessContext, assignment_id: UUID) -> None:
        """Soft-delete an assignment.

        Removing a task's last Accountable is allowed; the task then shows
        up with a NO_ACCOUNTABLE finding in validation.
        """
        assignment = await self.get_assignment(access.require_matrix_id(), assignment_id)
        deleted = _audit_view(assignment)

        if (
            assignment.raci_role == RaciRole.ACCOUNTABLE
            and await self.repo.count_live_accountable(assignment.task_id) == 1
        ):
            logger.warning(
                "last_accountable_removed",
                assignment_id=str(assignment.id),
                task_id=str(assignment.task_id),
            )

        async with atomic(self.db):
            assignment.deleted_at = datetime.now(UTC)
            await self.repo.update(assignment)

        await self.audit.record(
            access,
            AuditAction.DELETE_ASSIGNMENT,
            ResourceType.ASSIGNMENT,
            assignment_id,
            {"deleted": deleted},
        )

    async def bulk_create(
        self,
        access: AccessContext,
        items: list[AssignmentCreate],
    ) -> list[Assignment]:
        """Create several assignments, all or none.

        Each item is checked against the stored assignments and against
        the items before it in the same batch.

        Raises:
            BadRequestError: Listing every failing item when any item fails
        """
        matrix_id = access.require_matrix_id()
        pending: dict[UUID, list[AssignmentRecord]] = {}
        errors: list[dict[str, str | None]] = []

        for item in items:
            problem, rule = await self._check_bulk_item(access, matrix_id, item, pending)
            if problem is not None:
                errors.append(
                    {
                        "task_id": str(item.task_id),
                        "member_id": str(item.member_id),
                        "raci_role": item.raci_role.value,
                        "message": problem,
                        "rule": rule,
                    }
                )
                continue
            pending[item.task_id].append(
                AssignmentRecord(member_id=item.member_id, raci_role=item.raci_role)
            )

        if errors:
            lines = [f"Task {error['task_id']}: {error['message']}" for error in errors]
            logger.info("bulk_assignment_rejected", matrix_id=str(matrix_id), failures=len(errors))
            raise BadRequestError(
                "Validation errors:\n" + "\n".join(lines),
                error_code="bulk_validation_failed",
                details={"errors": errors},
            )

        async with atomic(self.db, RACI_CONFLICT_MESSAGE, "raci_conflict"):
            created = await self.repo.create_many(
                [
                    Assignment(
                        matrix_id=matrix_id,
                        task_id=item.task_id,
                        member_id=item.member_id,
                        raci_role=item.raci_role,
                        notes=item.notes,
                        workload=item.workload,
                        assigned_by=access.user_id,
                    )
                    for item in items
                ]
            )

        logger.info("assignments_bulk_created", matrix_id=str(matrix_id), count=len(created))
        await self.audit.record(
            access,
            AuditAction.BULK_ASSIGN,
            ResourceType.ASSIGNMENT,
            matrix_id,
            {"created": {"count": len(created)}},
        )
        return created

    async def get_member_stats(self, matrix_id: UUID, member_id: UUID) -> MemberAssignmentStats:
        """Count a member's live assignments in the matrix by role and task priority."""
        rows = await self.repo.list_member_assignments(matrix_id, member_id)
        by_role = RoleBreakdown()
        by_priority = PriorityBreakdown()
        for assignment, priority in rows:
            role = assignment.raci_role.value
            setattr(by_role, role, getattr(by_role, role) + 1)
            setattr(by_priority, priority.value, getattr(by_priority, priority.value) + 1)
        return MemberAssignmentStats(
            member_id=member_id,
            total_assignments=len(rows),
            by_role=by_role,
            by_priority=by_priority,
            recorded_workload=sum(assignment.workload or 0 for assignment, _ in rows),
        )

    async def _check_bulk_item(
        self,
        access: AccessContext,
        matrix_id: UUID,
        item: AssignmentCreate,
        pending: dict[UUID, list[AssignmentRecord]],
    ) -> tuple[str | None, str | None]:
        if item.task_id not in pending:
            if await self.tasks.get_in_matrix(item.task_id, matrix_id) is None:
                return "Task not found", None
            pending[item.task_id] = await self.validator.load_live_assignments(item.task_id)
        if await self.members.get_in_organization(item.member_id, access.organization_id) is None:
            return "Member not found", None

        verdict = check_new_assignment(pending[item.task_id], item.member_id, item.raci_role)
        if not verdict.is_valid:
            return verdict.message, verdict.code.value if verdict.code else None
        return None, None

    async def _require_task(self, matrix_id: UUID, task_id: UUID) -> Task:
        task = await self.tasks.get_in_matrix(task_id, matrix_id)
        if task is None:
            raise NotFoundError("Task not found", resource="task", resource_id=str(task_id))
        return task

    async def _require_member(self, organization_id: UUID, member_id: UUID) -> None:
        if await self.members.get_in_organization(member_id, organization_id) is None:
            raise NotFoundError("Member not found", resource="member", resource_id=str(member_id))

    @staticmethod
    def _raise_if_rejected(verdict: AssignmentVerdict, task_id: UUID) -> None:
        if verdict.is_valid:
            return
        rule = verdict.code.value if verdict.code else None
        logger.info("assignment_rejected", task_id=str(task_id), rule=rule)
        raise RaciRuleViolation(verdict.message or "Assignment validation failed", rule=rule)


# Type alias for dependency injection
AssignmentSvc = Annotated[AssignmentService, Depends(AssignmentService)]
