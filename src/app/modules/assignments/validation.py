"""RACI rule checks.

Two kinds of checks live here:

* Whole-task audits (``validate_task_assignments``) report every problem
  in the current state as data. They never block anything; dashboards
  and the grid use them to highlight tasks.
* The pre-commit gate (``check_new_assignment``) only blocks the specific
  violation a write would introduce: a second Accountable or a repeated
  (member, role) pair. Removing the last Accountable or leaving a task
  without a Responsible stays possible so editors are never locked out.

The pure functions work on plain records; ``RaciValidator`` loads those
records from the database.
"""

import enum
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import DBSession
from app.modules.assignments.models import Assignment, RaciRole
from app.modules.tasks.models import Task


class RaciRuleCode(str, enum.Enum):
    NO_ACCOUNTABLE = "NO_ACCOUNTABLE"
    MULTIPLE_ACCOUNTABLE = "MULTIPLE_ACCOUNTABLE"
    DUPLICATE_ASSIGNMENT = "DUPLICATE_ASSIGNMENT"
    NO_RESPONSIBLE = "NO_RESPONSIBLE"
    INVALID_ROLE = "INVALID_ROLE"


ERROR_CODES = (
    RaciRuleCode.NO_ACCOUNTABLE,
    RaciRuleCode.MULTIPLE_ACCOUNTABLE,
    RaciRuleCode.DUPLICATE_ASSIGNMENT,
)
WARNING_CODES = (RaciRuleCode.NO_RESPONSIBLE,)


@dataclass(frozen=True, slots=True)
class AssignmentRecord:
    member_id: UUID
    raci_role: RaciRole
    id: UUID | None = None


@dataclass(frozen=True, slots=True)
class TaskRecord:
    id: UUID
    name: str
    assignments: tuple[AssignmentRecord, ...] = ()


@dataclass(frozen=True, slots=True)
class ValidationFinding:
    task_id: UUID
    task_name: str
    message: str
    code: RaciRuleCode


@dataclass(slots=True)
class ValidationResult:
    is_valid: bool = True
    errors: list[ValidationFinding] = field(default_factory=list)
    warnings: list[ValidationFinding] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class AssignmentVerdict:
    is_valid: bool
    message: str | None = None
    code: RaciRuleCode | None = None


@dataclass(slots=True)
class ValidationSummary:
    total_tasks: int
    error_count: int
    warning_count: int
    errors_by_type: dict[str, int]
    warnings_by_type: dict[str, int]
    is_valid: bool
    errors: list[ValidationFinding]
    warnings: list[ValidationFinding]


@dataclass(slots=True)
class TaskIssues:
    tasks_with_errors: list[UUID]
    tasks_with_warnings: list[UUID]
    details: ValidationResult


def validate_task_assignments(task: TaskRecord) -> ValidationResult:
    """Audit one task against the RACI rules.

    Args:
        task: The task with its live assignments

    Returns:
        Errors and warnings found; valid iff there are no errors
    """
    errors: list[ValidationFinding] = []
    warnings: list[ValidationFinding] = []

    def finding(message: str, code: RaciRuleCode) -> ValidationFinding:
        return ValidationFinding(task_id=task.id, task_name=task.name, message=message, code=code)

    accountable = sum(1 for a in task.assignments if a.raci_role == RaciRole.ACCOUNTABLE)
    if accountable == 0:
        errors.append(
            finding(
                "Task must have exactly one Accountable (A) person",
                RaciRuleCode.NO_ACCOUNTABLE,
            )
        )
    elif accountable > 1:
        errors.append(
            finding(
                f"Task has {accountable} Accountable assignments (must be exactly 1)",
                RaciRuleCode.MULTIPLE_ACCOUNTABLE,
            )
        )

    if not any(a.raci_role == RaciRole.RESPONSIBLE for a in task.assignments):
        warnings.append(
            finding(
                "Task should have at least one Responsible (R) person",
                RaciRuleCode.NO_RESPONSIBLE,
            )
        )

    # The first occurrence of a (member, role) pair is fine; each repeat is reported
    seen: set[tuple[UUID, RaciRole]] = set()
    for assignment in task.assignments:
        key = (assignment.member_id, assignment.raci_role)
        if key in seen:
            errors.append(
                finding(
                    "Duplicate role assignment detected for same member",
                    RaciRuleCode.DUPLICATE_ASSIGNMENT,
                )
            )
        seen.add(key)

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


def merge_results(results: Iterable[ValidationResult]) -> ValidationResult:
    """Concatenate per-task results; warnings never affect validity."""
    merged = ValidationResult()
    for result in results:
        merged.errors.extend(result.errors)
        merged.warnings.extend(result.warnings)
    merged.is_valid = not merged.errors
    return merged


def summarize(total_tasks: int, result: ValidationResult) -> ValidationSummary:
    """Count findings by rule code for a dashboard read."""
    error_counts = Counter(finding.code for finding in result.errors)
    warning_counts = Counter(finding.code for finding in result.warnings)
    return ValidationSummary(
        total_tasks=total_tasks,
        error_count=len(result.errors),
        warning_count=len(result.warnings),
        errors_by_type={code.value: error_counts[code] for code in ERROR_CODES},
        warnings_by_type={code.value: warning_counts[code] for code in WARNING_CODES},
        is_valid=result.is_valid,
        errors=result.errors,
        warnings=result.warnings,
    )


def tasks_with_issues(result: ValidationResult) -> TaskIssues:
    """Distinct task ids carrying errors and warnings, in first-seen order."""
    return TaskIssues(
        tasks_with_errors=list(dict.fromkeys(f.task_id for f in result.errors)),
        tasks_with_warnings=list(dict.fromkeys(f.task_id for f in result.warnings)),
        details=result,
    )


def parse_raci_role(value: str | RaciRole) -> RaciRole | None:
    try:
        return RaciRole(value)
    except ValueError:
        return None


def check_new_assignment(
    existing: Sequence[AssignmentRecord],
    member_id: UUID,
    role: str | RaciRole,
) -> AssignmentVerdict:
    """Decide whether a new (member, role) pair may join a task.

    Args:
        existing: The task's live assignments, minus any being replaced
        member_id: The member to assign
        role: The requested RACI role

    Returns:
        The verdict, with message and rule code when rejected
    """
    raci_role = parse_raci_role(role)
    if raci_role is None:
        return AssignmentVerdict(
            is_valid=False,
            message=f"Invalid RACI role: {role}",
            code=RaciRuleCode.INVALID_ROLE,
        )

    if any(a.member_id == member_id and a.raci_role == raci_role for a in existing):
        return AssignmentVerdict(
            is_valid=False,
            message="This member already has this role assigned to this task",
            code=RaciRuleCode.DUPLICATE_ASSIGNMENT,
        )

    if raci_role == RaciRole.ACCOUNTABLE and any(
        a.raci_role == RaciRole.ACCOUNTABLE for a in existing
    ):
        return AssignmentVerdict(
            is_valid=False,
            message=(
                "Task already has an Accountable person. "
                "Please remove the existing assignment first."
            ),
            code=RaciRuleCode.MULTIPLE_ACCOUNTABLE,
        )

    return AssignmentVerdict(is_valid=True)


class RaciValidator:
    """Run the RACI rules against stored matrices and tasks."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def load_task_records(self, matrix_id: UUID) -> list[TaskRecord]:
        """Load live tasks of a matrix with their live assignments.

        Args:
            matrix_id: The matrix's UUID

        Returns:
            Task records in display order
        """
        task_result = await self.session.execute(
            select(Task.id, Task.name)
            .where(Task.matrix_id == matrix_id, Task.deleted_at.is_(None))
            .order_by(Task.order_index, Task.created_at)
        )
        tasks = task_result.all()

        assignment_result = await self.session.execute(
            select(Assignment.id, Assignment.task_id, Assignment.member_id, Assignment.raci_role)
            .where(Assignment.matrix_id == matrix_id, Assignment.deleted_at.is_(None))
            .order_by(Assignment.assigned_at, Assignment.created_at)
        )
        by_task: dict[UUID, list[AssignmentRecord]] = {}
        for assignment_id, task_id, member_id, raci_role in assignment_result.all():
            by_task.setdefault(task_id, []).append(
                AssignmentRecord(member_id=member_id, raci_role=raci_role, id=assignment_id)
            )

        return [
            TaskRecord(id=task_id, name=name, assignments=tuple(by_task.get(task_id, ())))
            for task_id, name in tasks
        ]

    async def load_live_assignments(
        self,
        task_id: UUID,
        exclude_assignment_id: UUID | None = None,
    ) -> list[AssignmentRecord]:
        """Load a task's live assignments as records."""
        stmt = select(Assignment.id, Assignment.member_id, Assignment.raci_role).where(
            Assignment.task_id == task_id,
            Assignment.deleted_at.is_(None),
        )
        if exclude_assignment_id is not None:
            stmt = stmt.where(Assignment.id != exclude_assignment_id)
        result = await self.session.execute(stmt)
        return [
            AssignmentRecord(member_id=member_id, raci_role=raci_role, id=assignment_id)
            for assignment_id, member_id, raci_role in result.all()
        ]

    async def validate_matrix(self, matrix_id: UUID) -> ValidationResult:
        """Audit every live task in a matrix."""
        records = await self.load_task_records(matrix_id)
        return merge_results(validate_task_assignments(record) for record in records)

    async def validate_task(self, task: Task) -> ValidationResult:
        """Audit a single task."""
        assignments = await self.load_live_assignments(task.id)
        return validate_task_assignments(
            TaskRecord(id=task.id, name=task.name, assignments=tuple(assignments))
        )

    async def validate_assignment(
        self,
        task_id: UUID,
        member_id: UUID,
        role: str | RaciRole,
        exclude_assignment_id: UUID | None = None,
    ) -> AssignmentVerdict:
        """Pre-commit gate for creating or re-roling one assignment.

        This is a read-then-decide check; the partial unique indexes on
        ``assignments`` remain the guard against concurrent writers.

        Args:
            task_id: The task being assigned
            member_id: The member being assigned
            role: The requested RACI role
            exclude_assignment_id: Assignment being updated in place

        Returns:
            The verdict
        """
        if parse_raci_role(role) is None:
            return check_new_assignment((), member_id, role)
        existing = await self.load_live_assignments(task_id, exclude_assignment_id)
        return check_new_assignment(existing, member_id, role)

    async def get_validation_summary(self, matrix_id: UUID) -> ValidationSummary:
        """Totals and per-code counts for one round-trip dashboard read."""
        records = await self.load_task_records(matrix_id)
        result = merge_results(validate_task_assignments(record) for record in records)
        return summarize(len(records), result)

    async def get_tasks_with_issues(self, matrix_id: UUID) -> TaskIssues:
        """Task ids to highlight in the grid."""
        return tasks_with_issues(await self.validate_matrix(matrix_id))


def get_raci_validator(db: DBSession) -> RaciValidator:
    """Dependency that provides the RACI validator."""
    return RaciValidator(db)


Validator = Annotated[RaciValidator, Depends(get_raci_validator)]
