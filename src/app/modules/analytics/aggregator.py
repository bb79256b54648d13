"""Workload, bottleneck and completion aggregation.

Pure functions over already-scoped collections: one organization's live
tasks, its active members and their live assignments, optionally narrowed
to a single matrix by the loader. Nothing here touches the database.

An assignment without a recorded workload counts as
``default_workload`` percentage points, so bottleneck math is defined
even when nobody fills in workloads.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from app.modules.analytics.schemas import (
    AssignmentDistribution,
    BottleneckMember,
    CompletionByPriority,
    CompletionMetrics,
    HeatmapCell,
    HeatmapRoles,
    HeatmapRow,
    MemberWorkload,
    OrganizationAnalytics,
    PriorityCompletion,
)
from app.modules.assignments.models import RaciRole
from app.modules.tasks.models import TaskPriority, TaskStatus


UNNAMED_MEMBER = "Unnamed Member"


@dataclass(frozen=True, slots=True)
class TaskFact:
    id: UUID
    status: TaskStatus
    priority: TaskPriority
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class MemberFact:
    id: UUID
    name: str | None
    job_title: str | None

    @property
    def display_name(self) -> str:
        return self.name or UNNAMED_MEMBER


@dataclass(frozen=True, slots=True)
class AssignmentFact:
    task_id: UUID
    member_id: UUID
    raci_role: RaciRole
    workload: int | None
    task_status: TaskStatus
    task_priority: TaskPriority


@dataclass(slots=True)
class AnalyticsScope:
    """The collections one analytics request works on.

    ``members`` holds only ACTIVE members; ``matrix_count`` is 1 when the
    scope was narrowed to a single matrix.
    """

    tasks: list[TaskFact] = field(default_factory=list)
    members: list[MemberFact] = field(default_factory=list)
    assignments: list[AssignmentFact] = field(default_factory=list)
    matrix_count: int = 0


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def completion_rate(completed: int, total: int) -> int:
    """Percentage of completed tasks, 0 when there are no tasks."""
    if total <= 0:
        return 0
    return int(round_half_up(completed / total * 100))


def whole_days(start: datetime, end: datetime) -> int:
    if (start.tzinfo is None) != (end.tzinfo is None):
        start = start.replace(tzinfo=None)
        end = end.replace(tzinfo=None)
    return math.floor((end - start).total_seconds() / 86400)


class AnalyticsAggregator:
    """Aggregations parameterized by workload policy.

    Each method is independent of the others and can be computed on its
    own from an AnalyticsScope.
    """

    def __init__(self, default_workload: int = 25, overload_threshold: int = 80) -> None:
        self.default_workload = default_workload
        self.overload_threshold = overload_threshold

    def workload_of(self, assignment: AssignmentFact) -> int:
        if assignment.workload is None:
            return self.default_workload
        return assignment.workload

    def total_workload(self, assignments: Iterable[AssignmentFact]) -> int:
        return sum(self.workload_of(a) for a in assignments)

    def _by_member(self, scope: AnalyticsScope) -> dict[UUID, list[AssignmentFact]]:
        grouped: dict[UUID, list[AssignmentFact]] = {member.id: [] for member in scope.members}
        for assignment in scope.assignments:
            if assignment.member_id in grouped:
                grouped[assignment.member_id].append(assignment)
        return grouped

    def organization_summary(self, scope: AnalyticsScope) -> OrganizationAnalytics:
        """Headline KPIs.

        Only assignments of active members count towards the completion
        rate, the role distribution and the overloaded-member count.
        """
        by_member = self._by_member(scope)
        assignments = [a for member_assignments in by_member.values() for a in member_assignments]

        completed_task_ids = {
            a.task_id for a in assignments if a.task_status == TaskStatus.COMPLETED
        }

        distribution = AssignmentDistribution()
        for assignment in assignments:
            role = assignment.raci_role.value
            setattr(distribution, role, getattr(distribution, role) + 1)

        overloaded = sum(
            1
            for member_assignments in by_member.values()
            if member_assignments
            and self.total_workload(member_assignments) > self.overload_threshold
        )

        return OrganizationAnalytics(
            total_tasks=len(scope.tasks),
            total_members=len(scope.members),
            total_matrices=scope.matrix_count,
            completion_rate=completion_rate(len(completed_task_ids), len(scope.tasks)),
            overloaded_members=overloaded,
            assignment_distribution=distribution,
        )

    def member_workload_distribution(self, scope: AnalyticsScope) -> list[MemberWorkload]:
        """R/A/C/I counts, summed workload and open-task count per active member."""
        by_member = self._by_member(scope)
        rows: list[MemberWorkload] = []
        for member in scope.members:
            assignments = by_member[member.id]
            counts = _role_counts(assignments)
            rows.append(
                MemberWorkload(
                    member_id=member.id,
                    member_name=member.display_name,
                    job_title=member.job_title,
                    responsible=counts[RaciRole.RESPONSIBLE],
                    accountable=counts[RaciRole.ACCOUNTABLE],
                    consulted=counts[RaciRole.CONSULTED],
                    informed=counts[RaciRole.INFORMED],
                    total_workload=self.total_workload(assignments),
                    active_task_count=sum(
                        1 for a in assignments if a.task_status != TaskStatus.COMPLETED
                    ),
                )
            )
        return rows

    def bottlenecks(
        self,
        scope: AnalyticsScope,
        threshold: float | None = None,
    ) -> list[BottleneckMember]:
        """Members whose workload strictly exceeds ``threshold``, heaviest first.

        Args:
            scope: The analytics scope
            threshold: Workload cut-off; defaults to the overload threshold

        Returns:
            Overloaded members sorted by workload, descending
        """
        limit = self.overload_threshold if threshold is None else threshold
        by_member = self._by_member(scope)
        rows: list[BottleneckMember] = []
        for member in scope.members:
            assignments = by_member[member.id]
            workload = self.total_workload(assignments)
            if workload <= limit:
                continue
            rows.append(
                BottleneckMember(
                    member_id=member.id,
                    member_name=member.display_name,
                    job_title=member.job_title,
                    total_assignments=len(assignments),
                    critical_assignments=sum(
                        1 for a in assignments if a.task_priority == TaskPriority.CRITICAL
                    ),
                    workload_percentage=workload,
                    blocked_task_count=sum(
                        1 for a in assignments if a.task_status == TaskStatus.BLOCKED
                    ),
                )
            )
        rows.sort(key=lambda row: row.workload_percentage, reverse=True)
        return rows

    def completion_metrics(self, scope: AnalyticsScope) -> CompletionMetrics:
        """Status counts, completion rate, average time to complete, per-priority totals."""
        tasks = scope.tasks
        status_counts = {status: 0 for status in TaskStatus}
        for task in tasks:
            status_counts[task.status] += 1

        completed = [task for task in tasks if task.status == TaskStatus.COMPLETED]
        average: float | None = None
        if completed:
            # updated_at stands in for the completion time
            days = [whole_days(task.created_at, task.updated_at) for task in completed]
            average = round_half_up(sum(days) / len(days), 1)

        by_priority = {priority: PriorityCompletion() for priority in TaskPriority}
        for task in tasks:
            bucket = by_priority[task.priority]
            bucket.total += 1
            if task.status == TaskStatus.COMPLETED:
                bucket.completed += 1

        return CompletionMetrics(
            total_tasks=len(tasks),
            completed_tasks=status_counts[TaskStatus.COMPLETED],
            in_progress_tasks=status_counts[TaskStatus.IN_PROGRESS],
            not_started_tasks=status_counts[TaskStatus.NOT_STARTED],
            blocked_tasks=status_counts[TaskStatus.BLOCKED],
            on_hold_tasks=status_counts[TaskStatus.ON_HOLD],
            completion_rate=completion_rate(len(completed), len(tasks)),
            average_completion_time=average,
            by_priority=CompletionByPriority(
                CRITICAL=by_priority[TaskPriority.CRITICAL],
                HIGH=by_priority[TaskPriority.HIGH],
                MEDIUM=by_priority[TaskPriority.MEDIUM],
                LOW=by_priority[TaskPriority.LOW],
            ),
        )

    def role_heatmap(self, scope: AnalyticsScope) -> list[HeatmapRow]:
        """Member x role grid of counts and summed workload."""
        by_member = self._by_member(scope)
        rows: list[HeatmapRow] = []
        for member in scope.members:
            assignments = by_member[member.id]
            cells = {role: HeatmapCell() for role in RaciRole}
            for assignment in assignments:
                cell = cells[assignment.raci_role]
                cell.count += 1
                cell.percentage += self.workload_of(assignment)
            rows.append(
                HeatmapRow(
                    member_id=member.id,
                    member_name=member.display_name,
                    job_title=member.job_title,
                    roles=HeatmapRoles(
                        RESPONSIBLE=cells[RaciRole.RESPONSIBLE],
                        ACCOUNTABLE=cells[RaciRole.ACCOUNTABLE],
                        CONSULTED=cells[RaciRole.CONSULTED],
                        INFORMED=cells[RaciRole.INFORMED],
                    ),
                    total_workload=self.total_workload(assignments),
                )
            )
        return rows


def _role_counts(assignments: Iterable[AssignmentFact]) -> dict[RaciRole, int]:
    counts = {role: 0 for role in RaciRole}
    for assignment in assignments:
        counts[assignment.raci_role] += 1
    return counts
