"""Pydantic schemas for analytics responses."""

from uuid import UUID

from pydantic import BaseModel


class AssignmentDistribution(BaseModel):
    RESPONSIBLE: int = 0
    ACCOUNTABLE: int = 0
    CONSULTED: int = 0
    INFORMED: int = 0


class OrganizationAnalytics(BaseModel):
    """Headline numbers for an organization or a single matrix."""

    total_tasks: int
    total_members: int
    total_matrices: int
    completion_rate: int
    overloaded_members: int
    assignment_distribution: AssignmentDistribution


class MemberWorkload(BaseModel):
    """Per-member assignment counts and summed workload."""

    member_id: UUID
    member_name: str
    job_title: str | None
    responsible: int
    accountable: int
    consulted: int
    informed: int
    total_workload: int
    active_task_count: int


class BottleneckMember(BaseModel):
    """A member whose summed workload exceeds the threshold."""

    member_id: UUID
    member_name: str
    job_title: str | None
    total_assignments: int
    critical_assignments: int
    workload_percentage: int
    blocked_task_count: int


class PriorityCompletion(BaseModel):
    total: int = 0
    completed: int = 0


class CompletionByPriority(BaseModel):
    CRITICAL: PriorityCompletion
    HIGH: PriorityCompletion
    MEDIUM: PriorityCompletion
    LOW: PriorityCompletion


class CompletionMetrics(BaseModel):
    """Task status counts, completion rate and average completion time.

    ``average_completion_time`` is in days, measured from creation to the
    last update of each completed task; None when nothing is completed.
    """

    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    not_started_tasks: int
    blocked_tasks: int
    on_hold_tasks: int
    completion_rate: int
    average_completion_time: float | None
    by_priority: CompletionByPriority


class HeatmapCell(BaseModel):
    count: int = 0
    percentage: int = 0


class HeatmapRoles(BaseModel):
    RESPONSIBLE: HeatmapCell
    ACCOUNTABLE: HeatmapCell
    CONSULTED: HeatmapCell
    INFORMED: HeatmapCell


class HeatmapRow(BaseModel):
    """One member row of the member x role heatmap."""

    member_id: UUID
    member_name: str
    job_title: str | None
    roles: HeatmapRoles
    total_workload: int
