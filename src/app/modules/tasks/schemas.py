"""Pydantic schemas for task operations."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import MAX_BULK_ITEMS, MAX_DESCRIPTION_LENGTH, MAX_NAME_LENGTH
from app.modules.tasks.models import Task, TaskPriority, TaskStatus


class TaskCreate(BaseModel):
    """Schema for creating a task.

    ``order_index`` defaults to one past the highest live index in the
    matrix.
    """

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    parent_task_id: UUID | None = None
    status: TaskStatus = TaskStatus.NOT_STARTED
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    estimated_hours: Decimal | None = Field(None, ge=0, le=10000)
    order_index: int | None = Field(None, ge=0)
    group_ids: list[UUID] = Field(default_factory=list)


class TaskUpdate(BaseModel):
    """Schema for updating a task.

    Sending ``parent_task_id: null`` detaches the task from its parent;
    ``group_ids`` replaces the task's group memberships when supplied.
    """

    name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    parent_task_id: UUID | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    estimated_hours: Decimal | None = Field(None, ge=0, le=10000)
    order_index: int | None = Field(None, ge=0)
    group_ids: list[UUID] | None = None


class BulkTaskItem(BaseModel):
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    parent_task_id: UUID | None = None
    status: TaskStatus = TaskStatus.NOT_STARTED
    priority: TaskPriority = TaskPriority.MEDIUM


class BulkTaskCreate(BaseModel):
    tasks: list[BulkTaskItem] = Field(..., min_length=1, max_length=MAX_BULK_ITEMS)


class TaskReorder(BaseModel):
    """New display order: each task's index becomes its position in the list."""

    task_ids: list[UUID] = Field(..., min_length=1)


class TaskResponse(BaseModel):
    """Schema for task responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    matrix_id: UUID
    name: str
    description: str | None
    parent_task_id: UUID | None
    status: TaskStatus
    priority: TaskPriority
    order_index: int
    due_date: datetime | None
    estimated_hours: Decimal | None
    completed_at: datetime | None
    deleted_at: datetime | None
    created_at: datetime
    updated_at: datetime
    group_ids: list[UUID] = Field(default_factory=list)

    @classmethod
    def build(cls, task: Task, group_ids: list[UUID] | None = None) -> "TaskResponse":
        response = cls.model_validate(task)
        response.group_ids = list(group_ids or [])
        return response


class TaskNode(TaskResponse):
    """A task with its live children, nested."""

    children: list["TaskNode"] = Field(default_factory=list)
