"""Audit sink for mutation records.

``AuditService.record`` is a best-effort side channel. It is called after
the mutation has committed. Inside a request the write is handed to
FastAPI background tasks and runs once the response has been sent; outside
one it is awaited in place. Either way it uses its own short-lived session
and never raises: a failed audit write is logged and dropped, so it can
neither fail nor roll back the operation it describes.
"""

from typing import Annotated, Any

import structlog
from fastapi import BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.audit.models import AuditLog, ConsultancyAuditLog
from app.core.database.session import get_session_factory
from app.core.permissions.context import AccessContext


log = structlog.get_logger()


class AuditAction:
    """Action names written to the audit log."""

    CREATE_ORGANIZATION = "CREATE_ORGANIZATION"
    UPDATE_ORGANIZATION = "UPDATE_ORGANIZATION"
    ARCHIVE_ORGANIZATION = "ARCHIVE_ORGANIZATION"
    CREATE_MEMBER = "CREATE_MEMBER"
    UPDATE_MEMBER = "UPDATE_MEMBER"
    REMOVE_MEMBER = "REMOVE_MEMBER"
    CREATE_PROJECT = "CREATE_PROJECT"
    UPDATE_PROJECT = "UPDATE_PROJECT"
    ARCHIVE_PROJECT = "ARCHIVE_PROJECT"
    RESTORE_PROJECT = "RESTORE_PROJECT"
    CREATE_MATRIX = "CREATE_MATRIX"
    UPDATE_MATRIX = "UPDATE_MATRIX"
    ARCHIVE_MATRIX = "ARCHIVE_MATRIX"
    RESTORE_MATRIX = "RESTORE_MATRIX"
    DELETE_MATRIX = "DELETE_MATRIX"
    DUPLICATE_MATRIX = "DUPLICATE_MATRIX"
    CREATE_TASK_GROUP = "CREATE_TASK_GROUP"
    CREATE_TASK = "CREATE_TASK"
    UPDATE_TASK = "UPDATE_TASK"
    DELETE_TASK = "DELETE_TASK"
    REORDER_TASKS = "REORDER_TASKS"
    BULK_CREATE_TASKS = "BULK_CREATE_TASKS"
    CREATE_ASSIGNMENT = "CREATE_ASSIGNMENT"
    UPDATE_ASSIGNMENT = "UPDATE_ASSIGNMENT"
    DELETE_ASSIGNMENT = "DELETE_ASSIGNMENT"
    BULK_ASSIGN = "BULK_ASSIGN"


class ResourceType:
    """Resource types written to the audit log."""

    ORGANIZATION = "ORGANIZATION"
    MEMBER = "MEMBER"
    PROJECT = "PROJECT"
    MATRIX = "MATRIX"
    TASK_GROUP = "TASK_GROUP"
    TASK = "TASK"
    ASSIGNMENT = "ASSIGNMENT"


class AuditService:
    """Best-effort writer of audit records.

    Use ``record`` after a mutation has been committed. It returns
    nothing the caller can depend on.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        background: BackgroundTasks | None = None,
    ) -> None:
        """Initialize the audit sink.

        Args:
            session_factory: Factory for the sink's own sessions
            background: Request background tasks; when set, writes are
                deferred until the response has gone out
        """
        self.session_factory = session_factory
        self.background = background

    async def record(
        self,
        access: AccessContext,
        action: str,
        resource_type: str,
        resource_id: Any = None,
        changes: dict[str, Any] | None = None,
    ) -> None:
        """Emit an audit record for a committed mutation.

        The write is scheduled on the request's background tasks when there
        are any, otherwise awaited here. Failures are logged as
        ``audit_write_failed`` and swallowed.

        Args:
            access: Access context of the caller who made the change
            action: Action name (see AuditAction)
            resource_type: Resource type (see ResourceType)
            resource_id: ID of the affected resource
            changes: Snapshot or before/after diff of the change
        """
        if self.background is not None:
            self.background.add_task(
                self._write, access, action, resource_type, resource_id, changes
            )
            return
        await self._write(access, action, resource_type, resource_id, changes)

    async def _write(
        self,
        access: AccessContext,
        action: str,
        resource_type: str,
        resource_id: Any,
        changes: dict[str, Any] | None,
    ) -> None:
        resource_ref = str(resource_id) if resource_id is not None else None
        try:
            async with self.session_factory() as session:
                session.add(
                    AuditLog(
                        organization_id=access.organization_id,
                        user_id=access.user_id,
                        action=action,
                        resource_type=resource_type,
                        resource_id=resource_ref,
                        request_id=access.request_id,
                        changes=changes,
                    )
                )
                if access.is_consultancy_access:
                    session.add(
                        ConsultancyAuditLog(
                            consultancy_user_id=access.user_id,
                            client_organization_id=access.organization_id,
                            action=action,
                            resource_type=resource_type,
                            resource_id=resource_ref,
                            changes=changes,
                        )
                    )
                await session.commit()
        except Exception:
            log.exception(
                "audit_write_failed",
                action=action,
                resource_type=resource_type,
                resource_id=resource_ref,
                organization_id=str(access.organization_id),
            )
            return

        log.info(
            "audit_log_created",
            action=action,
            resource_type=resource_type,
            resource_id=resource_ref,
            consultancy=access.is_consultancy_access,
        )


def get_audit_service(
    session_factory: Annotated[
        async_sessionmaker[AsyncSession], Depends(get_session_factory)
    ],
    background_tasks: BackgroundTasks,
) -> AuditService:
    """Dependency that provides the audit sink, bound to the request's background tasks."""
    return AuditService(session_factory, background_tasks)


AuditSink = Annotated[AuditService, Depends(get_audit_service)]
