"""Read access to the audit log."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select

from app.api.dependencies import DBSession
from app.core.audit.models import AuditLog


class AuditLogRepository:
    """Queries over an organization's audit entries."""

    def __init__(self, session: DBSession) -> None:
        self.session = session

    async def list_for_organization(
        self,
        organization_id: UUID,
        user_id: UUID | None = None,
        resource_type: str | None = None,
        resource_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditLog]:
        """List audit entries, newest first.

        Args:
            organization_id: Organization whose log is read
            user_id: Only entries by this user
            resource_type: Only entries for this resource type
            resource_id: Only entries for this resource
            limit: Maximum number of entries
            offset: Number of entries to skip

        Returns:
            Matching audit entries
        """
        stmt = select(AuditLog).where(AuditLog.organization_id == organization_id)
        if user_id:
            stmt = stmt.where(AuditLog.user_id == user_id)
        if resource_type:
            stmt = stmt.where(AuditLog.resource_type == resource_type)
        if resource_id:
            stmt = stmt.where(AuditLog.resource_id == resource_id)
        stmt = stmt.order_by(AuditLog.created_at.desc()).limit(limit).offset(offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


AuditLogRepo = Annotated[AuditLogRepository, Depends(AuditLogRepository)]
