"""Audit logging: best-effort mutation records."""

from app.core.audit.models import AuditLog, ConsultancyAuditLog
from app.core.audit.repos import AuditLogRepo, AuditLogRepository
from app.core.audit.serialization import diff_changes, snapshot
from app.core.audit.service import (
    AuditAction,
    AuditService,
    AuditSink,
    ResourceType,
    get_audit_service,
)


__all__ = [
    "AuditAction",
    "AuditLog",
    "AuditLogRepo",
    "AuditLogRepository",
    "AuditService",
    "AuditSink",
    "ConsultancyAuditLog",
    "ResourceType",
    "diff_changes",
    "get_audit_service",
    "snapshot",
]
