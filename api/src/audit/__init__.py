"""Audit log of user-visible changes.

Note: Router is not exported here to avoid circular imports.
Import directly from src.audit.router when needed.
"""

from .models import AUDIT_TABLES_CQL, AuditAction, ChangeLog, TargetType
from .service import AuditService


__all__ = [
    "AUDIT_TABLES_CQL",
    "AuditAction",
    "AuditService",
    "ChangeLog",
    "TargetType",
]
