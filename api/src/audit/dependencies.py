"""FastAPI dependencies for the audit log."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import AuditService


async def get_audit_service(request: Request) -> AuditService:
    """Get audit service from app state."""
    service = getattr(request.app.state, "audit_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Audit service unavailable",
        )
    return service


AuditServiceDep = Annotated[AuditService, Depends(get_audit_service)]
