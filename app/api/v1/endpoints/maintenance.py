from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api import deps
from app.schemas.operations import AuditLogResponse, AuditRollbackRequest
from app.services.audit import AuditService
from app.services.integrity import IntegrityService

router = APIRouter()

@router.get("/audit", response_model=List[AuditLogResponse])
def list_audit_logs(
    limit: int = 100,
    collection: Optional[str] = None,
    action: Optional[str] = None,
    document_id: Optional[int] = None,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    return AuditService(db).list(limit, collection, action, document_id)

@router.post("/audit/rollback")
def rollback_document(
    rollback_in: AuditRollbackRequest,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    """Volta um documento ao estado anterior de uma versão do histórico."""
    return AuditService(db).rollback(
        rollback_in.collection, rollback_in.document_id, rollback_in.version, admin.get("sub") or "admin"
    )

@router.get("/integrity")
def check_integrity(
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    return IntegrityService(db).check()

@router.post("/integrity/repair")
def repair_integrity(
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    return IntegrityService(db, admin.get("sub") or "admin").repair()
