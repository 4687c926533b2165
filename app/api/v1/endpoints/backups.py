from typing import Any, List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api import deps
from app.models.backup import BackupKind
from app.schemas.operations import BackupCreate, BackupDetail, BackupResponse, RestoreRequest
from app.services.backup import BackupService
from app.services.retention import RetentionService

router = APIRouter()

@router.post("/backups")
def create_backup(
    backup_in: Optional[BackupCreate] = None,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    """
    Snapshot manual do catálogo inteiro.
    Sem marcas cadastradas responde 200 com created=false (nada é gravado).
    """
    description = backup_in.description if backup_in else None
    return BackupService(db).create_snapshot(BackupKind.MANUAL, description, admin.get("sub") or "admin")

@router.get("/backups", response_model=List[BackupResponse])
def list_backups(
    limit: Optional[int] = None,
    kind: Optional[str] = None,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    return BackupService(db).list_snapshots(limit, kind)

@router.post("/backups/restore")
def restore_backup(
    restore_in: RestoreRequest,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    return BackupService(db).restore_snapshot(restore_in.backup_id, admin.get("sub") or "admin")

@router.delete("/backups")
def prune_backups(
    keep: Optional[str] = None,
    kind: Optional[str] = None,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    """Mantém apenas os `keep` backups mais recentes (opcionalmente de um tipo)."""
    deleted = RetentionService(db).prune(keep, kind)
    return {"deleted_count": deleted}

@router.get("/backups/{backup_id}", response_model=BackupDetail)
def get_backup(
    backup_id: int,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
) -> Any:
    return BackupService(db).get_snapshot(backup_id)

@router.delete("/backups/{backup_id}")
def delete_backup(
    backup_id: int,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    BackupService(db).delete_snapshot(backup_id)
    return {"message": "Backup removido"}
