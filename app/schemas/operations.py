from datetime import datetime
from pydantic import BaseModel
from typing import Any, Dict, List, Optional

# Entradas tipadas como Any: a validação fica nos serviços (400 em vez de 422)

class MoveRequest(BaseModel):
    item_type: Optional[str] = None
    item_id: Any = None
    target_parent_id: Any = None
    target_parent_type: Optional[str] = None

class MoveResponse(BaseModel):
    message: str
    item_type: str
    item_id: int
    target_parent_type: str
    target_parent_id: int
    updated: Dict[str, Optional[int]]
    descendants_updated: Dict[str, int]

class CascadeDeleteResponse(BaseModel):
    kind: str
    id: int
    deleted_counts: Dict[str, int]

# --- PREÇOS ---

class StagePlusPricingRequest(BaseModel):
    stage1_plus_percentage: Any = None
    stage2_plus_percentage: Any = None
    level: str = "all"
    target_id: Any = None
    group_id: Any = None
    data_type: str = "price"

class BulkPriceRequest(BaseModel):
    level: Optional[str] = None
    target_id: Any = None
    group_id: Any = None
    update_type: Optional[str] = None
    price_data: Optional[Dict[str, Any]] = None

# --- BACKUPS ---

class BackupCreate(BaseModel):
    description: Optional[str] = None

class RestoreRequest(BaseModel):
    backup_id: Any = None

class BackupResponse(BaseModel):
    id: int
    timestamp: datetime
    kind: str
    description: Optional[str] = None
    actor: Optional[str] = None
    counts: Dict[str, int]

    class Config:
        from_attributes = True

class BackupDetail(BackupResponse):
    data: Dict[str, List[Dict[str, Any]]]

# --- AUDITORIA ---

class AuditLogResponse(BaseModel):
    id: int
    collection: str
    document_id: int
    action: str
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    changes: Optional[Dict[str, Any]] = None
    changed_by: Optional[str] = None
    changed_at: Optional[datetime] = None
    version: int
    details: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True

class AuditRollbackRequest(BaseModel):
    collection: Any = None
    document_id: Any = None
    version: Any = None
