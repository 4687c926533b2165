from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api import deps
from app.schemas.operations import BulkPriceRequest, StagePlusPricingRequest
from app.services.pricing import StagePricingService

router = APIRouter()

@router.get("/stage-plus-pricing")
def preview_stage_plus_pricing(
    level: str = "all",
    target_id: Optional[str] = None,
    group_id: Optional[str] = None,
    data_type: str = "price",
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    """Valores atuais de Stage 1 / Stage 2 de um motor de exemplo do escopo."""
    return StagePricingService(db).preview(level, target_id, group_id, data_type)

@router.put("/stage-plus-pricing")
def update_stage_plus_pricing(
    pricing_in: StagePlusPricingRequest,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    """
    Stage 1+ = Stage 1 + p1%, Stage 2+ = Stage 2 + p2% em todos os motores do escopo.
    Antes grava um backup automático (AUTO_BACKUP_ON_BULK_UPDATE).
    """
    service = StagePricingService(db, admin.get("sub") or "admin")
    return service.derive_plus_pricing(
        pricing_in.stage1_plus_percentage,
        pricing_in.stage2_plus_percentage,
        level=pricing_in.level,
        target_id=pricing_in.target_id,
        group_id=pricing_in.group_id,
        data_type=pricing_in.data_type,
    )

@router.put("/bulk-price")
def bulk_update_prices(
    price_in: BulkPriceRequest,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    service = StagePricingService(db, admin.get("sub") or "admin")
    return service.bulk_update_prices(
        price_in.level,
        price_in.target_id,
        price_in.update_type,
        price_data=price_in.price_data,
        group_id=price_in.group_id,
    )
