from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api import deps
from app.schemas.catalog import (
    BrandCreate, BrandUpdate, BrandResponse,
    GroupCreate, GroupUpdate, GroupResponse,
    ModelCreate, NameUpdate, ModelResponse,
    TypeCreate, TypeResponse,
    EngineCreate, EngineUpdate, EngineResponse,
    StageCreate, StageUpdate, StageResponse,
)
from app.schemas.operations import CascadeDeleteResponse, MoveRequest, MoveResponse
from app.services.cascade import CascadeService
from app.services.catalog import CatalogService

router = APIRouter()

def _actor(admin: dict) -> str:
    return admin.get("sub") or "admin"

# --- RESUMO ---

@router.get("/stats")
def catalog_stats(
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    """Total de registros por coleção."""
    return CatalogService(db).counts()

# --- MARCAS ---

@router.post("/brands", response_model=BrandResponse)
def create_brand(
    brand_in: BrandCreate,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    return CatalogService(db, _actor(admin)).create("brand", brand_in.model_dump())

@router.put("/brands/{brand_id}", response_model=BrandResponse)
def update_brand(
    brand_id: int,
    brand_in: BrandUpdate,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    return CatalogService(db, _actor(admin)).update("brand", brand_id, brand_in.model_dump(exclude_unset=True))

# --- GRUPOS ---

@router.post("/groups", response_model=GroupResponse)
def create_group(
    group_in: GroupCreate,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    return CatalogService(db, _actor(admin)).create("group", group_in.model_dump())

@router.put("/groups/{group_id}", response_model=GroupResponse)
def update_group(
    group_id: int,
    group_in: GroupUpdate,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    return CatalogService(db, _actor(admin)).update("group", group_id, group_in.model_dump(exclude_unset=True))

# --- MODELOS ---

@router.post("/models", response_model=ModelResponse)
def create_model(
    model_in: ModelCreate,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    return CatalogService(db, _actor(admin)).create("model", model_in.model_dump())

@router.put("/models/{model_id}", response_model=ModelResponse)
def update_model(
    model_id: int,
    model_in: NameUpdate,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    return CatalogService(db, _actor(admin)).update("model", model_id, model_in.model_dump(exclude_unset=True))

# --- TIPOS ---

@router.post("/types", response_model=TypeResponse)
def create_type(
    type_in: TypeCreate,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    return CatalogService(db, _actor(admin)).create("type", type_in.model_dump())

@router.put("/types/{type_id}", response_model=TypeResponse)
def update_type(
    type_id: int,
    type_in: NameUpdate,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    return CatalogService(db, _actor(admin)).update("type", type_id, type_in.model_dump(exclude_unset=True))

# --- MOTORES ---

@router.post("/engines", response_model=EngineResponse)
def create_engine(
    engine_in: EngineCreate,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    return CatalogService(db, _actor(admin)).create("engine", engine_in.model_dump())

@router.put("/engines/{engine_id}", response_model=EngineResponse)
def update_engine(
    engine_id: int,
    engine_in: EngineUpdate,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    return CatalogService(db, _actor(admin)).update("engine", engine_id, engine_in.model_dump(exclude_unset=True))

# --- STAGES ---

@router.post("/stages", response_model=StageResponse)
def create_stage(
    stage_in: StageCreate,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    return CatalogService(db, _actor(admin)).create("stage", stage_in.model_dump())

@router.put("/stages/{stage_id}", response_model=StageResponse)
def update_stage(
    stage_id: int,
    stage_in: StageUpdate,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    return CatalogService(db, _actor(admin)).update("stage", stage_id, stage_in.model_dump(exclude_unset=True))

@router.delete("/stages/{stage_id}")
def delete_stage(
    stage_id: int,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    return CatalogService(db, _actor(admin)).delete_stage(stage_id)

# --- MOVIMENTAÇÃO ---

@router.post("/move", response_model=MoveResponse)
def move_item(
    move_in: MoveRequest,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    """
    Move um modelo (para grupo ou marca), um tipo (para outro modelo) ou
    um motor (para outro tipo). Os descendentes são atualizados junto.
    """
    return CascadeService(db, _actor(admin)).move(
        move_in.item_type, move_in.item_id, move_in.target_parent_id, move_in.target_parent_type
    )

# --- EXCLUSÃO EM CASCATA ---
# Registrado depois das rotas de /admin/backups (ver router.py)

@router.delete("/{kind}", response_model=CascadeDeleteResponse)
def cascade_delete(
    kind: str,
    id: Optional[str] = None,
    db: Session = Depends(deps.get_db),
    admin: dict = Depends(deps.get_current_active_admin)
):
    """
    DELETE /admin/{brand|group|model|type|engine}?id=N
    Apaga a entidade e todos os descendentes. Id inexistente devolve contagens zeradas.
    """
    return CascadeService(db, _actor(admin)).delete(kind, id)
