from typing import Any, List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api import deps
from app.schemas.catalog import (
    BrandResponse, GroupResponse, ModelResponse, TypeResponse, EngineResponse, StageResponse
)
from app.services.catalog import CatalogService

router = APIRouter()

# Rotas públicas (sem autenticação), usadas pelo site

@router.get("/brands", response_model=List[BrandResponse])
def list_brands(db: Session = Depends(deps.get_db)) -> Any:
    return CatalogService(db).list_brands()

@router.get("/groups", response_model=List[GroupResponse])
def list_groups(brand_id: Optional[str] = None, db: Session = Depends(deps.get_db)) -> Any:
    return CatalogService(db).list_groups(brand_id)

@router.get("/models", response_model=List[ModelResponse])
def list_models(
    brand_id: Optional[str] = None,
    group_id: Optional[str] = None,
    db: Session = Depends(deps.get_db)
) -> Any:
    return CatalogService(db).list_models(brand_id, group_id)

@router.get("/types", response_model=List[TypeResponse])
def list_types(model_id: Optional[str] = None, db: Session = Depends(deps.get_db)) -> Any:
    return CatalogService(db).list_types(model_id)

@router.get("/engines", response_model=List[EngineResponse])
def list_engines(type_id: Optional[str] = None, db: Session = Depends(deps.get_db)) -> Any:
    return CatalogService(db).list_engines(type_id)

@router.get("/engines/{engine_id}/breadcrumb")
def engine_breadcrumb(engine_id: int, db: Session = Depends(deps.get_db)) -> Any:
    return CatalogService(db).breadcrumb(engine_id)

@router.get("/stages", response_model=List[StageResponse])
def list_stages(engine_id: Optional[str] = None, db: Session = Depends(deps.get_db)) -> Any:
    return CatalogService(db).list_stages(engine_id)

@router.get("/stages/{stage_id}", response_model=StageResponse)
def get_stage(stage_id: int, db: Session = Depends(deps.get_db)) -> Any:
    return CatalogService(db).get("stages", stage_id)
