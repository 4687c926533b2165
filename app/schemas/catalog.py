from pydantic import BaseModel
from typing import Optional

# --- MARCAS ---

class BrandBase(BaseModel):
    name: str
    logo: Optional[str] = None
    is_test: bool = False

class BrandCreate(BrandBase):
    pass

class BrandUpdate(BaseModel):
    name: Optional[str] = None
    logo: Optional[str] = None
    is_test: Optional[bool] = None

class BrandResponse(BrandBase):
    id: int
    slug: Optional[str] = None

    class Config:
        from_attributes = True

# --- GRUPOS ---

class GroupBase(BaseModel):
    name: str
    is_performance: bool = False
    order: int = 0
    color: Optional[str] = None
    icon: Optional[str] = None
    tagline: Optional[str] = None
    logo: Optional[str] = None

class GroupCreate(GroupBase):
    brand_id: int

# Sem brand_id: grupo não muda de marca
class GroupUpdate(BaseModel):
    name: Optional[str] = None
    is_performance: Optional[bool] = None
    order: Optional[int] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    tagline: Optional[str] = None
    logo: Optional[str] = None

class GroupResponse(GroupBase):
    id: int
    slug: Optional[str] = None
    brand_id: int

    class Config:
        from_attributes = True

# --- MODELOS ---

class ModelCreate(BaseModel):
    name: str
    brand_id: Optional[int] = None
    group_id: Optional[int] = None

class NameUpdate(BaseModel):
    name: Optional[str] = None

class ModelResponse(BaseModel):
    id: int
    name: str
    slug: Optional[str] = None
    brand_id: int
    group_id: Optional[int] = None

    class Config:
        from_attributes = True

# --- TIPOS / GERAÇÕES ---

class TypeCreate(BaseModel):
    name: str
    model_id: int

    class Config:
        protected_namespaces = ()

class TypeResponse(BaseModel):
    id: int
    name: str
    slug: Optional[str] = None
    model_id: int
    brand_id: int

    class Config:
        from_attributes = True
        protected_namespaces = ()

# --- MOTORES ---

class EngineBase(BaseModel):
    name: str
    code: Optional[str] = None
    fuel: Optional[str] = None
    power: Optional[int] = None
    start_year: Optional[int] = None
    end_year: Optional[str] = None

class EngineCreate(EngineBase):
    type_id: int

class EngineUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    fuel: Optional[str] = None
    power: Optional[int] = None
    start_year: Optional[int] = None
    end_year: Optional[str] = None

class EngineResponse(EngineBase):
    id: int
    slug: Optional[str] = None
    type_id: int
    model_id: int

    class Config:
        from_attributes = True
        protected_namespaces = ()

# --- STAGES ---

class StageBase(BaseModel):
    stage_name: str
    stock_hp: Optional[int] = None
    tuned_hp: Optional[int] = None
    stock_nm: Optional[int] = None
    tuned_nm: Optional[int] = None
    price: Optional[int] = None
    ecu_unlock: bool = False
    cpc_upgrade: bool = False
    notes: Optional[str] = None

# gain_hp / gain_nm não são aceitos: sempre calculados
class StageCreate(StageBase):
    engine_id: int

class StageUpdate(BaseModel):
    stage_name: Optional[str] = None
    stock_hp: Optional[int] = None
    tuned_hp: Optional[int] = None
    stock_nm: Optional[int] = None
    tuned_nm: Optional[int] = None
    price: Optional[int] = None
    ecu_unlock: Optional[bool] = None
    cpc_upgrade: Optional[bool] = None
    notes: Optional[str] = None

class StageResponse(StageBase):
    id: int
    engine_id: int
    gain_hp: Optional[int] = None
    gain_nm: Optional[int] = None

    class Config:
        from_attributes = True
