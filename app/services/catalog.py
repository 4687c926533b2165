import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import InvalidRequest, NotFound, ParentNotFound
from app.core.locks import structural_lock
from app.services.audit import AuditService
from app.services.hierarchy import HierarchyStore, parse_id, slugify, transaction

logger = logging.getLogger(__name__)

# Campos editáveis por tipo (fora nome/slug). Pais só mudam via move.
EDITABLE_FIELDS = {
    "brands": ("logo", "is_test"),
    "groups": ("is_performance", "order", "color", "icon", "tagline", "logo"),
    "models": (),
    "types": (),
    "engines": ("code", "fuel", "power", "start_year", "end_year"),
    "stages": (
        "stage_name", "stock_hp", "tuned_hp", "stock_nm", "tuned_nm",
        "price", "ecu_unlock", "cpc_upgrade", "notes",
    ),
}


def required_name(values: Dict[str, Any], field: str = "name") -> str:
    name = values.get(field)
    if not isinstance(name, str) or not name.strip():
        raise InvalidRequest(f"O campo '{field}' é obrigatório")
    return name.strip()


class CatalogService:
    """
    CRUD do catálogo usado pelo painel admin.

    Os campos de ancestral (brand_id do tipo, model_id do motor, brand_id do
    modelo em grupo) nunca vêm da entrada: são copiados do pai na criação.
    """

    def __init__(self, db: Session, actor: str = "admin"):
        self.db = db
        self.actor = actor
        self.store = HierarchyStore(db)
        self.audit = AuditService(db)

    # --- Leitura pública ---

    def list_brands(self) -> list:
        return self.store.find_many("brands", order_by="name")

    def list_groups(self, brand_id: Any) -> list:
        return self.store.find_many("groups", order_by="order", brand_id=parse_id(brand_id, "brand_id"))

    def list_models(self, brand_id: Any = None, group_id: Any = None) -> list:
        filters = {}
        if brand_id not in (None, ""):
            filters["brand_id"] = parse_id(brand_id, "brand_id")
        if group_id not in (None, ""):
            filters["group_id"] = parse_id(group_id, "group_id")
        if not filters:
            raise InvalidRequest("Informe brand_id ou group_id")
        return self.store.find_many("models", order_by="name", **filters)

    def list_types(self, model_id: Any) -> list:
        return self.store.find_many("types", order_by="name", model_id=parse_id(model_id, "model_id"))

    def list_engines(self, type_id: Any) -> list:
        return self.store.find_many("engines", order_by="name", type_id=parse_id(type_id, "type_id"))

    def list_stages(self, engine_id: Any) -> list:
        return self.store.find_many("stages", engine_id=parse_id(engine_id, "engine_id"))

    def get(self, kind: str, entity_id: Any):
        entity_id = parse_id(entity_id)
        row = self.store.get(kind, entity_id)
        if row is None:
            raise NotFound(f"{kind} {entity_id} não encontrado")
        return row

    # --- Criação ---

    def _parent(self, kind: str, values: Dict[str, Any], field: str):
        parent_id = parse_id(values.get(field), field)
        parent = self.store.get(kind, parent_id)
        if parent is None:
            raise ParentNotFound(f"{kind} {parent_id} não encontrado")
        return parent

    def create(self, kind: str, values: Dict[str, Any]):
        collection = self.store.collection_for(kind)
        values = {k: v for k, v in values.items() if v is not None}

        with structural_lock:
            with transaction(self.db, f"criação em {collection}"):
                data = {field: values[field] for field in EDITABLE_FIELDS[collection] if field in values}

                if collection == "stages":
                    data["stage_name"] = required_name(values, "stage_name")
                    data["engine_id"] = self._parent("engines", values, "engine_id").id
                else:
                    data["name"] = required_name(values)
                    data["slug"] = slugify(data["name"])

                if collection == "groups":
                    data["brand_id"] = self._parent("brands", values, "brand_id").id
                elif collection == "models":
                    if values.get("group_id") not in (None, ""):
                        group = self._parent("groups", values, "group_id")
                        data["group_id"] = group.id
                        data["brand_id"] = group.brand_id
                    else:
                        data["brand_id"] = self._parent("brands", values, "brand_id").id
                elif collection == "types":
                    model = self._parent("models", values, "model_id")
                    data["model_id"] = model.id
                    data["brand_id"] = model.brand_id
                elif collection == "engines":
                    vehicle_type = self._parent("types", values, "type_id")
                    data["type_id"] = vehicle_type.id
                    data["model_id"] = vehicle_type.model_id

                row = self.store.insert(collection, data)
                after = self.store.to_dict(row)
                self.audit.record(collection, row.id, "create", after=after, changed_by=self.actor)

        logger.info(f"➕ {collection} #{row.id} criado")
        return row

    # --- Atualização ---

    def update(self, kind: str, entity_id: Any, values: Dict[str, Any]):
        collection = self.store.collection_for(kind)
        entity_id = parse_id(entity_id)

        patch = {field: values[field] for field in EDITABLE_FIELDS[collection] if field in values}
        if collection != "stages" and values.get("name") is not None:
            patch["name"] = required_name(values)
            patch["slug"] = slugify(patch["name"])
        if collection == "stages" and "stage_name" in patch:
            patch["stage_name"] = required_name(values, "stage_name")
        if not patch:
            raise InvalidRequest("Nenhum campo para atualizar")

        with structural_lock:
            with transaction(self.db, f"atualização de {collection} {entity_id}"):
                row = self.store.get(collection, entity_id)
                if row is None:
                    raise NotFound(f"{kind} {entity_id} não encontrado")
                before = self.store.to_dict(row)
                self.store.update_one(collection, entity_id, patch)
                after = self.store.to_dict(row)
                self.audit.record(collection, entity_id, "update", before=before, after=after, changed_by=self.actor)

        logger.info(f"✏️ {collection} #{entity_id} atualizado: {sorted(patch)}")
        return row

    # --- Exclusão de stage (folha, sem cascata) ---

    def delete_stage(self, stage_id: Any) -> Dict[str, Any]:
        stage_id = parse_id(stage_id)
        with structural_lock:
            with transaction(self.db, f"exclusão do stage {stage_id}"):
                stage = self.store.get("stages", stage_id)
                if stage is None:
                    raise NotFound(f"Stage {stage_id} não encontrado")
                before = self.store.to_dict(stage)
                self.store.delete_many("stages", id=stage_id)
                self.audit.record("stages", stage_id, "delete", before=before, changed_by=self.actor)

        logger.info(f"🗑️ Stage #{stage_id} removido")
        return {"message": "Stage removido", "id": stage_id}

    def counts(self) -> Dict[str, int]:
        return {collection: self.store.count(collection) for collection in EDITABLE_FIELDS}

    def breadcrumb(self, engine_id: Any) -> Optional[Dict[str, Any]]:
        """Cadeia marca > grupo > modelo > tipo > motor, para a página do motor."""
        engine = self.get("engines", engine_id)
        vehicle_type = self.store.get("types", engine.type_id)
        model = self.store.get("models", engine.model_id)
        brand = self.store.get("brands", model.brand_id) if model else None
        group = self.store.get("groups", model.group_id) if model and model.group_id else None
        chain: List[Any] = [brand, group, model, vehicle_type, engine]
        return {
            kind: {"id": row.id, "name": row.name, "slug": row.slug} if row is not None else None
            for kind, row in zip(("brand", "group", "model", "type", "engine"), chain)
        }
