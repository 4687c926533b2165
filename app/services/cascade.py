import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.core.exceptions import InvalidMove, InvalidRequest, NotFound, ParentNotFound
from app.core.locks import structural_lock
from app.models.collections import COLLECTION_ORDER, KIND_TO_COLLECTION
from app.services.audit import AuditService
from app.services.hierarchy import HierarchyStore, parse_id, transaction

logger = logging.getLogger(__name__)

# Tipos que aceitam exclusão em cascata
DELETABLE_KINDS = ("brand", "group", "model", "type", "engine")

# item -> destinos permitidos
VALID_MOVES = {
    "model": ("group", "brand"),
    "type": ("model",),
    "engine": ("type",),
}

# Campos gravados no item em cada movimento (o restante é derivado)
MOVE_FIELDS = {
    "model": ("group_id", "brand_id"),
    "type": ("model_id", "brand_id"),
    "engine": ("type_id", "model_id"),
}


class CascadeService:
    """
    Exclusão e movimentação na árvore Brand > Group > Model > Type > Engine > Stage.

    Toda mudança de pai passa por `rederive`, o único lugar que reescreve os
    campos de ancestral denormalizados (Model.brand_id, Type.brand_id,
    Engine.model_id). Cada operação roda em uma transação.
    """

    def __init__(self, db: Session, actor: str = "admin"):
        self.db = db
        self.actor = actor
        self.store = HierarchyStore(db)
        self.audit = AuditService(db)

    # --- 1. EXCLUSÃO EM CASCATA ---

    def describe_subtree(self, kind: str, entity_id: int) -> Dict[str, List[int]]:
        """
        Levanta os ids de todos os descendentes (antes de apagar qualquer coisa).
        Retorna {coleção: [ids]} para o nível da entidade e os de baixo.
        """
        start = COLLECTION_ORDER.index(KIND_TO_COLLECTION[kind])
        scope = {collection: [] for collection in COLLECTION_ORDER}
        scope[KIND_TO_COLLECTION[kind]] = [entity_id]

        for collection in COLLECTION_ORDER[start + 1:]:
            if collection == "groups":
                scope["groups"] = self.store.ids("groups", brand_id=scope["brands"])
            elif collection == "models":
                # Modelos com grupo também carregam brand_id, mas olhamos os dois lados
                found = set(self.store.ids("models", brand_id=scope["brands"]))
                found.update(self.store.ids("models", group_id=scope["groups"]))
                scope["models"] = sorted(found)
            elif collection == "types":
                scope["types"] = self.store.ids("types", model_id=scope["models"])
            elif collection == "engines":
                scope["engines"] = self.store.ids("engines", type_id=scope["types"])
            elif collection == "stages":
                scope["stages"] = self.store.ids("stages", engine_id=scope["engines"])

        return {collection: scope[collection] for collection in COLLECTION_ORDER[start:]}

    def delete(self, kind: str, entity_id: Any) -> Dict[str, Any]:
        """
        Apaga a entidade e tudo abaixo dela, do nível mais fundo para o mais raso.
        Id inexistente não é erro: a cascata roda sobre um conjunto vazio e
        todas as contagens voltam 0.
        """
        kind = (kind or "").strip().lower()
        if kind not in DELETABLE_KINDS:
            raise InvalidRequest(f"Exclusão em cascata não suportada para '{kind}'")
        entity_id = parse_id(entity_id, "id")
        collection = KIND_TO_COLLECTION[kind]

        with structural_lock:
            with transaction(self.db, f"exclusão de {kind} {entity_id}"):
                before = self.store.to_dict(self.store.get(collection, entity_id))
                plan = self.describe_subtree(kind, entity_id)
                levels = list(plan.keys())

                deleted = {}
                for level in reversed(levels[1:]):
                    if level == "stages":
                        deleted[level] = self.store.delete_many("stages", engine_id=plan["engines"])
                    elif level == "engines":
                        deleted[level] = self.store.delete_many("engines", type_id=plan["types"])
                    elif level == "types":
                        deleted[level] = self.store.delete_many("types", model_id=plan["models"])
                    elif level == "models":
                        deleted[level] = self.store.delete_many("models", id=plan["models"])
                    elif level == "groups":
                        deleted[level] = self.store.delete_many("groups", brand_id=plan["brands"])

                deleted[collection] = self.store.delete_many(collection, id=entity_id)

                if any(deleted.values()):
                    self.audit.record(
                        collection, entity_id, "delete",
                        before=before, changed_by=self.actor,
                        details={"deleted_counts": deleted}
                    )

        # Ordem raiz -> folha na resposta
        deleted_counts = {level: deleted.get(level, 0) for level in levels}
        logger.info(f"🗑️ Cascata {kind} {entity_id}: {deleted_counts}")
        return {"kind": kind, "id": entity_id, "deleted_counts": deleted_counts}

    # --- 2. MOVIMENTAÇÃO ---

    def move(self, item_type: Any, item_id: Any, target_parent_id: Any, target_parent_type: Any) -> Dict[str, Any]:
        if not item_type or item_id in (None, "") or target_parent_id in (None, "") or not target_parent_type:
            raise InvalidRequest("item_type, item_id, target_parent_id e target_parent_type são obrigatórios")

        item_type = str(item_type).strip().lower()
        target_parent_type = str(target_parent_type).strip().lower()
        if target_parent_type not in VALID_MOVES.get(item_type, ()):
            raise InvalidMove(f"Movimento inválido: não é possível mover {item_type} para {target_parent_type}")

        item_id = parse_id(item_id, "item_id")
        target_id = parse_id(target_parent_id, "target_parent_id")
        collection = KIND_TO_COLLECTION[item_type]
        target_collection = KIND_TO_COLLECTION[target_parent_type]

        with structural_lock:
            with transaction(self.db, f"movimentação de {item_type} {item_id}"):
                item = self.store.get(collection, item_id)
                if item is None:
                    raise NotFound(f"{item_type} {item_id} não encontrado")
                if self.store.get(target_collection, target_id) is None:
                    raise ParentNotFound(f"{target_parent_type} {target_id} não encontrado")

                before = self.store.to_dict(item)

                if item_type == "model" and target_parent_type == "group":
                    patch = {"group_id": target_id}
                elif item_type == "model":
                    # Direto sob a marca: sai de qualquer grupo
                    patch = {"brand_id": target_id, "group_id": None}
                elif item_type == "type":
                    patch = {"model_id": target_id}
                else:
                    patch = {"type_id": target_id}

                self.store.update_one(collection, item_id, patch)
                descendants = self.rederive(item_type, item_id)

                after = self.store.to_dict(item)
                self.audit.record(
                    collection, item_id, "move",
                    before=before, after=after, changed_by=self.actor,
                    details={
                        "target_parent_type": target_parent_type,
                        "target_parent_id": target_id,
                        "descendants_updated": descendants,
                    }
                )

        updated = {field: after[field] for field in MOVE_FIELDS[item_type]}
        logger.info(f"🔀 {item_type} {item_id} movido para {target_parent_type} {target_id}: {updated}")
        return {
            "message": f"{item_type} movido com sucesso",
            "item_type": item_type,
            "item_id": item_id,
            "target_parent_type": target_parent_type,
            "target_parent_id": target_id,
            "updated": updated,
            "descendants_updated": descendants,
        }

    # --- 3. RE-DERIVAÇÃO DOS CAMPOS DENORMALIZADOS ---

    def rederive(self, kind: str, entity_id: int) -> Dict[str, int]:
        """
        Recalcula os ancestrais denormalizados da entidade a partir do pai direto
        e propaga para os descendentes que os repetem. Não faz commit.

        Retorna quantos descendentes foram reescritos, por coleção.
        Pai inexistente (FK pendente) deixa o valor como está.
        """
        updated = {}

        if kind == "model":
            model = self.store.get("models", entity_id)
            if model is None:
                return updated
            if model.group_id is not None:
                group = self.store.get("groups", model.group_id)
                if group is not None and model.brand_id != group.brand_id:
                    model.brand_id = group.brand_id
                    self.db.flush()
            updated["types"] = self.store.update_many(
                "types", {"brand_id": model.brand_id},
                model_id=model.id, brand_id__ne=model.brand_id
            )

        elif kind == "type":
            vehicle_type = self.store.get("types", entity_id)
            if vehicle_type is None:
                return updated
            model = self.store.get("models", vehicle_type.model_id)
            if model is not None and vehicle_type.brand_id != model.brand_id:
                vehicle_type.brand_id = model.brand_id
                self.db.flush()
            updated["engines"] = self.store.update_many(
                "engines", {"model_id": vehicle_type.model_id},
                type_id=vehicle_type.id, model_id__ne=vehicle_type.model_id
            )

        elif kind == "engine":
            engine = self.store.get("engines", entity_id)
            if engine is None:
                return updated
            vehicle_type = self.store.get("types", engine.type_id)
            if vehicle_type is not None and engine.model_id != vehicle_type.model_id:
                engine.model_id = vehicle_type.model_id
                self.db.flush()

        return updated
