import logging
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.exceptions import NotFound, ParentNotFound
from app.core.locks import structural_lock
from app.models.audit import AuditLog
from app.services.hierarchy import HierarchyStore, parse_id, transaction

logger = logging.getLogger(__name__)

# coleção -> (campo do pai direto, coleção do pai)
PARENT_FIELDS = {
    "types": ("model_id", "models"),
    "engines": ("type_id", "types"),
    "stages": ("engine_id", "engines"),
}

# Coleções com ancestrais denormalizados que precisam ser recalculados
REDERIVED = {"models": "model", "types": "type", "engines": "engine"}


class AuditService:

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        collection: str,
        document_id: int,
        action: str,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None,
        changed_by: str = "admin",
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        """
        Registra uma alteração na mesma transação da mutação (sem commit aqui).
        Para update/move guarda também o diff campo a campo.
        """
        changes = None
        if before and after:
            changes = {
                key: {"from": before.get(key), "to": value}
                for key, value in after.items()
                if before.get(key) != value
            } or None

        last_version = self.db.query(func.max(AuditLog.version)).filter(
            AuditLog.collection == collection,
            AuditLog.document_id == document_id
        ).scalar()

        entry = AuditLog(
            collection=collection,
            document_id=document_id,
            action=action,
            before=before,
            after=after,
            changes=changes,
            changed_by=changed_by,
            version=(last_version or 0) + 1,
            details=details,
        )
        self.db.add(entry)
        return entry

    def list(
        self,
        limit: int = 100,
        collection: Optional[str] = None,
        action: Optional[str] = None,
        document_id: Optional[int] = None,
    ):
        query = self.db.query(AuditLog)
        if collection:
            query = query.filter(AuditLog.collection == collection)
        if action:
            query = query.filter(AuditLog.action == action)
        if document_id is not None:
            query = query.filter(AuditLog.document_id == document_id)
        return query.order_by(AuditLog.id.desc()).limit(limit).all()

    # --- ROLLBACK ---

    def rollback(self, collection: Any, document_id: Any, version: Any, actor: str = "admin") -> Dict[str, Any]:
        """
        Volta o documento ao estado `before` da versão indicada do histórico.
        O rollback entra no histórico como um novo update.
        """
        from app.services.cascade import CascadeService

        store = HierarchyStore(self.db)
        collection = store.collection_for(str(collection or ""))
        document_id = parse_id(document_id, "document_id")
        version = parse_id(version, "version")

        with structural_lock:
            target = self.db.query(AuditLog).filter(
                AuditLog.collection == collection,
                AuditLog.document_id == document_id,
                AuditLog.version == version
            ).first()
            if target is None or not target.before:
                raise NotFound("Versão não encontrada ou sem estado anterior disponível")

            patch = {key: value for key, value in target.before.items() if key != "id"}
            if collection == "groups":
                # Grupo não muda de marca
                patch.pop("brand_id", None)
            self._check_parent(store, collection, patch)

            with transaction(self.db, f"rollback de {collection} {document_id}"):
                row = store.get(collection, document_id)
                if row is None:
                    raise NotFound(f"Registro {document_id} não encontrado em {collection}")
                before = store.to_dict(row)
                store.update_one(collection, document_id, patch)
                if collection in REDERIVED:
                    CascadeService(self.db, actor).rederive(REDERIVED[collection], document_id)
                after = store.to_dict(row)
                self.record(
                    collection, document_id, "update",
                    before=before, after=after, changed_by=actor,
                    details={"rollback": True, "target_version": version}
                )

        logger.info(f"⏪ {collection} #{document_id} voltou para a versão {version}")
        return {
            "message": "Rollback concluído",
            "collection": collection,
            "document_id": document_id,
            "target_version": version,
            "document": after,
        }

    def _check_parent(self, store: HierarchyStore, collection: str, patch: Dict[str, Any]) -> None:
        if collection == "models":
            if patch.get("group_id") is not None:
                field, parent = "group_id", "groups"
            else:
                field, parent = "brand_id", "brands"
        elif collection in PARENT_FIELDS:
            field, parent = PARENT_FIELDS[collection]
        else:
            return
        parent_id = patch.get(field)
        if parent_id is not None and store.get(parent, parent_id) is None:
            raise ParentNotFound(f"{parent} {parent_id} não existe mais, rollback impossível")
