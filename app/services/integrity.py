import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.core.locks import structural_lock
from app.services.audit import AuditService
from app.services.cascade import CascadeService
from app.services.hierarchy import HierarchyStore, apply_gains, transaction

logger = logging.getLogger(__name__)

# (coleção, campo FK, coleção do pai)
PARENT_LINKS = (
    ("groups", "brand_id", "brands"),
    ("models", "brand_id", "brands"),
    ("models", "group_id", "groups"),
    ("types", "model_id", "models"),
    ("types", "brand_id", "brands"),
    ("engines", "type_id", "types"),
    ("engines", "model_id", "models"),
    ("stages", "engine_id", "engines"),
)


class IntegrityService:
    """Varredura de consistência do catálogo (FKs, campos denormalizados e ganhos)."""

    def __init__(self, db: Session, actor: str = "admin"):
        self.db = db
        self.actor = actor
        self.store = HierarchyStore(db)

    def check(self) -> Dict[str, Any]:
        rows = {collection: {row.id: row for row in self.store.find_many(collection)}
                for collection in ("brands", "groups", "models", "types", "engines", "stages")}
        violations: List[Dict[str, Any]] = []

        for collection, field, parent_collection in PARENT_LINKS:
            for row in rows[collection].values():
                value = getattr(row, field)
                if value is not None and value not in rows[parent_collection]:
                    violations.append({
                        "type": "dangling",
                        "collection": collection,
                        "id": row.id,
                        "field": field,
                        "value": value,
                    })

        def mismatch(collection, row, field, expected):
            if expected is not None and getattr(row, field) != expected:
                violations.append({
                    "type": "mismatch",
                    "collection": collection,
                    "id": row.id,
                    "field": field,
                    "value": getattr(row, field),
                    "expected": expected,
                })

        for model in rows["models"].values():
            group = rows["groups"].get(model.group_id)
            mismatch("models", model, "brand_id", group.brand_id if group else None)
        for vehicle_type in rows["types"].values():
            model = rows["models"].get(vehicle_type.model_id)
            mismatch("types", vehicle_type, "brand_id", model.brand_id if model else None)
        for engine in rows["engines"].values():
            vehicle_type = rows["types"].get(engine.type_id)
            mismatch("engines", engine, "model_id", vehicle_type.model_id if vehicle_type else None)

        for stage in rows["stages"].values():
            for gain, tuned, stock in (("gain_hp", "tuned_hp", "stock_hp"), ("gain_nm", "tuned_nm", "stock_nm")):
                tuned_value, stock_value = getattr(stage, tuned), getattr(stage, stock)
                expected = tuned_value - stock_value if tuned_value is not None and stock_value is not None else None
                if getattr(stage, gain) != expected:
                    violations.append({
                        "type": "gain",
                        "collection": "stages",
                        "id": stage.id,
                        "field": gain,
                        "value": getattr(stage, gain),
                        "expected": expected,
                    })

        if violations:
            logger.warning(f"⚠️ Integridade: {len(violations)} problema(s) encontrado(s)")
        return {"ok": not violations, "violations": violations}

    def repair(self) -> Dict[str, Any]:
        """
        Re-deriva todos os modelos, tipos e motores (de cima para baixo) e
        recalcula os ganhos. FKs pendentes só são reportadas.
        """
        cascade = CascadeService(self.db, self.actor)
        with structural_lock:
            before = self.check()
            with transaction(self.db, "reparo de integridade"):
                for kind, collection in (("model", "models"), ("type", "types"), ("engine", "engines")):
                    for entity_id in self.store.ids(collection):
                        cascade.rederive(kind, entity_id)
                for stage in self.store.find_many("stages"):
                    apply_gains(stage)
                self.db.flush()

                if not before["ok"]:
                    AuditService(self.db).record(
                        "system", 0, "repair", changed_by=self.actor,
                        details={"violations_before": len(before["violations"])}
                    )
            after = self.check()

        repaired = len(before["violations"]) - len(after["violations"])
        logger.info(f"🔧 Reparo de integridade: {repaired} corrigido(s), {len(after['violations'])} restante(s)")
        return {
            "repaired": repaired,
            "remaining": after["violations"],
            "ok": after["ok"],
        }
