import logging
import math
from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import EmptyDataset, InvalidRequest, NotFound
from app.core.locks import structural_lock
from app.models.backup import BackupKind
from app.services.audit import AuditService
from app.services.backup import BackupService
from app.services.hierarchy import HierarchyStore, parse_id, transaction

logger = logging.getLogger(__name__)

LEVELS = ("all", "brand", "model", "generation", "engine")

# dataType -> (coluna, unidade)
DATA_FIELDS = {
    "price": ("price", "€"),
    "power": ("tuned_hp", "HP"),
    "torque": ("tuned_nm", "Nm"),
}

STAGE_NAMES = {
    "stage1": ("stage 1", "stage1"),
    "stage2": ("stage 2", "stage2"),
    "stage1plus": ("stage 1+", "stage1+"),
    "stage2plus": ("stage 2+", "stage2+"),
}


def round_half_away_from_zero(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def apply_percentage(base: Any, percentage: Any) -> int:
    factor = 1 + Decimal(str(percentage)) / 100
    return round_half_away_from_zero(Decimal(str(base)) * factor)


def validate_percentage(value: Any, field: str, maximum: Optional[float] = 100) -> float:
    """maximum=None libera qualquer percentual positivo (aumento de preço em massa)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value) or math.isinf(value):
        raise InvalidRequest(f"Percentual inválido em '{field}'")
    if value < 0:
        raise InvalidRequest("O percentual não pode ser negativo")
    if maximum is not None and value > maximum:
        raise InvalidRequest(f"O percentual deve estar entre 0 e {maximum}")
    return value


def parse_price(value: Any, field: str = "price") -> int:
    price = parse_id(value, field)
    if price < 0:
        raise InvalidRequest(f"O preço não pode ser negativo em '{field}'")
    return price


def match_stages(stages) -> Dict[str, Any]:
    """Primeiro stage de cada nome conhecido (comparação sem maiúsculas/espaços nas pontas)."""
    found = {}
    for stage in stages:
        name = (stage.stage_name or "").strip().lower()
        for key, aliases in STAGE_NAMES.items():
            if key not in found and name in aliases:
                found[key] = stage
    return found


def normalize_stage_key(stage_name: str) -> str:
    return "".join((stage_name or "").lower().split()).replace("+", "plus")


class StagePricingService:

    def __init__(self, db: Session, actor: str = "admin"):
        self.db = db
        self.actor = actor
        self.store = HierarchyStore(db)
        self.audit = AuditService(db)

    # --- Escopo ---

    def engine_ids_for(self, level: str = "all", target_id: Any = None, group_id: Any = None) -> List[int]:
        if level not in LEVELS:
            raise InvalidRequest(f"Nível inválido: {level}")
        if level == "all":
            return self.store.ids("engines")

        target_id = parse_id(target_id, "target_id")
        if level == "engine":
            return self.store.ids("engines", id=target_id)
        if level == "generation":
            return self.store.ids("engines", type_id=target_id)

        if level == "brand":
            filters = {"brand_id": target_id}
            if group_id not in (None, ""):
                filters["group_id"] = parse_id(group_id, "group_id")
            model_ids = self.store.ids("models", **filters)
        else:
            model_ids = [target_id]

        type_ids = self.store.ids("types", model_id=model_ids)
        return self.store.ids("engines", type_id=type_ids)

    def _data_field(self, data_type: str):
        if data_type not in DATA_FIELDS:
            raise InvalidRequest(f"dataType inválido: {data_type}")
        return DATA_FIELDS[data_type]

    def _auto_snapshot(self, reason: str):
        if not settings.AUTO_BACKUP_ON_BULK_UPDATE:
            return None
        try:
            return BackupService(self.db).create_snapshot(BackupKind.AUTO, reason, self.actor)["snapshot_id"]
        except EmptyDataset:
            return None

    # --- 1. STAGE+ DERIVADO DO STAGE BASE ---

    def derive_plus_pricing(
        self,
        stage1_plus_percentage: Any,
        stage2_plus_percentage: Any,
        level: str = "all",
        target_id: Any = None,
        group_id: Any = None,
        data_type: str = "price",
    ) -> Dict[str, Any]:
        """
        Stage 1+ = Stage 1 * (1 + p1/100) e Stage 2+ = Stage 2 * (1 + p2/100),
        por motor, arredondando meio para longe do zero.
        Pares incompletos ou base nula são ignorados sem erro.
        """
        p1 = validate_percentage(stage1_plus_percentage, "stage1_plus_percentage")
        p2 = validate_percentage(stage2_plus_percentage, "stage2_plus_percentage")
        field, unit = self._data_field(data_type)

        with structural_lock:
            engine_ids = self.engine_ids_for(level, target_id, group_id)
            snapshot_id = self._auto_snapshot(f"Automático antes do Stage+ ({data_type})")

            with transaction(self.db, "cálculo de Stage+"):
                stages = self.store.find_many("stages", engine_id=engine_ids)
                stages_by_engine = defaultdict(list)
                for stage in stages:
                    stages_by_engine[stage.engine_id].append(stage)

                ops = []
                for engine_id, engine_stages in stages_by_engine.items():
                    found = match_stages(engine_stages)
                    for base_key, plus_key, percentage in (
                        ("stage1", "stage1plus", p1),
                        ("stage2", "stage2plus", p2),
                    ):
                        base, plus = found.get(base_key), found.get(plus_key)
                        if base is None or plus is None:
                            continue
                        base_value = getattr(base, field)
                        if base_value is None:
                            continue
                        new_value = apply_percentage(base_value, percentage)
                        ops.append((plus.id, {field: new_value}))
                        logger.debug(f"  {plus.stage_name} (motor {engine_id}): {unit}{base_value} -> {unit}{new_value} (+{percentage}%)")

                updated_count = self.store.bulk_update("stages", ops)
                if updated_count:
                    self.audit.record(
                        "stages", 0, "pricing", changed_by=self.actor,
                        details={
                            "operation": "stage_plus",
                            "data_type": data_type,
                            "level": level,
                            "stage_ids": [stage_id for stage_id, _ in ops],
                            "stage1_plus_percentage": p1,
                            "stage2_plus_percentage": p2,
                        }
                    )

        logger.info(f"✅ Stage+ {data_type}: {updated_count} stage(s) atualizados em {len(engine_ids)} motor(es)")
        return {
            "message": f"{updated_count} valores de Stage+ atualizados",
            "updated_count": updated_count,
            "data_type": data_type,
            "stage1_plus_percentage": p1,
            "stage2_plus_percentage": p2,
            "auto_snapshot_id": snapshot_id,
        }

    def preview(self, level: str = "all", target_id: Any = None, group_id: Any = None, data_type: str = "price") -> Dict[str, Any]:
        """Valores de Stage 1 / Stage 2 do primeiro motor do escopo, para a tela de confirmação."""
        field, unit = self._data_field(data_type)
        engine_ids = self.engine_ids_for(level, target_id, group_id)
        sample_info = {"level": level}

        if not engine_ids:
            return {"stage1_value": None, "stage2_value": None, "has_data": False,
                    "sample_info": sample_info, "data_type": data_type, "unit": unit}

        engine = self.store.get("engines", engine_ids[0])
        sample_info["engine_name"] = engine.name
        found = match_stages(self.store.find_many("stages", engine_id=engine.id))
        stage1_value = getattr(found["stage1"], field) if "stage1" in found else None
        stage2_value = getattr(found["stage2"], field) if "stage2" in found else None

        return {
            "stage1_value": stage1_value,
            "stage2_value": stage2_value,
            "has_data": stage1_value is not None or stage2_value is not None,
            "sample_info": sample_info,
            "data_type": data_type,
            "unit": unit,
        }

    # --- 2. ATUALIZAÇÃO DE PREÇO EM MASSA ---

    def bulk_update_prices(
        self,
        level: str,
        target_id: Any,
        update_type: str,
        price_data: Optional[Dict[str, Any]] = None,
        group_id: Any = None,
    ) -> Dict[str, Any]:
        """
        update_type:
          absolute   -> price_data = {"prices": {"stage1": 500, "stage1plus": 650, ...}}
          percentage -> price_data = {"percentage": 10, "operation": "increase" | "decrease"}
          fixed      -> price_data = {"price": 499}
        """
        if not level or level == "all":
            raise InvalidRequest("level e target_id são obrigatórios")
        price_data = price_data or {}

        if update_type == "absolute":
            raw_prices = price_data.get("prices")
            if not isinstance(raw_prices, dict) or not raw_prices:
                raise InvalidRequest("price_data.prices é obrigatório para update_type=absolute")
            # Tudo validado antes do snapshot automático
            prices = {
                name: parse_price(value, f"prices.{name}")
                for name, value in raw_prices.items()
                if value is not None
            }
        elif update_type == "percentage":
            operation = price_data.get("operation")
            if operation not in ("increase", "decrease"):
                raise InvalidRequest("operation deve ser 'increase' ou 'decrease'")
            # Redução limitada a 100%, aumento sem teto
            percentage = validate_percentage(
                price_data.get("percentage"), "percentage",
                maximum=100 if operation == "decrease" else None,
            )
        elif update_type == "fixed":
            fixed_price = parse_price(price_data.get("price"))
        else:
            raise InvalidRequest(f"update_type inválido: {update_type}")

        with structural_lock:
            engine_ids = self.engine_ids_for(level, target_id, group_id)
            if not engine_ids:
                raise NotFound("Nenhum motor encontrado para o alvo informado")
            stages = self.store.find_many("stages", engine_id=engine_ids)
            if not stages:
                raise NotFound("Nenhum stage encontrado para os motores informados")

            snapshot_id = self._auto_snapshot(f"Automático antes da atualização de preços ({update_type})")

            with transaction(self.db, "atualização de preços em massa"):
                # Recarrega: o snapshot acima fez commit
                stages = self.store.find_many("stages", engine_id=engine_ids)
                ops = []
                for stage in stages:
                    if update_type == "absolute":
                        price = prices.get(normalize_stage_key(stage.stage_name), prices.get(stage.stage_name))
                        if price is None:
                            continue
                        ops.append((stage.id, {"price": price}))
                    elif update_type == "percentage":
                        signed = percentage if operation == "increase" else -percentage
                        ops.append((stage.id, {"price": max(0, apply_percentage(stage.price or 0, signed))}))
                    else:
                        ops.append((stage.id, {"price": fixed_price}))

                updated_count = self.store.bulk_update("stages", ops)
                if updated_count:
                    self.audit.record(
                        "stages", 0, "pricing", changed_by=self.actor,
                        details={
                            "operation": f"bulk_{update_type}",
                            "level": level,
                            "target_id": target_id,
                            "stage_ids": [stage_id for stage_id, _ in ops],
                        }
                    )

        logger.info(f"✅ Preços em massa ({update_type}): {updated_count} stage(s) em {len(engine_ids)} motor(es)")
        return {
            "message": f"{updated_count} preços atualizados em {len(engine_ids)} motores",
            "updated_count": updated_count,
            "total_stages": len(stages),
            "engine_count": len(engine_ids),
            "group_filtered": group_id not in (None, ""),
            "auto_snapshot_id": snapshot_id,
        }
