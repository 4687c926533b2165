import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytz
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import EmptyDataset, InvalidRequest, NotFound
from app.core.locks import structural_lock
from app.models.backup import Backup, BackupKind
from app.models.collections import COLLECTION_ORDER
from app.services.audit import AuditService
from app.services.hierarchy import HierarchyStore, parse_id, transaction
from app.services.retention import RetentionService

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """UTC sem fuso, no mesmo formato das outras datas gravadas no banco."""
    return datetime.now(pytz.utc).replace(tzinfo=None)


class BackupService:
    """
    Snapshots completos do catálogo (as seis coleções em um único documento).

    Um snapshot nunca é alterado depois de criado: ou continua retido ou é
    apagado pela retenção.
    """

    def __init__(self, db: Session):
        self.db = db
        self.store = HierarchyStore(db)
        self.audit = AuditService(db)
        self.retention = RetentionService(db)

    def create_snapshot(
        self,
        kind: str = BackupKind.MANUAL,
        description: Optional[str] = None,
        actor: str = "admin",
        retention_limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Lê o dataset inteiro e grava um snapshot. Depois aplica a retenção.
        Coleção de marcas vazia: levanta EmptyDataset e não grava nada.
        """
        if kind not in BackupKind.ALL:
            raise InvalidRequest(f"Tipo de backup inválido: {kind}")

        with structural_lock:
            with transaction(self.db, "criação de backup"):
                data = self.store.dump()
                if not data["brands"]:
                    logger.warning("⚠️ Nenhum dado para backup, snapshot não criado")
                    raise EmptyDataset()

                counts = {collection: len(data[collection]) for collection in COLLECTION_ORDER}
                backup = Backup(
                    timestamp=utc_now(),
                    kind=kind,
                    description=description or "",
                    actor=actor,
                    counts=counts,
                    data=data,
                )
                self.db.add(backup)
                self.db.flush()
                snapshot_id = backup.id
                timestamp = backup.timestamp

        logger.info(f"📦 Backup {kind} #{snapshot_id} criado: {counts}")

        limit = settings.BACKUP_RETENTION_LIMIT if retention_limit is None else retention_limit
        pruned = self.retention.enforce(limit)

        return {
            "created": True,
            "snapshot_id": snapshot_id,
            "timestamp": timestamp,
            "kind": kind,
            "counts": counts,
            "pruned": pruned,
        }

    def restore_snapshot(self, backup_id: Any, actor: str = "admin") -> Dict[str, Any]:
        """
        Substitui o dataset vivo pelo conteúdo do snapshot (apaga e reinsere).

        Antes da troca grava um snapshot pre-restore do estado atual, para que
        uma restauração errada possa ser desfeita restaurando esse snapshot.
        """
        backup_id = parse_id(backup_id, "backup_id")

        with structural_lock:
            backup = self.db.get(Backup, backup_id)
            if backup is None:
                raise NotFound(f"Backup {backup_id} não encontrado")

            payload = backup.data or {}
            missing = [c for c in COLLECTION_ORDER if not isinstance(payload.get(c), list)]
            if missing:
                raise InvalidRequest(f"Backup {backup_id} incompleto, faltando: {', '.join(missing)}")

            # Payload já está em memória: a retenção abaixo pode apagar o registro sem afetar o restore
            source_timestamp = backup.timestamp
            payload = {collection: list(payload[collection]) for collection in COLLECTION_ORDER}

            try:
                pre_restore = self.create_snapshot(
                    BackupKind.PRE_RESTORE,
                    f"Automático antes de restaurar o backup #{backup_id}",
                    actor,
                )
                pre_restore_id = pre_restore["snapshot_id"]
            except EmptyDataset:
                pre_restore_id = None

            with transaction(self.db, f"restauração do backup {backup_id}"):
                restored = self.store.replace_all(payload)
                self.audit.record(
                    "system", 0, "restore",
                    after={"backup_id": backup_id, "timestamp": source_timestamp.isoformat()},
                    changed_by=actor,
                    details={"restored_counts": restored, "pre_restore_snapshot_id": pre_restore_id},
                )

        logger.info(f"♻️ Banco restaurado do backup #{backup_id}: {restored}")
        return {
            "ok": True,
            "message": "Banco restaurado com sucesso a partir do backup",
            "backup_id": backup_id,
            "restored_counts": restored,
            "pre_restore_snapshot_id": pre_restore_id,
        }

    def list_snapshots(self, limit: Optional[int] = None, kind: Optional[str] = None) -> List[Backup]:
        """Mais novos primeiro. Só metadados: o payload não é devolvido pela API."""
        if limit is None:
            limit = settings.BACKUP_LIST_LIMIT
        elif isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise InvalidRequest("limit deve ser um inteiro maior ou igual a zero")
        if limit == 0:
            return []

        query = self.db.query(Backup)
        if kind:
            query = query.filter(Backup.kind == kind)
        return query.order_by(Backup.timestamp.desc(), Backup.id.desc()).limit(limit).all()

    def get_snapshot(self, backup_id: Any) -> Backup:
        backup_id = parse_id(backup_id, "backup_id")
        backup = self.db.get(Backup, backup_id)
        if backup is None:
            raise NotFound(f"Backup {backup_id} não encontrado")
        return backup

    def delete_snapshot(self, backup_id: Any) -> None:
        backup = self.get_snapshot(backup_id)
        snapshot_id = backup.id
        with transaction(self.db, f"exclusão do backup {snapshot_id}"):
            self.db.delete(backup)
        logger.info(f"🗑️ Backup #{snapshot_id} removido")
