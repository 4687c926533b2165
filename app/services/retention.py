import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import InvalidRequest
from app.models.backup import Backup, BackupKind
from app.services.hierarchy import transaction

logger = logging.getLogger(__name__)


class RetentionService:
    """Mantém no máximo N snapshots, apagando sempre os mais antigos primeiro."""

    def __init__(self, db: Session):
        self.db = db

    def enforce(self, keep: int, kind: Optional[str] = None) -> int:
        """
        Apaga o excedente acima de `keep`, do mais antigo para o mais novo
        (timestamp crescente, id como desempate). Exclusão definitiva.
        Sem `kind`, manual/auto/pre-restore dividem a mesma fila.
        """
        query = self.db.query(Backup.id)
        if kind:
            query = query.filter(Backup.kind == kind)

        total = query.count()
        if total <= keep:
            return 0

        excess = [
            row[0]
            for row in query.order_by(Backup.timestamp.asc(), Backup.id.asc()).limit(total - keep).all()
        ]

        with transaction(self.db, "limpeza de backups antigos"):
            deleted = (
                self.db.query(Backup)
                .filter(Backup.id.in_(excess))
                .delete(synchronize_session="fetch")
            )

        logger.info(f"🧹 {deleted} backup(s) antigo(s) removido(s) (mantendo {keep}{f' do tipo {kind}' if kind else ''})")
        return deleted

    def prune(self, keep_count: Any, kind: Optional[str] = None) -> int:
        if keep_count is None or isinstance(keep_count, bool):
            raise InvalidRequest("keep é obrigatório")
        try:
            keep = int(keep_count)
        except (TypeError, ValueError):
            raise InvalidRequest("keep deve ser um número inteiro")
        if keep < 0:
            raise InvalidRequest("keep não pode ser negativo")
        if kind and kind not in BackupKind.ALL:
            raise InvalidRequest(f"Tipo de backup inválido: {kind}")
        return self.enforce(keep, kind)
