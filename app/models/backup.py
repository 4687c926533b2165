from sqlalchemy import Column, DateTime, Integer, JSON, String
from sqlalchemy.sql import func

from app.db.base import Base


class BackupKind:
    MANUAL = "manual"
    AUTO = "auto"
    PRE_RESTORE = "pre-restore"

    ALL = (MANUAL, AUTO, PRE_RESTORE)


class Backup(Base):
    """Snapshot imutável do catálogo inteiro (append-only)"""
    __tablename__ = "backups"

    id = Column(Integer, primary_key=True, index=True)
    timestamp = Column(DateTime, nullable=False, index=True) # UTC sem fuso
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    kind = Column(String(20), nullable=False, default=BackupKind.MANUAL, index=True)
    description = Column(String(255), nullable=True)
    actor = Column(String(100), nullable=True)

    # Quantidade de registros por coleção, para listagem sem carregar o payload
    counts = Column(JSON, nullable=False, default=dict)
    # {brands: [], groups: [], models: [], types: [], engines: [], stages: []}
    data = Column(JSON, nullable=False)
