from sqlalchemy import Column, Integer, String

from app.db.base import Base


class IdSequence(Base):
    """Último id emitido por coleção. Só cresce."""
    __tablename__ = "id_sequences"

    collection = Column(String(50), primary_key=True)
    value = Column(Integer, nullable=False, default=0)
