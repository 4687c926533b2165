from sqlalchemy import Boolean, Column, ForeignKey, Integer, String

from app.db.base import Base


class Stage(Base):
    """Nível de reprogramação de um motor (folha da árvore)"""
    __tablename__ = "stages"

    id = Column(Integer, primary_key=True, autoincrement=False)
    engine_id = Column(Integer, ForeignKey("engines.id"), nullable=False, index=True)
    stage_name = Column(String(50), nullable=False)

    stock_hp = Column(Integer, nullable=True)
    tuned_hp = Column(Integer, nullable=True)
    gain_hp = Column(Integer, nullable=True) # sempre calculado
    stock_nm = Column(Integer, nullable=True)
    tuned_nm = Column(Integer, nullable=True)
    gain_nm = Column(Integer, nullable=True) # sempre calculado

    price = Column(Integer, nullable=True)
    ecu_unlock = Column(Boolean, default=False)
    cpc_upgrade = Column(Boolean, default=False)
    notes = Column(String(500), nullable=True)
