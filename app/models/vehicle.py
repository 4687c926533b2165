from sqlalchemy import Column, ForeignKey, Integer, String

from app.db.base import Base


class VehicleModel(Base):
    __tablename__ = "models"

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(100), nullable=False)
    slug = Column(String(120))
    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=False, index=True)
    # Quando preenchido, brand_id repete o brand_id do grupo
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=True, index=True)


class VehicleType(Base):
    """Geração / tipo de um modelo"""
    __tablename__ = "types"

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(200), nullable=False)
    slug = Column(String(220))
    model_id = Column(Integer, ForeignKey("models.id"), nullable=False, index=True)
    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=False, index=True) # derivado do modelo


class Engine(Base):
    __tablename__ = "engines"

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(200), nullable=False)
    slug = Column(String(220))
    code = Column(String(50), nullable=True)
    fuel = Column(String(30), nullable=True)
    power = Column(Integer, nullable=True)
    start_year = Column(Integer, nullable=True)
    end_year = Column(String(10), nullable=True) # ano ou "now"
    type_id = Column(Integer, ForeignKey("types.id"), nullable=False, index=True)
    model_id = Column(Integer, ForeignKey("models.id"), nullable=False, index=True) # derivado do tipo
