from sqlalchemy import Boolean, Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from app.db.base import Base

class Brand(Base):
    """Marca (raiz da hierarquia)"""
    __tablename__ = "brands"

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(100), nullable=False, index=True)
    slug = Column(String(120), index=True)
    logo = Column(String(255), nullable=True)
    is_test = Column(Boolean, default=False)

    groups = relationship("Group", back_populates="brand")

class Group(Base):
    """Agrupamento opcional de modelos dentro de uma marca (ex: linha M, RS)"""
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, autoincrement=False)
    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(120))
    is_performance = Column(Boolean, default=False)
    order = Column(Integer, default=0)

    # Apenas exibição
    color = Column(String(20), nullable=True)
    icon = Column(String(100), nullable=True)
    tagline = Column(String(255), nullable=True)
    logo = Column(String(255), nullable=True)

    brand = relationship("Brand", back_populates="groups")
