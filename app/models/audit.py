from sqlalchemy import Column, DateTime, Integer, JSON, String
from sqlalchemy.sql import func

from app.db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    collection = Column(String(50), nullable=False, index=True)
    document_id = Column(Integer, nullable=False, index=True)

    # create, update, delete, move, restore, pricing
    action = Column(String(20), nullable=False, index=True)

    before = Column(JSON, nullable=True)
    after = Column(JSON, nullable=True)
    changes = Column(JSON, nullable=True) # {campo: {from, to}}

    changed_by = Column(String(100), default="admin")
    changed_at = Column(DateTime(timezone=True), server_default=func.now())
    version = Column(Integer, default=1)
    details = Column(JSON, nullable=True)
