from sqlalchemy import Column, String, Text, Boolean, DateTime, Uuid
from sqlalchemy.sql import func
from colmena.core.database import Base
import uuid


class Condominium(Base):
    __tablename__ = "condominiums"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    address = Column(Text, nullable=False)
    city = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Condominium(id={self.id}, name='{self.name}')>"
