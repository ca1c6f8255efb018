from sqlalchemy import Column, String, DateTime, Uuid, ForeignKey
from sqlalchemy.sql import func
from colmena.core.database import Base
import uuid


class Unit(Base):
    __tablename__ = "units"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    condominium_id = Column(Uuid, ForeignKey("condominiums.id", ondelete="CASCADE"), nullable=False, index=True)
    number = Column(String(50), nullable=False)  # Apartment / house number
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Unit(id={self.id}, number='{self.number}')>"
