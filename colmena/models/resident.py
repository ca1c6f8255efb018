from sqlalchemy import Column, String, Boolean, DateTime, Uuid, ForeignKey
from sqlalchemy.sql import func
from colmena.core.database import Base
import uuid


class Resident(Base):
    """
    Resident of a condominium. Optionally linked to a unit and to the
    user account the resident logs in with.
    """
    __tablename__ = "residents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    condominium_id = Column(Uuid, ForeignKey("condominiums.id", ondelete="CASCADE"), nullable=False, index=True)
    unit_id = Column(Uuid, ForeignKey("units.id", ondelete="SET NULL"), nullable=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Resident(id={self.id}, name='{self.name}')>"
