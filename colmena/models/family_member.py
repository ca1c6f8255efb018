from sqlalchemy import Column, String, DateTime, Uuid, ForeignKey
from sqlalchemy.sql import func
from colmena.core.database import Base
import uuid


class FamilyMember(Base):
    """Household member of a resident; visits can be attributed to one."""
    __tablename__ = "family_members"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    resident_id = Column(Uuid, ForeignKey("residents.id", ondelete="CASCADE"), nullable=False, index=True)
    condominium_id = Column(Uuid, ForeignKey("condominiums.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(200), nullable=False)
    relationship = Column(String(100), nullable=False)  # son, spouse, parent, sibling...
    phone = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<FamilyMember(id={self.id}, name='{self.name}', relationship='{self.relationship}')>"
