from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, DateTime, Uuid, ForeignKey, Enum as SQLEnum
from colmena.core.database import Base
import enum
import uuid


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class VisitState(str, enum.Enum):
    """Enum for visit lifecycle state. Only ever advances in this order."""
    PENDING = "pending"
    ARRIVED = "arrived"
    DEPARTED = "departed"


class Visit(Base):
    """
    Expected visit registered by a resident.
    The QR token is the only key the security checkpoint scans with.
    """
    __tablename__ = "visits"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    condominium_id = Column(Uuid, ForeignKey("condominiums.id", ondelete="CASCADE"), nullable=False, index=True)
    resident_id = Column(Uuid, ForeignKey("residents.id", ondelete="CASCADE"), nullable=False, index=True)
    family_member_id = Column(Uuid, ForeignKey("family_members.id", ondelete="SET NULL"), nullable=True)
    visitor_name = Column(String(200), nullable=False)
    expected_at = Column(DateTime(timezone=True), nullable=False)
    qr_token = Column(String(100), unique=True, nullable=False, index=True)
    state = Column(
        SQLEnum(VisitState, values_callable=lambda states: [s.value for s in states], native_enum=False, length=50),
        default=VisitState.PENDING,
        nullable=False,
    )
    arrived_at = Column(DateTime(timezone=True), nullable=True)
    departed_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Visit(id={self.id}, visitor='{self.visitor_name}', state='{self.state}')>"
