"""
colmena/repositories/visit_repository.py

Data access for visits and the records a visit references.

Reads by token, id, condominium and resident; insert; and the conditional
state update. Transition rules and token generation live in the services.
"""
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from colmena.models.condominium import Condominium
from colmena.models.family_member import FamilyMember
from colmena.models.resident import Resident
from colmena.models.unit import Unit
from colmena.models.visit import Visit, VisitState


# === Visit reads ===

def find_by_token(db: Session, qr_token: str) -> Optional[Visit]:
    return (
        db.query(Visit)
        .filter(Visit.qr_token == qr_token)
        .populate_existing()
        .first()
    )


def find_by_id(db: Session, visit_id: UUID) -> Optional[Visit]:
    """
    Fetch a visit by id, always reloading its columns from the database so
    a row changed by another session is not served from the identity map.
    """
    return db.get(Visit, visit_id, populate_existing=True)


def list_by_condominium(db: Session, condominium_id: UUID) -> List[Visit]:
    return (
        db.query(Visit)
        .filter(Visit.condominium_id == condominium_id)
        .order_by(Visit.created_at)
        .all()
    )


def list_by_resident(db: Session, resident_id: UUID) -> List[Visit]:
    return (
        db.query(Visit)
        .filter(Visit.resident_id == resident_id)
        .order_by(Visit.created_at)
        .all()
    )


# === Visit writes ===

def insert(db: Session, visit: Visit) -> Visit:
    """Persist a new visit and return it refreshed from the database."""
    db.add(visit)
    db.flush()
    db.commit()
    db.refresh(visit)
    return visit


def update_state(db: Session, visit_id: UUID, expected_state: VisitState, values: dict) -> bool:
    """
    Apply ``values`` to the visit only if it is still in ``expected_state``.

    Compare-and-swap on the state column: the WHERE clause carries the state
    the caller read, so of two racing writers exactly one matches a row.

    Returns:
        True if the row was updated, False if the state had already moved on.
    """
    result = db.execute(
        update(Visit)
        .where(Visit.id == visit_id, Visit.state == expected_state)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1


# === Referential lookups ===

def condominium_exists(db: Session, condominium_id: UUID) -> bool:
    return db.get(Condominium, condominium_id) is not None


def resident_exists(db: Session, resident_id: UUID) -> bool:
    return db.get(Resident, resident_id) is not None


def family_member_exists(db: Session, family_member_id: UUID) -> bool:
    return db.get(FamilyMember, family_member_id) is not None


def get_resident_with_unit(db: Session, resident_id: UUID) -> Optional[Tuple[Resident, Optional[Unit]]]:
    """Resident plus its unit (None when unassigned), or None if the resident is gone."""
    row = (
        db.query(Resident, Unit)
        .outerjoin(Unit, Unit.id == Resident.unit_id)
        .filter(Resident.id == resident_id)
        .first()
    )
    if row is None:
        return None
    resident, unit = row
    return resident, unit


__all__ = [
    "find_by_token",
    "find_by_id",
    "list_by_condominium",
    "list_by_resident",
    "insert",
    "update_state",
    "condominium_exists",
    "resident_exists",
    "family_member_exists",
    "get_resident_with_unit",
]
