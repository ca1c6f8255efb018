"""
Visit Service
Registers expected visits and advances them through QR scans
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from colmena.core.config import settings
from colmena.core.errors import (
    AppError,
    ConcurrentTransitionError,
    InvalidStateTransition,
    NotFoundError,
    VisitExpiredError,
)
from colmena.models.user import User
from colmena.models.visit import Visit, VisitState, as_utc, utcnow
from colmena.repositories import visit_repository
from colmena.schemas.visit import ResidentSnapshot, VisitCreate
from colmena.services.visit_state import apply_transition

logger = logging.getLogger(__name__)

QR_TOKEN_BYTES = 16  # 128 bits, 32 hex characters
QR_TOKEN_ATTEMPTS = 3

UNKNOWN_TOKEN_MESSAGE = "Invalid QR token or visit not found"


def generate_qr_token() -> str:
    """Fresh URL-safe token for a visit QR code."""
    return secrets.token_hex(QR_TOKEN_BYTES)


@dataclass
class ScanResult:
    visit: Visit
    new_state: VisitState
    resident: Optional[ResidentSnapshot]


class VisitService:
    """
    Visit operations for one database session.

    Every method takes the authenticated caller explicitly. Authorization
    has already been decided by the route guards; the caller is only
    recorded in the logs.
    """

    def __init__(self, db: Session):
        self.db = db

    def create_visit(self, caller: User, data: VisitCreate) -> Visit:
        """
        Register an expected visit and mint its QR token.

        Args:
            caller: Authenticated user registering the visit
            data: Validated visit payload

        Returns:
            The persisted visit, state ``pending``

        Raises:
            NotFoundError: If the condominium, resident or family member does not exist
        """
        if not visit_repository.condominium_exists(self.db, data.condominium_id):
            raise NotFoundError("Condominium not found")
        if not visit_repository.resident_exists(self.db, data.resident_id):
            raise NotFoundError("Resident not found")
        if data.family_member_id and not visit_repository.family_member_exists(self.db, data.family_member_id):
            raise NotFoundError("Family member not found")

        for attempt in range(1, QR_TOKEN_ATTEMPTS + 1):
            visit = Visit(
                condominium_id=data.condominium_id,
                resident_id=data.resident_id,
                family_member_id=data.family_member_id,
                visitor_name=data.visitor_name,
                expected_at=as_utc(data.expected_at),
                qr_token=generate_qr_token(),
                state=VisitState.PENDING,
                notes=data.notes,
            )
            try:
                visit = visit_repository.insert(self.db, visit)
            except IntegrityError:
                self.db.rollback()
                if visit_repository.find_by_token(self.db, visit.qr_token) is None:
                    raise
                logger.warning(f"QR token collision on attempt {attempt}, regenerating")
                continue

            logger.info(f"Visit created: {visit.id} for resident {visit.resident_id} by user {caller.id}")
            return visit

        raise AppError("Could not issue a unique QR token")

    def scan(self, caller: User, qr_token: str) -> ScanResult:
        """
        Advance the visit holding ``qr_token`` by one state.

        Raises:
            NotFoundError: If no visit holds the token
            VisitExpiredError: If the pending expiry policy is on and the visit is past it
            InvalidStateTransition: If the visit already departed
            ConcurrentTransitionError: If another scan moved the visit first
        """
        visit = visit_repository.find_by_token(self.db, qr_token)
        if visit is None:
            logger.warning("QR scan with unknown token")
            raise NotFoundError(UNKNOWN_TOKEN_MESSAGE)

        current = VisitState(visit.state)
        now = utcnow()
        self._check_not_expired(visit, current, now)

        try:
            values = apply_transition(current, now)
        except InvalidStateTransition:
            logger.warning(f"QR scan rejected: visit {visit.id} already {current.value}")
            raise

        if not visit_repository.update_state(self.db, visit.id, current, values):
            if visit_repository.find_by_id(self.db, visit.id) is None:
                raise NotFoundError(UNKNOWN_TOKEN_MESSAGE)
            logger.warning(f"QR scan lost a race: visit {visit.id} left {current.value} concurrently")
            raise ConcurrentTransitionError()

        updated = visit_repository.find_by_id(self.db, visit.id)
        new_state = VisitState(updated.state)
        logger.info(f"QR scanned: visit {updated.id} -> {new_state.value} by user {caller.id}")

        return ScanResult(
            visit=updated,
            new_state=new_state,
            resident=self._resident_snapshot(updated.resident_id),
        )

    def get_visit(self, caller: User, visit_id: UUID) -> Visit:
        visit = visit_repository.find_by_id(self.db, visit_id)
        if visit is None:
            raise NotFoundError("Visit not found")
        return visit

    def list_by_condominium(self, caller: User, condominium_id: UUID) -> List[Visit]:
        return visit_repository.list_by_condominium(self.db, condominium_id)

    def list_by_resident(self, caller: User, resident_id: UUID) -> List[Visit]:
        return visit_repository.list_by_resident(self.db, resident_id)

    def _check_not_expired(self, visit: Visit, current: VisitState, now: datetime) -> None:
        ttl_hours = settings.visit_pending_ttl_hours
        if ttl_hours is None or current != VisitState.PENDING:
            return
        if as_utc(visit.expected_at) + timedelta(hours=ttl_hours) < now:
            logger.warning(f"QR scan rejected: visit {visit.id} pending past its {ttl_hours}h window")
            raise VisitExpiredError()

    def _resident_snapshot(self, resident_id: UUID) -> Optional[ResidentSnapshot]:
        row = visit_repository.get_resident_with_unit(self.db, resident_id)
        if row is None:
            return None
        resident, unit = row
        return ResidentSnapshot(
            name=resident.name,
            unit_id=resident.unit_id,
            unit_number=unit.number if unit else None,
        )
