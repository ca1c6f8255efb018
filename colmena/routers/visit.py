from uuid import UUID
from fastapi import APIRouter, Depends, Path, Response, status
from sqlalchemy.orm import Session

from colmena.core.database import get_db
from colmena.core.auth import require_roles
from colmena.models.user import User, UserRole
from colmena.schemas.visit import (
    VisitCreate,
    VisitResponse,
    VisitEnvelope,
    VisitListResponse,
    ScanResponse,
)
from colmena.services.qr_service import qr_service
from colmena.services.visit_service import VisitService

router = APIRouter(prefix="/api/visits", tags=["Visits"])

ADMINS = (UserRole.ADMIN, UserRole.CONDO_ADMIN)


def get_visit_service(db: Session = Depends(get_db)) -> VisitService:
    return VisitService(db)


@router.post("", response_model=VisitEnvelope, status_code=status.HTTP_201_CREATED)
def create_visit(
    visit_data: VisitCreate,
    service: VisitService = Depends(get_visit_service),
    current_user: User = Depends(require_roles(*ADMINS, UserRole.RESIDENT))
):
    """
    Register an expected visit. The response carries the QR token the
    resident shares with the visitor.

    Raises:
        404 if the condominium, resident or family member does not exist
    """
    visit = service.create_visit(current_user, visit_data)
    return VisitEnvelope(
        message="Visit created successfully",
        visit=VisitResponse.model_validate(visit)
    )


@router.get("/condominium/{condominium_id}", response_model=VisitListResponse, status_code=status.HTTP_200_OK)
def get_visits_by_condominium(
    condominium_id: UUID,
    service: VisitService = Depends(get_visit_service),
    current_user: User = Depends(require_roles(*ADMINS, UserRole.SECURITY_WORKER))
):
    """Get every visit registered in a condominium."""
    visits = service.list_by_condominium(current_user, condominium_id)
    return VisitListResponse(
        results=len(visits),
        visits=[VisitResponse.model_validate(v) for v in visits]
    )


@router.get("/resident/{resident_id}", response_model=VisitListResponse, status_code=status.HTTP_200_OK)
def get_visits_by_resident(
    resident_id: UUID,
    service: VisitService = Depends(get_visit_service),
    current_user: User = Depends(require_roles(*ADMINS, UserRole.RESIDENT))
):
    """Get every visit registered for a resident."""
    visits = service.list_by_resident(current_user, resident_id)
    return VisitListResponse(
        results=len(visits),
        visits=[VisitResponse.model_validate(v) for v in visits]
    )


@router.patch("/scan/{qr_token}", response_model=ScanResponse, status_code=status.HTTP_200_OK)
def scan_qr(
    qr_token: str = Path(..., min_length=1, description="Token read from the visitor's QR code"),
    service: VisitService = Depends(get_visit_service),
    current_user: User = Depends(require_roles(*ADMINS, UserRole.SECURITY_WORKER))
):
    """
    Scan a visit QR code at the checkpoint.

    The first scan registers the arrival, the second the departure.
    Any further scan is rejected with 409.
    """
    result = service.scan(current_user, qr_token)
    return ScanResponse(
        message=f"Visit registered as: {result.new_state.value}",
        state=result.new_state,
        visit=VisitResponse.model_validate(result.visit),
        resident=result.resident
    )


@router.get("/{visit_id}", response_model=VisitEnvelope, status_code=status.HTTP_200_OK)
def get_visit(
    visit_id: UUID,
    service: VisitService = Depends(get_visit_service),
    current_user: User = Depends(require_roles(*ADMINS, UserRole.RESIDENT, UserRole.SECURITY_WORKER))
):
    """Get a visit by ID."""
    visit = service.get_visit(current_user, visit_id)
    return VisitEnvelope(visit=VisitResponse.model_validate(visit))


@router.get(
    "/{visit_id}/qr",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
def get_visit_qr_image(
    visit_id: UUID,
    service: VisitService = Depends(get_visit_service),
    current_user: User = Depends(require_roles(*ADMINS, UserRole.RESIDENT))
):
    """Render the visit's QR token as a PNG for the visitor to present."""
    visit = service.get_visit(current_user, visit_id)
    image = qr_service.generate_qr_code_image(visit.qr_token)
    return Response(content=image, media_type="image/png")
