from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List, Optional
from datetime import datetime
from uuid import UUID

from colmena.models.visit import VisitState, as_utc


class VisitCreate(BaseModel):
    """Schema for registering an expected visit"""
    condominium_id: UUID = Field(..., description="Condominium the visit belongs to")
    resident_id: UUID = Field(..., description="Resident expecting the visitor")
    visitor_name: str = Field(..., min_length=1, max_length=200, description="Display name of the visitor")
    expected_at: datetime = Field(..., description="When the visit is expected (ISO 8601)")
    family_member_id: Optional[UUID] = Field(None, description="Household member the visit is for")
    notes: Optional[str] = Field(None, description="Free text notes for the checkpoint")

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("notes")
    @classmethod
    def blank_notes_are_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class VisitResponse(BaseModel):
    """Schema for visit response"""
    id: UUID
    condominium_id: UUID
    resident_id: UUID
    family_member_id: Optional[UUID] = None
    visitor_name: str
    expected_at: datetime
    qr_token: str
    state: VisitState
    arrived_at: Optional[datetime] = None
    departed_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("expected_at", "arrived_at", "departed_at", "created_at", mode="after")
    @classmethod
    def timestamps_in_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # SQLite hands back naive values for timezone-aware columns
        return as_utc(v) if v is not None else None


class ResidentSnapshot(BaseModel):
    """Resident details shown to the checkpoint operator on scan"""
    name: str
    unit_id: Optional[UUID] = None
    unit_number: Optional[str] = None


class VisitEnvelope(BaseModel):
    status: str = "success"
    message: Optional[str] = None
    visit: VisitResponse


class VisitListResponse(BaseModel):
    status: str = "success"
    results: int
    visits: List[VisitResponse]


class ScanResponse(BaseModel):
    """Schema for the scan response: updated visit plus the new state"""
    status: str = "success"
    message: str
    state: VisitState
    visit: VisitResponse
    resident: Optional[ResidentSnapshot] = None
