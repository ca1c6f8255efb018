from colmena.schemas.user import (
    UserLogin,
    UserResponse,
    LoginResponse,
    TokenData,
)
from colmena.schemas.visit import (
    VisitCreate,
    VisitResponse,
    ResidentSnapshot,
    VisitEnvelope,
    VisitListResponse,
    ScanResponse,
)

__all__ = [
    "UserLogin",
    "UserResponse",
    "LoginResponse",
    "TokenData",
    "VisitCreate",
    "VisitResponse",
    "ResidentSnapshot",
    "VisitEnvelope",
    "VisitListResponse",
    "ScanResponse",
]
