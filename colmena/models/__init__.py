from colmena.models.user import User, UserRole
from colmena.models.condominium import Condominium
from colmena.models.unit import Unit
from colmena.models.resident import Resident
from colmena.models.family_member import FamilyMember
from colmena.models.visit import Visit, VisitState

__all__ = [
    "User",
    "UserRole",
    "Condominium",
    "Unit",
    "Resident",
    "FamilyMember",
    "Visit",
    "VisitState",
]
