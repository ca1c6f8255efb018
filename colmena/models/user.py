from sqlalchemy import Column, String, Boolean, DateTime, Uuid, Enum as SQLEnum
from sqlalchemy.sql import func
from colmena.core.database import Base
import enum
import uuid


class UserRole(str, enum.Enum):
    """Roles carried in the access token and checked by the route guards"""
    ADMIN = "admin"
    CONDO_ADMIN = "condoAdmin"
    RESIDENT = "resident"
    SECURITY_WORKER = "securityWorker"


class User(Base):
    """
    User model for authentication and authorization.
    Stores credentials and the role used by the route guards.
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(
        SQLEnum(UserRole, values_callable=lambda roles: [r.value for r in roles], native_enum=False, length=50),
        default=UserRole.RESIDENT,
        nullable=False,
    )
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
