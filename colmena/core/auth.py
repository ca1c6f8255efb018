import bcrypt
from jose import jwt, JWTError, ExpiredSignatureError
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from colmena.core.config import settings
from colmena.core.database import get_db
from colmena.models.user import User, UserRole
from colmena.schemas.user import TokenData


# Security scheme for bearer token
security = HTTPBearer()


class AuthUtils:
    """Utility class for authentication operations"""

    @staticmethod
    def hash_password(password: str) -> str:
        """
        Hash a plain text password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password string
        """
        salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
        hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
        return hashed.decode('utf-8')

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """
        Verify a plain text password against a hashed password.

        Args:
            plain_password: Plain text password to verify
            hashed_password: Hashed password from database

        Returns:
            True if password matches, False otherwise
        """
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )

    @staticmethod
    def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a JWT access token for a user.

        Args:
            user: Authenticated user
            expires_delta: Optional expiration time delta

        Returns:
            Encoded JWT token string
        """
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(hours=settings.JWT_EXPIRATION_HOURS)
        )
        to_encode = {
            "sub": str(user.id),
            "email": user.email,
            "role": UserRole(user.role).value,
            "exp": expire,
        }
        return jwt.encode(
            to_encode,
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM
        )

    @staticmethod
    def decode_token(token: str) -> TokenData:
        """
        Decode and validate a JWT token.

        Args:
            token: JWT token string

        Returns:
            TokenData object with user_id and role

        Raises:
            HTTPException: If token is invalid or expired
        """
        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET,
                algorithms=[settings.JWT_ALGORITHM]
            )
        except ExpiredSignatureError:
            raise _unauthorized("Token expired")
        except JWTError:
            raise _unauthorized("Invalid token")

        subject = payload.get("sub")
        role = payload.get("role")
        if subject is None or role is None:
            raise _unauthorized("Invalid token")

        try:
            return TokenData(user_id=UUID(subject), role=UserRole(role))
        except ValueError:
            raise _unauthorized("Invalid token")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Dependency to get the current authenticated user.

    Args:
        credentials: HTTP bearer token credentials
        db: Database session

    Returns:
        User object of the authenticated caller

    Raises:
        HTTPException: If authentication fails
    """
    token_data = AuthUtils.decode_token(credentials.credentials)

    user = db.get(User, token_data.user_id)
    if user is None:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive account"
        )

    return user


def require_roles(*roles: UserRole):
    """
    Build a dependency that only lets the given roles through.

    The role is read from the stored user record.
    """
    allowed = {UserRole(role) for role in roles}

    def _check_role(current_user: User = Depends(get_current_user)) -> User:
        if UserRole(current_user.role) not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to perform this action"
            )
        return current_user

    return _check_role
