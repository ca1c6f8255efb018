from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from colmena.core.database import get_db
from colmena.core.auth import AuthUtils, get_current_user
from colmena.models.user import User, UserRole
from colmena.schemas.user import UserLogin, UserResponse, LoginResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
def login(
    login_data: UserLogin,
    db: Session = Depends(get_db)
):
    """
    Authenticate a user with email and plain text password.

    The password is verified against the bcrypt hash stored in the database.

    Args:
        login_data: Login credentials (email and password)
        db: Database session

    Returns:
        JWT access token and user information

    Raises:
        HTTPException: If credentials are invalid or account is inactive
    """
    user = db.query(User).filter(User.email == login_data.email.lower()).first()

    if not user or not AuthUtils.verify_password(login_data.password, user.hashed_password):
        logger.warning("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive. Please contact administrator."
        )

    access_token = AuthUtils.create_access_token(user)
    logger.info(f"User logged in: {user.id} ({UserRole(user.role).value})")

    return LoginResponse(
        access_token=access_token,
        user=UserResponse.model_validate(user)
    )


@router.get("/me", response_model=UserResponse, status_code=status.HTTP_200_OK)
def get_me(current_user: User = Depends(get_current_user)):
    """Get the currently authenticated user."""
    return UserResponse.model_validate(current_user)
