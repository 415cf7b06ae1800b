"""
Authentication API endpoints for MarketTech
- Login / registration (bearer token issuing)
- Current user and password change
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from markettech.core.auth import (
    TokenUser,
    ROLE_CLIENT,
    create_access_token,
    get_current_user,
    hash_password,
    verify_password,
)
from markettech.core.database import get_db, utcnow
from markettech.core.errors import AppError, CommonErrors
from markettech.core.rate_limit import login_rate_limit
from markettech.domain.user import LoginRequest, PasswordChange, RegisterRequest, User
from markettech.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])

MIN_PASSWORD_LENGTH = 6


# =============================================================================
# Login / Register
# =============================================================================

@router.post("/login")
def login(
    body: LoginRequest,
    _: None = Depends(login_rate_limit),
    db: Session = Depends(get_db),
):
    """Exchange email + password for a bearer token"""
    if not body.email or not body.password:
        raise HTTPException(status_code=400, detail="Email y contraseña son requeridos")

    try:
        repo = UserRepository(db)
        user = repo.find_by_email(body.email)

        if user is None or not verify_password(body.password, user.password):
            logger.info(f"Failed login attempt for {body.email}")
            raise CommonErrors.INVALID_CREDENTIALS()

        user = repo.update(user, {"last_login_at": utcnow()})
        token = create_access_token(user.id, user.email, user.role, user.name)

        logger.info(f"User {user.id} logged in")
        return {"user": User.model_validate(user).to_dict(), "token": token}

    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error during login: {e}")
        raise HTTPException(status_code=500, detail=f"Error al iniciar sesión: {str(e)}")


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """Create a CLIENT account and return its token"""
    if not body.email or not body.password or not body.name:
        raise HTTPException(status_code=400, detail="Email, contraseña y nombre son requeridos")
    if len(body.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres",
        )

    try:
        repo = UserRepository(db)
        if repo.email_taken(body.email):
            raise HTTPException(status_code=400, detail="El usuario ya existe")
        if body.cpf and repo.cpf_taken(body.cpf):
            raise HTTPException(status_code=400, detail="El CPF ya está registrado")

        fields = body.model_dump(exclude={"password", "email"}, exclude_none=True)
        user = repo.create(
            email=body.email.strip().lower(),
            password=hash_password(body.password),
            role=ROLE_CLIENT,
            **fields,
        )
        token = create_access_token(user.id, user.email, user.role, user.name)

        logger.info(f"User {user.id} registered")
        return {"user": User.model_validate(user).to_dict(), "token": token}

    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error during registration: {e}")
        raise HTTPException(status_code=500, detail=f"Error al registrar usuario: {str(e)}")


# =============================================================================
# Current User
# =============================================================================

@router.get("/me")
def get_me(
    current_user: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get current user info"""
    user = UserRepository(db).find_by_id(current_user.id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return User.model_validate(user).to_dict()


@router.post("/me/change-password")
def change_password(
    body: PasswordChange,
    current_user: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Change the current user's password"""
    repo = UserRepository(db)
    user = repo.find_by_id(current_user.id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    if not verify_password(body.current_password, user.password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    if len(body.new_password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"New password must be at least {MIN_PASSWORD_LENGTH} characters",
        )

    repo.update(user, {"password": hash_password(body.new_password)})
    logger.info(f"User {user.id} changed password")
    return {"message": "Password changed successfully"}
