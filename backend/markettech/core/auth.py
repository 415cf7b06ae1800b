"""
Authentication for MarketTech Backend
Issues and validates JWT bearer tokens and provides user context
"""
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from passlib.context import CryptContext
from pydantic import BaseModel

from markettech.core.config import settings
from markettech.core.database import utcnow


# Security scheme for bearer tokens
security = HTTPBearer(auto_error=False)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Roles
ROLE_ADMIN = "ADMIN"
ROLE_ADMIN_VENDAS = "ADMIN_VENDAS"
ROLE_CLIENT = "CLIENT"
VALID_ROLES = (ROLE_ADMIN, ROLE_ADMIN_VENDAS, ROLE_CLIENT)


class TokenUser(BaseModel):
    """User data extracted from JWT token"""
    id: int
    email: str
    name: Optional[str] = None
    role: str = ROLE_CLIENT


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return pwd_context.verify(plain_password, password_hash)
    except ValueError:
        # Hash con formato desconocido (ej. contraseña guardada en texto plano)
        return False


def is_any_admin(role: Optional[str]) -> bool:
    return role in (ROLE_ADMIN, ROLE_ADMIN_VENDAS)


def can_manage_users(role: Optional[str]) -> bool:
    return role == ROLE_ADMIN


def can_view_all_products(role: Optional[str]) -> bool:
    return role == ROLE_ADMIN


def create_access_token(user_id: int, email: str, role: str, name: Optional[str] = None) -> str:
    """
    Sign a token for the given user.

    Payload:
    {
        "userId": 1,
        "email": "admin@markettech.com",
        "role": "ADMIN",
        "name": "Administrador",
        "exp": 1234567890
    }
    """
    expires_at = utcnow() + timedelta(days=settings.JWT_EXPIRATION_DAYS)
    payload = {
        "userId": user_id,
        "email": email,
        "role": role,
        "name": name,
        "exp": expires_at,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a bearer token"""
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        if "expired" in str(e).lower():
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
                headers={"WWW-Authenticate": "Bearer"}
            )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"}
        )


def _user_from_payload(payload: dict) -> TokenUser:
    user_id = payload.get("userId")
    email = payload.get("email")

    if user_id is None or not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload: missing user id or email",
            headers={"WWW-Authenticate": "Bearer"}
        )

    return TokenUser(
        id=user_id,
        email=email,
        name=payload.get("name"),
        role=payload.get("role", ROLE_CLIENT)
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenUser:
    """
    Dependency that extracts and validates the current user from JWT.

    Usage:
        @router.get("/protected")
        async def protected_route(user: TokenUser = Depends(get_current_user)):
            return {"message": f"Hello {user.email}"}
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"}
        )

    payload = decode_token(credentials.credentials)
    return _user_from_payload(payload)


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[TokenUser]:
    """Optional authentication - returns None if no valid token provided."""
    if not credentials:
        return None

    try:
        payload = decode_token(credentials.credentials)
        return _user_from_payload(payload)
    except HTTPException:
        return None


def require_roles(*allowed_roles: str):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.delete("/users/{user_id}")
        def delete_user(
            user_id: int,
            user: TokenUser = Depends(require_roles("ADMIN"))
        ):
            pass
    """
    async def role_checker(
        user: TokenUser = Depends(get_current_user)
    ) -> TokenUser:
        if user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Acceso denegado"
            )
        return user

    return role_checker


# Convenience dependencies for common role requirements
require_admin = require_roles(ROLE_ADMIN)
require_any_admin = require_roles(ROLE_ADMIN, ROLE_ADMIN_VENDAS)
require_sales_admin = require_roles(ROLE_ADMIN_VENDAS)


async def require_user_manager(user: TokenUser = Depends(get_current_user)) -> TokenUser:
    """Only roles allowed to manage accounts (list, edit, delete users)"""
    if not can_manage_users(user.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Acceso denegado"
        )
    return user
