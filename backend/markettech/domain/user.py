"""
User Domain Models

Request bodies for auth/user endpoints and the public user representation
(never includes the password hash).

Author: TM3
Date: 2026-02-09
"""
from datetime import datetime
from typing import Optional

from pydantic import Field

from markettech.domain.base import CamelModel


class User(CamelModel):
    """User as returned by the API"""

    id: int = Field(..., description="User ID")
    email: str = Field(..., description="Login email")
    name: Optional[str] = None
    phone: Optional[str] = None
    cpf: Optional[str] = None
    birth_date: Optional[datetime] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    newsletter: Optional[bool] = False
    role: str = Field("CLIENT", description="ADMIN, ADMIN_VENDAS or CLIENT")
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserSummary(CamelModel):
    id: int
    name: Optional[str] = None
    email: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdate(CamelModel):
    """Fields a user may change on their own profile"""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    cpf: Optional[str] = None
    birth_date: Optional[datetime] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    newsletter: Optional[bool] = None


class RegisterRequest(ProfileUpdate):
    password: Optional[str] = None


class UserUpdate(ProfileUpdate):
    """Admin edit: profile fields plus role and password"""
    role: Optional[str] = None
    password: Optional[str] = None


class RoleUpdate(CamelModel):
    role: Optional[str] = None


class PasswordChange(CamelModel):
    current_password: str
    new_password: str
