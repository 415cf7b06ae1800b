"""
Users API Endpoints
Own profile for any user; account administration for ADMIN

Author: TM3
Date: 2026-02-09
"""
import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from markettech.core.auth import TokenUser, VALID_ROLES, get_current_user, hash_password, require_user_manager
from markettech.core.database import get_db
from markettech.domain.user import ProfileUpdate, RoleUpdate, User, UserUpdate
from markettech.models import User as UserRow
from markettech.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter()


def _profile_changes(body: ProfileUpdate) -> Dict:
    """Non-blank fields only; blank strings leave the value unchanged"""
    changes = {}
    for key, value in body.model_dump(exclude_unset=True, exclude={"password", "role"}).items():
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        changes[key] = value.strip() if isinstance(value, str) else value
    if "email" in changes:
        changes["email"] = changes["email"].lower()
    return changes


def _check_unique(repo: UserRepository, changes: Dict, user_id: int) -> None:
    if "email" in changes and repo.email_taken(changes["email"], exclude_user_id=user_id):
        raise HTTPException(status_code=400, detail="Email already exists")
    if "cpf" in changes and repo.cpf_taken(changes["cpf"], exclude_user_id=user_id):
        raise HTTPException(status_code=400, detail="CPF already exists")


def _get_user_or_404(repo: UserRepository, user_id: int) -> UserRow:
    user = repo.find_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# =============================================================================
# Own profile
# =============================================================================

@router.get("/profile")
def get_profile(
    current_user: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = _get_user_or_404(UserRepository(db), current_user.id)
    return {"user": User.model_validate(user).to_dict()}


@router.put("/profile")
def update_profile(
    body: ProfileUpdate,
    current_user: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update the caller's own profile"""
    repo = UserRepository(db)
    user = _get_user_or_404(repo, current_user.id)

    changes = _profile_changes(body)
    _check_unique(repo, changes, user.id)

    user = repo.update(user, changes)
    logger.info(f"User {user.id} updated profile fields: {', '.join(changes) or 'none'}")
    return {"message": "Perfil actualizado exitosamente", "user": User.model_validate(user).to_dict()}


# =============================================================================
# Administration (ADMIN only)
# =============================================================================

@router.get("")
def list_users(
    _: TokenUser = Depends(require_user_manager),
    db: Session = Depends(get_db),
):
    """List all users, newest first"""
    users = UserRepository(db).find_all()
    return {"users": [User.model_validate(user).to_dict() for user in users]}


@router.get("/{user_id}")
def get_user(
    user_id: int,
    _: TokenUser = Depends(require_user_manager),
    db: Session = Depends(get_db),
):
    user = _get_user_or_404(UserRepository(db), user_id)
    return {"user": User.model_validate(user).to_dict()}


@router.put("/{user_id}")
def update_user(
    user_id: int,
    body: UserUpdate,
    admin: TokenUser = Depends(require_user_manager),
    db: Session = Depends(get_db),
):
    """Edit any user; the password is only re-hashed when provided"""
    repo = UserRepository(db)
    user = _get_user_or_404(repo, user_id)

    changes = _profile_changes(body)
    _check_unique(repo, changes, user.id)

    if body.role:
        if body.role not in VALID_ROLES:
            raise HTTPException(status_code=400, detail="Invalid role")
        changes["role"] = body.role
    if body.password and body.password.strip():
        changes["password"] = hash_password(body.password)

    user = repo.update(user, changes)
    logger.info(f"Admin {admin.id} updated user {user.id}")
    return {"message": "User updated successfully", "user": User.model_validate(user).to_dict()}


@router.patch("/{user_id}")
def update_user_role(
    user_id: int,
    body: RoleUpdate,
    admin: TokenUser = Depends(require_user_manager),
    db: Session = Depends(get_db),
):
    if body.role not in VALID_ROLES:
        raise HTTPException(status_code=400, detail="Invalid role")

    repo = UserRepository(db)
    user = _get_user_or_404(repo, user_id)
    user = repo.update(user, {"role": body.role})

    logger.info(f"Admin {admin.id} set role of user {user.id} to {body.role}")
    return {"message": "Role updated successfully", "user": User.model_validate(user).to_dict()}


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    admin: TokenUser = Depends(require_user_manager),
    db: Session = Depends(get_db),
):
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")

    repo = UserRepository(db)
    user = _get_user_or_404(repo, user_id)
    repo.delete(user)

    logger.info(f"Admin {admin.id} deleted user {user_id}")
    return {"message": "User deleted successfully"}
