"""
User Repository - Data Access Layer for Users

Author: TM3
Date: 2026-02-09
"""
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from markettech.models import User


class UserRepository:
    """
    Repository for User data access

    All user queries are centralized here. Returns ORM rows; routers map
    them to domain.User (which never exposes the password hash).
    """

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()

    def find_all(self) -> List[User]:
        return self.db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()

    def email_taken(self, email: str, exclude_user_id: Optional[int] = None) -> bool:
        query = self.db.query(User.id).filter(func.lower(User.email) == email.strip().lower())
        if exclude_user_id is not None:
            query = query.filter(User.id != exclude_user_id)
        return query.first() is not None

    def cpf_taken(self, cpf: str, exclude_user_id: Optional[int] = None) -> bool:
        query = self.db.query(User.id).filter(User.cpf == cpf)
        if exclude_user_id is not None:
            query = query.filter(User.id != exclude_user_id)
        return query.first() is not None

    def create(self, **fields) -> User:
        user = User(**fields)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def update(self, user: User, fields: Dict) -> User:
        for key, value in fields.items():
            setattr(user, key, value)
        self.db.commit()
        self.db.refresh(user)
        return user

    def delete(self, user: User) -> None:
        self.db.delete(user)
        self.db.commit()

    def count(self) -> int:
        return self.db.query(func.count(User.id)).scalar() or 0

    def count_by_role(self) -> Dict[str, int]:
        rows = self.db.query(User.role, func.count(User.id)).group_by(User.role).all()
        return {role: count for role, count in rows}
