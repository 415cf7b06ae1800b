#!/usr/bin/env python3
"""
Reset a user's password and optionally change the role

Usage:
    python3 scripts/fix_user_credentials.py --email admin@markettech.com --password admin123 [--role ADMIN]

Author: TM3
Date: 2026-02-09
"""
import os
import sys

# Add backend directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv()

from markettech.core.auth import VALID_ROLES, hash_password, verify_password
from markettech.core.database import SessionLocal
from markettech.models import User


def fix_credentials(email: str, password: str, role: str = None) -> bool:
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email).first()
        if user is None:
            print(f"❌ Usuario no encontrado: {email}")
            return False

        user.password = hash_password(password)
        if role:
            user.role = role
        db.commit()

        ok = verify_password(password, user.password)
        print(f"✅ Credenciales actualizadas para {user.email} (rol: {user.role})")
        print(f"   Verificación de contraseña: {'OK' if ok else 'FALLÓ'}")
        return ok
    finally:
        db.close()


def main():
    import argparse

    parser = argparse.ArgumentParser(
        description='Reset a user password (bcrypt) and optionally set the role'
    )
    parser.add_argument('--email', required=True, help='User email')
    parser.add_argument('--password', required=True, help='New plain-text password')
    parser.add_argument('--role', choices=VALID_ROLES, help='New role')

    args = parser.parse_args()

    if len(args.password) < 6:
        print("❌ La contraseña debe tener al menos 6 caracteres")
        sys.exit(1)

    if not fix_credentials(args.email, args.password, args.role):
        sys.exit(1)


if __name__ == "__main__":
    main()
