#!/usr/bin/env python3
"""
Print a quick report of the MarketTech database state

Checks connectivity, row counts per table, the admin account and the
active global payment profile.

Usage:
    python3 scripts/verify_system.py

Author: TM3
Date: 2026-02-09
"""
import os
import sys

# Add backend directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv()

from sqlalchemy import func

from markettech.core.auth import ROLE_ADMIN
from markettech.core.database import SessionLocal, check_database_connection
from markettech.models import (
    Notification, Order, OrderItem, Product, ProductImage, SellerPayout, SiteConfig, User,
)
from markettech.repositories.payment_repository import PaymentRepository

TABLES = [
    ("Usuarios", User),
    ("Productos", Product),
    ("Imágenes", ProductImage),
    ("Pedidos", Order),
    ("Items de pedido", OrderItem),
    ("Notificaciones", Notification),
    ("Liquidaciones", SellerPayout),
    ("Configuraciones", SiteConfig),
]


def main():
    print("=" * 70)
    print("  🔍 VERIFICACIÓN DEL SISTEMA")
    print("=" * 70)

    try:
        latency = check_database_connection()
        print(f"\n  ✅ Base de datos conectada ({latency} ms)")
    except Exception as e:
        print(f"\n  ❌ Sin conexión a la base de datos: {e}")
        sys.exit(1)

    db = SessionLocal()
    try:
        print("\n  📊 REGISTROS POR TABLA:")
        for label, model in TABLES:
            count = db.query(func.count(model.id)).scalar() or 0
            print(f"    {label:20s}: {count:6d}")

        admins = db.query(User).filter(User.role == ROLE_ADMIN).all()
        print("\n  👤 ADMINISTRADORES:")
        if admins:
            for admin in admins:
                print(f"    ✅ {admin.email}")
        else:
            print("    ❌ No hay usuarios ADMIN (ejecuta scripts/seed_database.py)")

        profile = PaymentRepository(db).get_active_profile()
        print("\n  💳 PERFIL DE PAGO GLOBAL:")
        if profile:
            print(f"    ✅ {profile.company_name} (PIX: {profile.pix_key or 'sin clave'})")
        else:
            print("    ❌ No hay perfil de pago activo; no se podrán crear pedidos")
    finally:
        db.close()


if __name__ == "__main__":
    main()
