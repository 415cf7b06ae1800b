#!/usr/bin/env python3
"""
Seed the MarketTech database with demo data

Creates the three demo accounts, six sample products with images, the
default site configs, the commission split and a global payment profile.
Rows that already exist are skipped, so the script can be run repeatedly.

Usage:
    python3 scripts/seed_database.py

Author: TM3
Date: 2026-02-09
"""
import os
import sys
from typing import Dict, List

# Add backend directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv()

from sqlalchemy.orm import Session

from markettech.core.auth import ROLE_ADMIN, ROLE_ADMIN_VENDAS, ROLE_CLIENT, hash_password
from markettech.core.database import SessionLocal, init_db, utcnow
from markettech.domain.payment import DEFAULT_PAYMENT_METHODS
from markettech.models import Product, User
from markettech.repositories.payment_repository import PaymentRepository
from markettech.repositories.product_repository import ProductRepository
from markettech.repositories.site_config_repository import SiteConfigRepository


DEMO_USERS = [
    {"email": "admin@markettech.com", "password": "admin123", "name": "Administrador", "role": ROLE_ADMIN, "phone": "+55 41 99999-0001"},
    {"email": "vendas@markettech.com", "password": "vendas123", "name": "Equipe de Vendas", "role": ROLE_ADMIN_VENDAS, "phone": "+55 41 99999-0002"},
    {"email": "cliente@ejemplo.com", "password": "client123", "name": "Cliente Ejemplo", "role": ROLE_CLIENT, "phone": "+55 41 99999-0003"},
]

SAMPLE_PRODUCTS: List[Dict] = [
    {
        "title": "iPhone 15 Pro Max 256GB",
        "description": "El iPhone más avanzado con chip A17 Pro y cámara de 48MP. Diseño premium en titanio con pantalla Super Retina XDR de 6.7 pulgadas.",
        "price": 1299.99, "supplier_price": 950.00, "condition": "NEW", "aesthetic_condition": 10,
        "specifications": 'Pantalla 6.7" Super Retina XDR, Chip A17 Pro, 256GB almacenamiento, iOS 17, Cámara principal 48MP, Resistencia al agua IP68',
        "categories": "Smartphones,Apple", "manufacturer": "Apple", "model": "iPhone 15 Pro Max",
        "manufacturer_code": "SEED-IPHONE15PM-256", "stock": 10,
        "image": "products/iphone-15-pro-max.jpg",
    },
    {
        "title": 'MacBook Pro M3 14"',
        "description": "Laptop profesional con chip M3 y pantalla Liquid Retina XDR. Perfecta para trabajo profesional y creativo.",
        "price": 1999.99, "supplier_price": 1500.00, "condition": "USED", "aesthetic_condition": 9,
        "specifications": 'Chip M3, 16GB RAM, 512GB SSD, macOS Sonoma, Pantalla Liquid Retina XDR 14.2"',
        "categories": "Notebooks,Apple", "manufacturer": "Apple", "model": "MacBook Pro 14",
        "manufacturer_code": "SEED-MBP-M3-14", "stock": 3,
        "image": "products/macbook-pro-m3.jpg",
    },
    {
        "title": "AirPods Pro 2da Gen",
        "description": "Auriculares inalámbricos con cancelación activa de ruido y audio espacial.",
        "price": 249.99, "supplier_price": 160.00, "condition": "NEW", "aesthetic_condition": 10,
        "specifications": "Cancelación activa de ruido, Audio espacial, Resistencia al agua IPX4, Hasta 6 horas de audio",
        "categories": "Audio,Apple", "manufacturer": "Apple", "model": "AirPods Pro 2",
        "manufacturer_code": "SEED-AIRPODS-PRO2", "stock": 25,
        "image": "products/airpods-pro-2.jpg",
    },
    {
        "title": "Samsung Galaxy S24 Ultra",
        "description": "Smartphone Android con S Pen y cámara de 200MP. El dispositivo más potente de Samsung.",
        "price": 1199.99, "supplier_price": 880.00, "condition": "USED", "aesthetic_condition": 8,
        "specifications": 'Pantalla 6.8" Dynamic AMOLED 2X, Snapdragon 8 Gen 3, 256GB, S Pen incluido, Cámara 200MP',
        "categories": "Smartphones,Samsung", "manufacturer": "Samsung", "model": "Galaxy S24 Ultra",
        "manufacturer_code": "SEED-GALAXY-S24U", "stock": 4,
        "image": "products/galaxy-s24-ultra.jpg",
    },
    {
        "title": 'iPad Pro 12.9" M2',
        "description": "Tablet profesional con chip M2 y pantalla Liquid Retina XDR. Ideal para creativos y profesionales.",
        "price": 1099.99, "supplier_price": 800.00, "condition": "NEW", "aesthetic_condition": 10,
        "specifications": 'Chip M2, 128GB, WiFi + Cellular, Pantalla Liquid Retina XDR 12.9", Compatible con Apple Pencil',
        "categories": "Tablets,Apple", "manufacturer": "Apple", "model": "iPad Pro 12.9",
        "manufacturer_code": "SEED-IPADPRO-M2-129", "stock": 6,
        "image": "products/ipad-pro-m2.jpg",
    },
    {
        "title": "Sony WH-1000XM5",
        "description": "Auriculares over-ear con cancelación de ruido líder en la industria y 30 horas de batería.",
        "price": 399.99, "supplier_price": 260.00, "condition": "USED", "aesthetic_condition": 9,
        "specifications": "Cancelación de ruido líder, 30h batería, Carga rápida, Audio de alta resolución",
        "categories": "Audio,Sony", "manufacturer": "Sony", "model": "WH-1000XM5",
        "manufacturer_code": "SEED-SONY-XM5", "stock": 0,
        "image": "products/sony-wh1000xm5.jpg",
    },
]

DEMO_PAYMENT_PROFILE = {
    "company_name": "MarketTech Comércio de Eletrônicos Ltda",
    "cnpj": "12.345.678/0001-90",
    "email": "financeiro@markettech.com",
    "phone": "+55 41 3333-0000",
    "address": "Rua XV de Novembro, 1000",
    "city": "Curitiba",
    "state": "PR",
    "zip_code": "80020-310",
    "country": "Brasil",
    "bank_name": "Banco do Brasil",
    "bank_code": "001",
    "account_type": "CORRENTE",
    "account_number": "12345-6",
    "agency_number": "1234",
    "account_holder": "MarketTech Comércio de Eletrônicos Ltda",
    "pix_key": "financeiro@markettech.com",
    "pix_key_type": "EMAIL",
    "payment_methods": DEFAULT_PAYMENT_METHODS,
}


def seed_users(db: Session) -> Dict[str, User]:
    users = {}
    for data in DEMO_USERS:
        user = db.query(User).filter(User.email == data["email"]).first()
        if user:
            print(f"  ⏭️  Usuario ya existe: {data['email']}")
        else:
            fields = dict(data)
            fields["password"] = hash_password(fields["password"])
            user = User(**fields)
            db.add(user)
            db.commit()
            db.refresh(user)
            print(f"  ✅ Usuario creado: {user.email} ({user.role})")
        users[data["role"]] = user
    return users


def seed_products(db: Session, owner: User) -> int:
    repo = ProductRepository(db)
    created = 0
    for data in SAMPLE_PRODUCTS:
        fields = dict(data)
        image = fields.pop("image")

        if repo.find_by_manufacturer_code(fields["manufacturer_code"]):
            print(f"  ⏭️  Producto ya existe: {fields['title']}")
            continue

        product = repo.create(
            images=[{"path": image, "alt": fields["title"]}],
            status="ACTIVE",
            published_at=utcnow(),
            user_id=owner.id,
            **fields,
        )
        created += 1
        print(f"  ✅ Producto creado: {product.title}")
    return created


def seed_settings(db: Session) -> None:
    configs = SiteConfigRepository(db)
    rows = configs.seed_defaults()
    print(f"  ✅ Configuraciones del sitio: {len(rows)}")

    if configs.get_commission_settings() is None:
        configs.save_commission_settings(
            total_percentage=50, owner_percentage=20, worker_percentage=20, store_percentage=10,
        )
        print("  ✅ Configuración de comisiones creada")
    else:
        print("  ⏭️  Configuración de comisiones ya existe")

    payments = PaymentRepository(db)
    if payments.get_active_profile() is None:
        payments.replace_active_profile(**DEMO_PAYMENT_PROFILE)
        print("  ✅ Perfil de pago global creado")
    else:
        print("  ⏭️  Perfil de pago global ya existe")


def main():
    print("=" * 70)
    print("  🌱 SEED DE LA BASE DE DATOS")
    print("=" * 70)

    init_db()
    db = SessionLocal()
    try:
        print("\n  👤 USUARIOS:")
        users = seed_users(db)

        print("\n  📦 PRODUCTOS:")
        created = seed_products(db, users[ROLE_ADMIN_VENDAS])
        print(f"  Total creados: {created}")

        print("\n  ⚙️  CONFIGURACIÓN:")
        seed_settings(db)

        print("\n🎉 Seed completado exitosamente!")
        print("\nCredenciales de acceso:")
        for data in DEMO_USERS:
            print(f"  👤 {data['role']}: {data['email']} / {data['password']}")
    except Exception as e:
        db.rollback()
        print(f"\n❌ Error durante el seed: {e}")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
