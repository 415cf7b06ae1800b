"""
Pytest fixtures and configuration for MarketTech Backend tests

Every test gets a fresh in-memory SQLite database shared by the test
session and the API (StaticPool keeps a single connection alive).

Author: TM3
Date: 2025-10-17
Updated: 2026-02-09 (SQLite + TestClient fixtures)
"""
import os

# Settings are read at import time
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from markettech import models
from markettech.core.auth import ROLE_ADMIN, ROLE_ADMIN_VENDAS, ROLE_CLIENT, create_access_token, hash_password
from markettech.core.cache import clear_all_cache
from markettech.core.database import Base, get_db
from markettech.core.performance import performance_monitor
from markettech.core.rate_limit import login_limiter, rate_limiter
from markettech.main import app

TEST_PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def reset_in_memory_state():
    """Cache, rate limiter and metrics are process-wide; start each test clean"""
    clear_all_cache()
    rate_limiter.reset()
    login_limiter.reset()
    performance_monitor.reset()
    yield
    clear_all_cache()


@pytest.fixture(scope="session")
def password_hash():
    """bcrypt is slow; hash the shared test password once"""
    return hash_password(TEST_PASSWORD)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    """
    Session for arranging data and checking results

    Call db_session.expire_all() after an API call before reading rows
    the request changed.
    """
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# =============================================================================
# Users and tokens
# =============================================================================

def _create_user(db_session, password_hash, email, name, role):
    user = models.User(email=email, name=name, role=role, password=password_hash)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def admin_user(db_session, password_hash):
    return _create_user(db_session, password_hash, "admin@markettech.com", "Administrador", ROLE_ADMIN)


@pytest.fixture
def seller_user(db_session, password_hash):
    return _create_user(db_session, password_hash, "vendas@markettech.com", "Equipe de Vendas", ROLE_ADMIN_VENDAS)


@pytest.fixture
def other_seller(db_session, password_hash):
    return _create_user(db_session, password_hash, "vendas2@markettech.com", "Outra Loja", ROLE_ADMIN_VENDAS)


@pytest.fixture
def client_user(db_session, password_hash):
    return _create_user(db_session, password_hash, "cliente@ejemplo.com", "Cliente Ejemplo", ROLE_CLIENT)


def auth_headers(user) -> dict:
    token = create_access_token(user.id, user.email, user.role, user.name)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture
def seller_headers(seller_user):
    return auth_headers(seller_user)


@pytest.fixture
def client_headers(client_user):
    return auth_headers(client_user)


# =============================================================================
# Catalog and payment data
# =============================================================================

@pytest.fixture
def make_product(db_session, seller_user):
    """Factory for products owned by the seller unless user_id is given"""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        images = overrides.pop("images", ["products/sample.jpg"])
        fields = {
            "title": f"Produto {counter['n']}",
            "description": "Produto de teste",
            "price": 100.0,
            "condition": "NEW",
            "stock": 10,
            "status": "ACTIVE",
            "categories": "Smartphones",
            "manufacturer": "Apple",
            "manufacturer_code": f"TEST-{counter['n']:04d}",
            "user_id": seller_user.id,
        }
        fields.update(overrides)
        product = models.Product(**fields)
        for index, path in enumerate(images):
            product.images.append(models.ProductImage(path=path, filename=path.rsplit("/", 1)[-1], order=index))
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _make


@pytest.fixture
def payment_profile(db_session):
    profile = models.GlobalPaymentProfile(
        company_name="MarketTech Comércio Ltda",
        cnpj="12.345.678/0001-90",
        email="financeiro@markettech.com",
        address="Rua XV de Novembro, 1000",
        city="Curitiba",
        state="PR",
        zip_code="80020-310",
        country="Brasil",
        bank_name="Banco do Brasil",
        bank_code="001",
        account_type="CORRENTE",
        account_number="12345-6",
        agency_number="1234",
        account_holder="MarketTech Comércio Ltda",
        pix_key="financeiro@markettech.com",
        pix_key_type="EMAIL",
        payment_methods=["PIX", "BANK_TRANSFER"],
        is_active=True,
    )
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


@pytest.fixture
def sample_order_payload():
    """Checkout body; items are filled in by each test"""
    return {
        "customerName": "Cliente Ejemplo",
        "customerEmail": "cliente@ejemplo.com",
        "customerPhone": "+55 41 99999-0003",
        "customerAddress": "Rua das Flores, 123, Curitiba",
        "paymentMethod": "DIRECT_SELLER",
        "items": [],
    }
