"""
Payment Domain Models

Global payment profile, commission split settings, seller payouts,
PIX payments and gateway payments.

Author: TM3
Date: 2026-02-09
"""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field

from markettech.domain.base import CamelModel, to_float


PAYOUT_STATUSES = ("PENDING", "PAID", "CANCELLED")
SUPPORTED_GATEWAYS = ("STRIPE", "MERCADO_PAGO", "PAGSEGURO")
DEFAULT_PAYMENT_METHODS = ["PIX", "BANK_TRANSFER"]

PROFILE_REQUIRED_FIELDS = (
    "company_name", "cnpj", "email", "address", "city", "state", "zip_code",
    "bank_name", "bank_code", "account_type", "account_number",
    "agency_number", "account_holder",
)


class GlobalPaymentProfile(CamelModel):
    id: int
    company_name: str
    cnpj: str
    email: str
    phone: Optional[str] = None
    address: str
    city: str
    state: str
    zip_code: str
    country: str = "Brasil"
    bank_name: str
    bank_code: str
    account_type: str
    account_number: str
    agency_number: str
    account_holder: str
    pix_key: Optional[str] = None
    pix_key_type: Optional[str] = None
    payment_methods: Optional[List[str]] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class GlobalPaymentProfileInput(CamelModel):
    company_name: Optional[str] = None
    cnpj: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    bank_name: Optional[str] = None
    bank_code: Optional[str] = None
    account_type: Optional[str] = None
    account_number: Optional[str] = None
    agency_number: Optional[str] = None
    account_holder: Optional[str] = None
    pix_key: Optional[str] = None
    pix_key_type: Optional[str] = None
    payment_methods: Optional[List[str]] = None

    def missing_fields(self) -> List[str]:
        return [name for name in PROFILE_REQUIRED_FIELDS if not (getattr(self, name) or "").strip()]


class CommissionSettings(CamelModel):
    total_percentage: float = 50
    owner_percentage: float = 20
    worker_percentage: float = 20
    store_percentage: float = 10

    @classmethod
    def from_model(cls, row) -> "CommissionSettings":
        return cls(
            total_percentage=to_float(row.total_percentage),
            owner_percentage=to_float(row.owner_percentage),
            worker_percentage=to_float(row.worker_percentage),
            store_percentage=to_float(row.store_percentage),
        )


class CommissionSettingsInput(CamelModel):
    total_percentage: float = Field(..., ge=0, le=100)
    owner_percentage: float = Field(..., ge=0, le=100)
    worker_percentage: float = Field(..., ge=0, le=100)
    store_percentage: float = Field(..., ge=0, le=100)


class SellerPayout(CamelModel):
    id: int
    seller_id: int
    order_id: int
    order_item_id: Optional[int] = None
    amount: float
    commission: float
    status: str
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    order: Optional[dict] = None

    @classmethod
    def from_model(cls, payout) -> "SellerPayout":
        order = payout.order
        return cls(
            id=payout.id,
            seller_id=payout.seller_id,
            order_id=payout.order_id,
            order_item_id=payout.order_item_id,
            amount=to_float(payout.amount),
            commission=to_float(payout.commission),
            status=payout.status,
            paid_at=payout.paid_at,
            created_at=payout.created_at,
            order={
                "id": order.id,
                "customerName": order.customer_name,
                "customerEmail": order.customer_email,
                "total": to_float(order.total),
                "status": order.status,
                "createdAt": order.created_at,
            } if order else None,
        )


class PayoutStatusUpdate(CamelModel):
    payout_id: Optional[int] = None
    status: Optional[str] = None


class PixPayment(CamelModel):
    id: str
    order_id: int
    amount: float
    description: Optional[str] = None
    pix_key: Optional[str] = None
    pix_code: Optional[str] = None
    status: str
    expires_at: datetime
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, payment) -> "PixPayment":
        return cls(
            id=payment.id,
            order_id=payment.order_id,
            amount=to_float(payment.amount),
            description=payment.description,
            pix_key=payment.pix_key,
            pix_code=payment.pix_code,
            status=payment.status,
            expires_at=payment.expires_at,
            paid_at=payment.paid_at,
            created_at=payment.created_at,
        )


class PixPaymentCreate(CamelModel):
    order_id: Optional[int] = None
    amount: Optional[float] = None
    description: Optional[str] = None


class PixPaymentSimulate(CamelModel):
    payment_id: Optional[str] = None


class GatewayPayment(CamelModel):
    id: int
    order_id: int
    gateway: str
    transaction_id: str
    amount: float
    currency: str
    status: str
    confirmed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, payment) -> "GatewayPayment":
        return cls(
            id=payment.id,
            order_id=payment.order_id,
            gateway=payment.gateway,
            transaction_id=payment.transaction_id,
            amount=to_float(payment.amount),
            currency=payment.currency,
            status=payment.status,
            confirmed_at=payment.confirmed_at,
            created_at=payment.created_at,
        )


class GatewayPaymentCreate(CamelModel):
    order_id: Optional[int] = None
    gateway: Optional[str] = None


class GatewayConfirm(CamelModel):
    gateway: Optional[str] = None
    transaction_id: Optional[str] = None
    details: Optional[Any] = None
