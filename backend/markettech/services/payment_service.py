"""
Payment Service
Global payment profile, seller payouts, PIX payments and gateway payments

PIX codes are static BR Code payloads (EMV "copia e cola") built from the
active payment profile's PIX key. Gateway payments are recorded locally and
confirmed through /payment-gateways/confirm.

Author: TM3
Date: 2026-02-09
"""
import logging
import secrets
import string
import time
import unicodedata
from datetime import timedelta
from typing import Dict, Optional

from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from markettech.core.cache import clear_product_cache, clear_user_cache
from markettech.core.database import utcnow
from markettech.core.errors import AppError, CommonErrors, ErrorType
from markettech.domain.payment import (
    GatewayConfirm, GatewayPayment, GatewayPaymentCreate,
    GlobalPaymentProfileInput, PayoutStatusUpdate,
    PixPayment as PixPaymentModel, PixPaymentCreate, SellerPayout as SellerPayoutModel,
    DEFAULT_PAYMENT_METHODS, PAYOUT_STATUSES, SUPPORTED_GATEWAYS,
)
from markettech.models import Order, Payment, PixPayment, SellerPayout
from markettech.repositories.payment_repository import PaymentRepository
from markettech.services.notification_service import NotificationService
from markettech.services.order_service import reserve_stock

logger = logging.getLogger(__name__)

PIX_EXPIRATION_MINUTES = 30
PIX_ID_ALPHABET = string.ascii_lowercase + string.digits


def _bad_request(message: str, code: str = "INVALID_INPUT") -> AppError:
    return AppError(ErrorType.VALIDATION, message, 400, None, code)


def _not_found(message: str, code: str = "NOT_FOUND") -> AppError:
    return AppError(ErrorType.NOT_FOUND, message, 404, None, code)


# ---------------------------------------------------------------------------
# PIX payload (BR Code)
# ---------------------------------------------------------------------------

def _emv(field_id: str, value: str) -> str:
    return f"{field_id}{len(value):02d}{value}"


def _ascii(value: str, max_length: int) -> str:
    normalized = unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    return normalized.upper()[:max_length] or "NA"


def crc16_ccitt(payload: str) -> str:
    """CRC16-CCITT (poly 0x1021, init 0xFFFF) as 4 uppercase hex digits"""
    crc = 0xFFFF
    for byte in payload.encode("utf-8"):
        crc ^= byte << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = ((crc << 1) ^ 0x1021) & 0xFFFF
            else:
                crc = (crc << 1) & 0xFFFF
    return f"{crc:04X}"


def build_pix_code(pix_key: str, amount: float, merchant_name: str, merchant_city: str, txid: str = "***") -> str:
    """Static PIX copy-and-paste payload with CRC"""
    account = _emv("00", "br.gov.bcb.pix") + _emv("01", pix_key)
    reference = "".join(ch for ch in txid if ch.isalnum())[:25] or "***"

    payload = (
        _emv("00", "01")
        + _emv("26", account)
        + _emv("52", "0000")
        + _emv("53", "986")
        + _emv("54", f"{amount:.2f}")
        + _emv("58", "BR")
        + _emv("59", _ascii(merchant_name, 25))
        + _emv("60", _ascii(merchant_city, 15))
        + _emv("62", _emv("05", reference))
        + "6304"
    )
    return payload + crc16_ccitt(payload)


def generate_pix_payment_id() -> str:
    """pix_<epoch_ms>_<9 lowercase alphanumerics>"""
    suffix = "".join(secrets.choice(PIX_ID_ALPHABET) for _ in range(9))
    return f"pix_{int(time.time() * 1000)}_{suffix}"


class PaymentService:
    """
    Service for payments

    Handles:
    - Global payment profile (one active at a time)
    - Seller payouts listing and status changes
    - PIX payment lifecycle (create, check, simulate)
    - Gateway payments (create, confirm)
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = PaymentRepository(db)
        self.notifications = NotificationService(db)

    # Global payment profile

    def save_profile(self, data: GlobalPaymentProfileInput):
        missing = data.missing_fields()
        if missing:
            raise CommonErrors.MISSING_REQUIRED_FIELD(to_camel(missing[0]))

        fields = data.model_dump()
        fields["country"] = (data.country or "").strip() or "Brasil"
        fields["payment_methods"] = data.payment_methods or list(DEFAULT_PAYMENT_METHODS)
        fields["pix_key"] = (data.pix_key or "").strip() or None
        fields["pix_key_type"] = data.pix_key_type or None

        profile = self.repo.replace_active_profile(**fields)
        logger.info(f"Global payment profile {profile.id} activated")
        return profile

    # Seller payouts

    def seller_payouts(self, seller_id: int) -> Dict:
        payouts = self.repo.find_payouts_for_seller(seller_id)
        active = [p for p in payouts if p.status != "CANCELLED"]

        summary = {
            "totalEarnings": round(sum(float(p.amount) for p in active), 2),
            "totalCommission": round(sum(float(p.commission) for p in active), 2),
            "pendingPayouts": round(sum(float(p.amount) for p in payouts if p.status == "PENDING"), 2),
            "paidPayouts": round(sum(float(p.amount) for p in payouts if p.status == "PAID"), 2),
            "totalPayouts": len(payouts),
        }
        return {
            "payouts": [SellerPayoutModel.from_model(p).to_dict() for p in payouts],
            "summary": summary,
        }

    def update_payout_status(self, data: PayoutStatusUpdate) -> SellerPayout:
        if data.payout_id is None or not data.status:
            raise _bad_request("payoutId y status son requeridos", "MISSING_REQUIRED_FIELD")
        if data.status not in PAYOUT_STATUSES:
            raise _bad_request(f"Estado inválido. Valores permitidos: {', '.join(PAYOUT_STATUSES)}")

        payout = self.repo.find_payout(data.payout_id)
        if payout is None:
            raise _not_found("Liquidación no encontrada", "PAYOUT_NOT_FOUND")

        payout.status = data.status
        payout.paid_at = utcnow() if data.status == "PAID" else None
        self.repo.commit()
        logger.info(f"Payout {payout.id} -> {data.status}")
        return payout

    # PIX

    def create_pix_payment(self, data: PixPaymentCreate) -> Dict:
        if not data.order_id or not data.amount or not data.description:
            raise _bad_request("Faltan datos requeridos (orderId, amount, description)", "MISSING_REQUIRED_FIELD")

        profile = self.repo.get_active_profile()
        if profile is None:
            raise _bad_request("No hay perfil de pago global configurado", "NO_PAYMENT_PROFILE")
        if not profile.pix_key:
            raise _bad_request("El perfil de pago no tiene clave PIX configurada", "NO_PIX_KEY")

        order = self.db.get(Order, data.order_id)
        if order is None:
            raise CommonErrors.ORDER_NOT_FOUND(data.order_id)

        payment_id = generate_pix_payment_id()
        payment = PixPayment(
            id=payment_id,
            order_id=order.id,
            amount=round(data.amount, 2),
            description=data.description,
            pix_key=profile.pix_key,
            pix_code=build_pix_code(profile.pix_key, data.amount, profile.company_name, profile.city, payment_id),
            status="PENDING",
            expires_at=utcnow() + timedelta(minutes=PIX_EXPIRATION_MINUTES),
        )
        self.repo.add(payment)
        logger.info(f"PIX payment {payment_id} created for order {order.id}")
        return {"success": True, "payment": PixPaymentModel.from_model(payment).to_dict()}

    def _expire_if_needed(self, payment: PixPayment) -> None:
        if payment.status == "PENDING" and payment.expires_at < utcnow():
            payment.status = "EXPIRED"
            self.repo.commit()
            logger.info(f"PIX payment {payment.id} expired")

    def _get_pix_payment(self, payment_id: Optional[str]) -> PixPayment:
        if not payment_id:
            raise _bad_request("paymentId es requerido", "MISSING_REQUIRED_FIELD")
        payment = self.repo.find_pix_payment(payment_id)
        if payment is None:
            raise _not_found("Pago PIX no encontrado", "PAYMENT_NOT_FOUND")
        return payment

    def check_pix_payment(self, payment_id: Optional[str]) -> Dict:
        payment = self._get_pix_payment(payment_id)
        self._expire_if_needed(payment)
        return {"success": True, "payment": PixPaymentModel.from_model(payment).to_dict()}

    def simulate_pix_payment(self, payment_id: Optional[str]) -> Dict:
        """Mark a PENDING PIX payment as paid and confirm its order"""
        payment = self._get_pix_payment(payment_id)
        self._expire_if_needed(payment)
        if payment.status != "PENDING":
            raise _bad_request("El pago ya fue procesado o expiró", "PAYMENT_NOT_PENDING")

        payment.status = "PAID"
        payment.paid_at = utcnow()
        order = payment.order
        self._confirm_order(order)
        logger.info(f"PIX payment {payment.id} paid, order {order.id} confirmed")

        self._notify_payment_received(order)
        return {"success": True, "payment": PixPaymentModel.from_model(payment).to_dict()}

    # Gateways

    def create_gateway_payment(self, data: GatewayPaymentCreate) -> Payment:
        if not data.order_id or not data.gateway:
            raise _bad_request("orderId y gateway son requeridos", "MISSING_REQUIRED_FIELD")

        gateway = data.gateway.upper()
        if gateway not in SUPPORTED_GATEWAYS:
            raise _bad_request(
                f"Pasarela no soportada. Valores permitidos: {', '.join(SUPPORTED_GATEWAYS)}",
                "UNSUPPORTED_GATEWAY",
            )

        order = self.db.get(Order, data.order_id)
        if order is None:
            raise CommonErrors.ORDER_NOT_FOUND(data.order_id)

        payment = Payment(
            order_id=order.id,
            gateway=gateway,
            transaction_id=f"{gateway.lower()}_{secrets.token_hex(12)}",
            amount=order.total,
            currency="BRL",
            status="PENDING",
        )
        self.repo.add(payment)
        logger.info(f"{gateway} payment {payment.transaction_id} created for order {order.id}")
        return payment

    def confirm_gateway_payment(self, data: GatewayConfirm) -> Dict:
        if not data.gateway or not data.transaction_id:
            raise _bad_request("gateway y transactionId son requeridos", "MISSING_REQUIRED_FIELD")

        payment = self.repo.find_gateway_payment(data.gateway.upper(), data.transaction_id)
        if payment is None:
            raise _bad_request("Pago no encontrado", "PAYMENT_NOT_FOUND")
        if payment.status == "COMPLETED":
            raise _bad_request("El pago ya fue confirmado", "PAYMENT_ALREADY_CONFIRMED")

        payment.status = "COMPLETED"
        payment.confirmed_at = utcnow()
        order = payment.order
        self._confirm_order(order)
        logger.info(f"{payment.gateway} payment {payment.transaction_id} confirmed, order {order.id}")

        self._notify_payment_received(order)
        return {
            "message": "Pago confirmado exitosamente",
            "success": True,
            "payment": GatewayPayment.from_model(payment).to_dict(),
            "order": {
                "id": order.id,
                "status": order.status,
                "paymentStatus": order.payment_status,
            },
        }

    def _confirm_order(self, order: Order) -> None:
        """Mark the order paid and take its stock if it holds none yet"""
        order.status = "CONFIRMED"
        order.payment_status = "PAID"
        stock_taken = reserve_stock(order)
        self.repo.commit()
        if order.user_id:
            clear_user_cache(order.user_id)
        if stock_taken:
            clear_product_cache()
            logger.info(f"Stock taken for paid order {order.id}")

    def _notify_payment_received(self, order: Order) -> None:
        try:
            self.notifications.notify_order(order, "PAYMENT_RECEIVED")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Could not create PAYMENT_RECEIVED notification for order {order.id}: {e}")
