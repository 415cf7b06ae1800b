"""
Payments API Endpoints
Global payment profile, seller payouts, PIX and payment gateways

Author: TM3
Date: 2026-02-09
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from markettech.core.auth import TokenUser, get_current_user, require_admin, require_sales_admin
from markettech.core.database import get_db
from markettech.core.errors import AppError
from markettech.domain.payment import (
    GatewayConfirm, GatewayPayment, GatewayPaymentCreate,
    GlobalPaymentProfile, GlobalPaymentProfileInput,
    PayoutStatusUpdate, PixPaymentCreate, PixPaymentSimulate, SellerPayout,
)
from markettech.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

profile_router = APIRouter(prefix="/api/v1/global-payment-profile", tags=["Payments"])
payouts_router = APIRouter(prefix="/api/v1/seller-payouts", tags=["Payments"])
pix_router = APIRouter(prefix="/api/v1/pix", tags=["PIX"])
gateways_router = APIRouter(prefix="/api/v1/payment-gateways", tags=["Payment Gateways"])


# =============================================================================
# Global payment profile (ADMIN)
# =============================================================================

@profile_router.get("")
def get_global_payment_profile(
    _: TokenUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    profile = PaymentService(db).repo.get_active_profile()
    if profile is None:
        return {"profile": None, "message": "No hay perfil de pago global configurado"}
    return {
        "profile": GlobalPaymentProfile.model_validate(profile).to_dict(),
        "message": "Perfil de pago global encontrado",
    }


@profile_router.post("", status_code=status.HTTP_201_CREATED)
def save_global_payment_profile(
    body: GlobalPaymentProfileInput,
    admin: TokenUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Replace the active payment profile"""
    try:
        profile = PaymentService(db).save_profile(body)
        logger.info(f"Admin {admin.id} saved global payment profile {profile.id}")
        return {
            "profile": GlobalPaymentProfile.model_validate(profile).to_dict(),
            "message": "Perfil de pago global guardado exitosamente",
        }
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error saving global payment profile: {e}")
        raise HTTPException(status_code=500, detail=f"Error al guardar perfil de pago: {str(e)}")


# =============================================================================
# Seller payouts
# =============================================================================

@payouts_router.get("")
def get_seller_payouts(
    seller: TokenUser = Depends(require_sales_admin),
    db: Session = Depends(get_db),
):
    """The calling seller's payouts with a summary"""
    return PaymentService(db).seller_payouts(seller.id)


@payouts_router.put("")
def update_seller_payout(
    body: PayoutStatusUpdate,
    admin: TokenUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    payout = PaymentService(db).update_payout_status(body)
    logger.info(f"Admin {admin.id} set payout {payout.id} to {payout.status}")
    return {
        "message": "Estado de liquidación actualizado",
        "payout": SellerPayout.from_model(payout).to_dict(),
    }


# =============================================================================
# PIX
# =============================================================================

@pix_router.post("/create-payment", status_code=status.HTTP_201_CREATED)
def create_pix_payment(
    body: PixPaymentCreate,
    _: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return PaymentService(db).create_pix_payment(body)
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error creating PIX payment: {e}")
        raise HTTPException(status_code=500, detail=f"Error al crear pago PIX: {str(e)}")


@pix_router.get("/check-payment")
def check_pix_payment(
    payment_id: Optional[str] = Query(None, alias="paymentId"),
    _: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return PaymentService(db).check_pix_payment(payment_id)


@pix_router.post("/simulate-payment")
def simulate_pix_payment(
    body: PixPaymentSimulate,
    _: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark a pending PIX payment as paid (sandbox flow)"""
    return PaymentService(db).simulate_pix_payment(body.payment_id)


# =============================================================================
# Payment gateways
# =============================================================================

@gateways_router.post("", status_code=status.HTTP_201_CREATED)
def create_gateway_payment(
    body: GatewayPaymentCreate,
    _: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    payment = PaymentService(db).create_gateway_payment(body)
    return {"success": True, "payment": GatewayPayment.from_model(payment).to_dict()}


@gateways_router.post("/confirm")
def confirm_gateway_payment(
    body: GatewayConfirm,
    _: TokenUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return PaymentService(db).confirm_gateway_payment(body)
    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Error confirming gateway payment: {e}")
        raise HTTPException(status_code=500, detail=f"Error confirmando pago: {str(e)}")
