"""
Payment Repository - payment profile, payouts, PIX and gateway payments

Author: TM3
Date: 2026-02-09
"""
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from markettech.models import GlobalPaymentProfile, SellerPayout, PixPayment, Payment


class PaymentRepository:

    def __init__(self, db: Session):
        self.db = db

    # Global payment profile

    def get_active_profile(self) -> Optional[GlobalPaymentProfile]:
        return (
            self.db.query(GlobalPaymentProfile)
            .filter(GlobalPaymentProfile.is_active.is_(True))
            .order_by(GlobalPaymentProfile.id.desc())
            .first()
        )

    def replace_active_profile(self, **fields) -> GlobalPaymentProfile:
        """Deactivate every profile and store a new active one"""
        self.db.query(GlobalPaymentProfile).filter(
            GlobalPaymentProfile.is_active.is_(True)
        ).update({GlobalPaymentProfile.is_active: False}, synchronize_session=False)

        profile = GlobalPaymentProfile(is_active=True, **fields)
        self.db.add(profile)
        self.db.commit()
        self.db.refresh(profile)
        return profile

    # Seller payouts

    def find_payouts_for_seller(self, seller_id: int) -> List[SellerPayout]:
        return (
            self.db.query(SellerPayout)
            .options(selectinload(SellerPayout.order))
            .filter(SellerPayout.seller_id == seller_id)
            .order_by(SellerPayout.created_at.desc(), SellerPayout.id.desc())
            .all()
        )

    def find_payout(self, payout_id: int) -> Optional[SellerPayout]:
        return self.db.get(SellerPayout, payout_id)

    def count_payouts(self) -> int:
        return self.db.query(func.count(SellerPayout.id)).scalar() or 0

    # PIX

    def find_pix_payment(self, payment_id: str) -> Optional[PixPayment]:
        return self.db.get(PixPayment, payment_id)

    # Gateway payments

    def find_gateway_payment(self, gateway: str, transaction_id: str) -> Optional[Payment]:
        return (
            self.db.query(Payment)
            .filter(Payment.gateway == gateway, Payment.transaction_id == transaction_id)
            .first()
        )

    def add(self, row, commit: bool = True):
        self.db.add(row)
        if commit:
            self.db.commit()
            self.db.refresh(row)
        return row

    def commit(self) -> None:
        self.db.commit()
