"""
Shipping Service - shipping cost quotes from the site configuration
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from markettech.domain.settings import ShippingConfig, ShippingQuote, SHIPPING_STRATEGIES
from markettech.repositories.site_config_repository import SiteConfigRepository

logger = logging.getLogger(__name__)

SHIPPING_CONFIG_KEYS = {
    "shipping_strategy": "strategy",
    "shipping_cost_curitiba": "cost_curitiba",
    "shipping_cost_other_regions": "cost_other_regions",
    "free_shipping_minimum": "free_shipping_minimum",
    "shipping_message": "message",
}


def load_shipping_config(db: Session) -> ShippingConfig:
    """Read the shipping_* site configs, falling back to defaults"""
    values = SiteConfigRepository(db).get_values(SHIPPING_CONFIG_KEYS.keys())
    config = ShippingConfig()

    for key, field in SHIPPING_CONFIG_KEYS.items():
        raw = values.get(key)
        if raw is None or raw == "":
            continue
        if field in ("strategy", "message"):
            setattr(config, field, raw)
            continue
        try:
            setattr(config, field, float(raw))
        except ValueError:
            logger.warning(f"Invalid numeric value for {key}: {raw!r}, using default")

    if config.strategy not in SHIPPING_STRATEGIES:
        logger.warning(f"Unknown shipping strategy {config.strategy!r}, using FREE_INCLUDED")
        config.strategy = "FREE_INCLUDED"

    return config


def calculate_shipping(config: ShippingConfig, order_total: float, region: Optional[str] = "curitiba") -> ShippingQuote:
    """
    Quote shipping for an order.

    FREE_INCLUDED: always free.
    CALCULATED: regional cost, free above free_shipping_minimum.
    FIXED: regional cost regardless of the total.
    """
    is_curitiba = "curitiba" in (region or "").lower()
    base_cost = config.cost_curitiba if is_curitiba else config.cost_other_regions

    if config.strategy == "FREE_INCLUDED":
        return ShippingQuote(cost=0, is_free=True, message=config.message, strategy=config.strategy)

    if config.strategy == "CALCULATED" and order_total >= config.free_shipping_minimum:
        return ShippingQuote(
            cost=0,
            is_free=True,
            message=f"Frete Grátis! (Compra mínima de R$ {config.free_shipping_minimum:.2f})",
            strategy=config.strategy,
        )

    return ShippingQuote(
        cost=base_cost,
        is_free=False,
        message=f"Frete: R$ {base_cost:.2f}",
        strategy=config.strategy,
    )
