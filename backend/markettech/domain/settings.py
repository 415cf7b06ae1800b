"""
Site settings and shipping Domain Models
"""
from typing import Any, List, Optional

from markettech.domain.base import CamelModel


SHIPPING_STRATEGIES = ("FREE_INCLUDED", "CALCULATED", "FIXED")


class SiteConfigEntry(CamelModel):
    key: str
    value: str
    type: str = "text"
    description: Optional[str] = None


class SiteConfigInput(CamelModel):
    key: Optional[str] = None
    value: Any = None
    type: Optional[str] = None


class SettingsUpdate(CamelModel):
    configs: List[SiteConfigInput] = []


class ShippingConfig(CamelModel):
    strategy: str = "FREE_INCLUDED"
    cost_curitiba: float = 15.00
    cost_other_regions: float = 25.00
    free_shipping_minimum: float = 100.00
    message: str = "Frete Grátis para Curitiba - Região Urbana"


class ShippingQuote(CamelModel):
    cost: float
    is_free: bool
    message: str
    strategy: str
