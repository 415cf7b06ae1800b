"""
SiteConfig Repository - key/value site settings and commission split
"""
import json
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from markettech.models import SiteConfig, CommissionSettings


DEFAULT_SITE_CONFIGS = [
    {"key": "site_title", "value": "MarketTech", "type": "text"},
    {"key": "site_description", "value": "Tu tienda de tecnología de confianza. Productos nuevos y usados de la mejor calidad.", "type": "text"},
    {"key": "contact_email", "value": "contacto@markettech.com", "type": "text"},
    {"key": "contact_phone", "value": "+55 41 99999-9999", "type": "text"},
    {"key": "contact_whatsapp", "value": "+55 41 99999-9999", "type": "text"},
    {"key": "contact_address", "value": "Curitiba, PR - Brasil", "type": "text"},
    {"key": "default_product_margin", "value": "50", "type": "number"},
    {"key": "shipping_strategy", "value": "FREE_INCLUDED", "type": "text"},
    {"key": "shipping_cost_curitiba", "value": "15.00", "type": "number"},
    {"key": "shipping_cost_other_regions", "value": "25.00", "type": "number"},
    {"key": "free_shipping_minimum", "value": "100.00", "type": "number"},
    {"key": "shipping_message", "value": "Frete Grátis para Curitiba - Região Urbana", "type": "text"},
]


def _to_text(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return "" if value is None else str(value)


class SiteConfigRepository:

    def __init__(self, db: Session):
        self.db = db

    def find_all(self) -> List[SiteConfig]:
        return self.db.query(SiteConfig).order_by(SiteConfig.key).all()

    def count(self) -> int:
        return self.db.query(func.count(SiteConfig.id)).scalar() or 0

    def seed_defaults(self) -> List[SiteConfig]:
        """Insert the default configs that are missing"""
        existing = {row.key for row in self.db.query(SiteConfig.key).all()}
        for config in DEFAULT_SITE_CONFIGS:
            if config["key"] not in existing:
                self.db.add(SiteConfig(**config))
        self.db.commit()
        return self.find_all()

    def get_values(self, keys: Optional[Iterable[str]] = None) -> Dict[str, str]:
        query = self.db.query(SiteConfig)
        if keys is not None:
            query = query.filter(SiteConfig.key.in_(list(keys)))
        return {row.key: row.value for row in query.all()}

    def get_value(self, key: str, default: Optional[str] = None) -> Optional[str]:
        row = self.db.query(SiteConfig).filter(SiteConfig.key == key).first()
        return row.value if row else default

    def upsert(self, key: str, value: Any, config_type: Optional[str] = None, commit: bool = True) -> SiteConfig:
        row = self.db.query(SiteConfig).filter(SiteConfig.key == key).first()
        if isinstance(value, (dict, list)):
            config_type = "json"

        if row is None:
            row = SiteConfig(key=key, value=_to_text(value), type=config_type or "text")
            self.db.add(row)
            self.db.flush()
        else:
            row.value = _to_text(value)
            if config_type:
                row.type = config_type

        if commit:
            self.db.commit()
        return row

    # Commission split

    def get_commission_settings(self) -> Optional[CommissionSettings]:
        return (
            self.db.query(CommissionSettings)
            .filter(CommissionSettings.is_active.is_(True))
            .order_by(CommissionSettings.id.desc())
            .first()
        )

    def save_commission_settings(self, **percentages) -> CommissionSettings:
        row = self.get_commission_settings()
        if row is None:
            row = CommissionSettings(is_active=True)
            self.db.add(row)
        for key, value in percentages.items():
            setattr(row, key, value)
        self.db.commit()
        self.db.refresh(row)
        return row
