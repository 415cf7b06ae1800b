"""
Shared pydantic configuration for the domain layer

API payloads use camelCase keys; Python code uses snake_case attributes.
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_dict(self) -> dict:
        """Convert to a camelCase dict for API responses"""
        return self.model_dump(by_alias=True)


def to_float(value: Any) -> Optional[float]:
    """Decimal/str/int -> float, keeping None"""
    if value is None:
        return None
    return float(value)


def iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None
