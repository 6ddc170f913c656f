from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import Field, field_validator

from storefront.models import CamelModel, Money
from storefront.utils.money import to_decimal


class Coupon(CamelModel):
    id: Optional[int] = None
    code: str = ""
    discount_type: str = ""
    amount: Money = Decimal("0")
    minimum_amount: Money = Decimal("0")
    maximum_amount: Money = Decimal("0")
    usage_limit: Optional[int] = None
    usage_count: int = 0
    description: str = ""

    @field_validator("code", mode="before")
    @classmethod
    def normalize_code(cls, v):
        return (v or "").strip().upper()

    @field_validator("amount", "minimum_amount", "maximum_amount", mode="before")
    @classmethod
    def parse_amount(cls, v):
        return to_decimal(v)

    @field_validator("usage_count", mode="before")
    @classmethod
    def parse_count(cls, v):
        return int(v or 0)

    @classmethod
    def from_backend(cls, record: Dict[str, Any]) -> "Coupon":
        """Construit un Coupon depuis un enregistrement WooCommerce (snake_case, montants en chaînes)."""
        return cls(
            id=record.get("id") or None,
            code=record.get("code"),
            discount_type=record.get("discount_type") or "",
            amount=record.get("amount"),
            minimum_amount=record.get("minimum_amount"),
            maximum_amount=record.get("maximum_amount"),
            usage_limit=record.get("usage_limit") or None,
            usage_count=record.get("usage_count"),
            description=record.get("description") or "",
        )


class AppliedCoupon(CamelModel):
    code: str
    amount: Money
    discount_type: str
    description: str = ""
    discount: Money


class CouponValidation(CamelModel):
    valid: bool
    message: str
    discount: Optional[Money] = None
    coupon: Optional[AppliedCoupon] = None


class CouponRequest(CamelModel):
    code: str = ""
    cart_total: Money = Field(default=Decimal("0"))
