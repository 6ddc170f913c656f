"""
Validation de coupon contre les règles WooCommerce (lecture seule).

Contrat: validate(code, cart_total) -> CouponValidation
- fail-closed: toute erreur de lecture du coupon donne {valid: False, message: 'Invalid coupon code'}
- aucun plancher ni plafond sur la remise (sémantique du backend transmise telle quelle)
"""
import logging
from decimal import Decimal
from typing import Any

from storefront.config import Settings
from storefront.infra.woocommerce_client import WooCommerceClient
from storefront.utils.money import format_amount, quantize_cents, to_decimal
from .models import AppliedCoupon, Coupon, CouponValidation

logger = logging.getLogger(__name__)

INVALID_COUPON = "Invalid coupon code"
COUPON_REQUIRED = "Coupon code required"


def compute_discount(coupon: Coupon, cart_total: Decimal) -> Decimal:
    """
    Remise selon le type WooCommerce.
    - percent: cart_total * amount / 100 (arrondi au centime)
    - fixed_cart: amount tel quel (peut dépasser le total)
    - autre type (ex: fixed_product): 0
    """
    if coupon.discount_type == "percent":
        return quantize_cents(cart_total * coupon.amount / Decimal(100))
    if coupon.discount_type == "fixed_cart":
        return coupon.amount
    return Decimal("0")


def check_constraints(coupon: Coupon, cart_total: Decimal, currency_label: str) -> str:
    """Retourne le message de refus, ou '' si le coupon est applicable à ce total."""
    if coupon.minimum_amount > 0 and cart_total < coupon.minimum_amount:
        return f"Minimum order amount of {format_amount(coupon.minimum_amount, currency_label)} required"
    if coupon.maximum_amount > 0 and cart_total > coupon.maximum_amount:
        return f"Maximum order amount of {format_amount(coupon.maximum_amount, currency_label)} exceeded"
    if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
        return "This coupon has reached its usage limit"
    return ""


# module storefront.coupons.service
class CouponValidator:
    def __init__(self, woocommerce: WooCommerceClient, settings: Settings):
        self.woocommerce = woocommerce
        self.settings = settings

    def validate(self, code: str, cart_total: Any) -> CouponValidation:
        code = (code or "").strip()
        if not code:
            return CouponValidation(valid=False, message=COUPON_REQUIRED)
        try:
            total = to_decimal(cart_total)
            records = self.woocommerce.list_coupons(code)
            if not records:
                return CouponValidation(valid=False, message=INVALID_COUPON)
            coupon = Coupon.from_backend(records[0])
        except Exception as e:
            logger.warning("coupons.validate lookup_failed code=%s error=%s", code, e)
            return CouponValidation(valid=False, message=INVALID_COUPON)

        if not coupon.id:
            return CouponValidation(valid=False, message=INVALID_COUPON)

        refusal = check_constraints(coupon, total, self.settings.currency_label)
        if refusal:
            return CouponValidation(valid=False, message=refusal)

        discount = compute_discount(coupon, total)
        logger.info("coupons.validate ok code=%s discount=%s", coupon.code, discount)
        return CouponValidation(
            valid=True,
            message="Coupon applied successfully",
            discount=discount,
            coupon=AppliedCoupon(
                code=coupon.code,
                amount=coupon.amount,
                discount_type=coupon.discount_type,
                description=coupon.description,
                discount=discount,
            ),
        )
