"""
Cas d'usage 'payments': construit la session Stripe Checkout à partir du panier client.
Orchestre cart (line_items + metadata), résolution du coupon et stripe_client.

Politique d'erreurs:
- coupon: fail-open (la vente passe sans remise, l'erreur est journalisée)
- paiement: fail-closed (une erreur Stripe à la création remonte à l'appelant)
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from storefront.config import Settings
from storefront.models import CartLine, ContactDetails
from . import cart as cart_logic
from .models import PaymentSession, ProviderLineItem
from .stripe_client import StripeGateway

logger = logging.getLogger(__name__)


class CheckoutSessionBuilder:
    def __init__(self, gateway: StripeGateway, settings: Settings):
        self.gateway = gateway
        self.settings = settings

    def resolve_discounts(self, coupon_code: Optional[str]) -> List[Dict[str, Any]]:
        """
        Résout un code saisi en remise Stripe.
        - D'abord comme code promo actif, sinon comme identifiant de coupon brut (coupon.valid requis).
        - Introuvable ou erreur Stripe: [] (pas de remise), erreur journalisée pour rester détectable.
        """
        code = (coupon_code or "").strip()
        if not code:
            return []
        try:
            promotion_code = self.gateway.find_promotion_code(code)
            if promotion_code:
                return [{"promotion_code": promotion_code}]
            coupon_id = self.gateway.find_valid_coupon(code)
            if coupon_id:
                return [{"coupon": coupon_id}]
            logger.info("payments.coupon not_applicable code=%s", code)
        except Exception as e:
            logger.warning(
                "payments.coupon resolution_failed code=%s error=%s",
                code,
                e,
                extra={"coupon_code": code, "event": "coupon_resolution_failed"},
            )
        return []

    def build_params(
        self,
        lines: Sequence[CartLine],
        coupon_code: Optional[str],
        customer_email: str,
        billing: ContactDetails,
        shipping: Optional[ContactDetails] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "payment_method_types": ["card"],
            "line_items": cart_logic.to_line_items(lines, self.settings.currency),
            "mode": "payment",
            "success_url": self.settings.success_url,
            "cancel_url": self.settings.cancel_url,
            "billing_address_collection": "required",
            "shipping_address_collection": {"allowed_countries": list(self.settings.allowed_countries)},
            "metadata": cart_logic.make_metadata(lines, billing, shipping),
        }
        if customer_email:
            params["customer_email"] = customer_email
        discounts = self.resolve_discounts(coupon_code)
        if discounts:
            params["discounts"] = discounts
        return params

    def build(
        self,
        lines: Sequence[CartLine],
        coupon_code: Optional[str],
        customer_email: str,
        billing: ContactDetails,
        shipping: Optional[ContactDetails] = None,
    ) -> PaymentSession:
        """
        Crée la session Stripe Checkout et retourne {session_id, url, line_items, metadata}.
        - Aucune persistance locale: une session orpheline expire côté Stripe.
        - Les erreurs Stripe à la création sont propagées (fail-closed).
        """
        params = self.build_params(lines, coupon_code, customer_email, billing, shipping)
        session = self.gateway.create_session(params)
        logger.info(
            "payments.checkout session_id=%s lines=%s discount=%s",
            session.get("id"),
            len(params["line_items"]),
            bool(params.get("discounts")),
        )
        return PaymentSession(
            session_id=session.get("id") or "",
            url=session.get("url"),
            line_items=[
                ProviderLineItem(
                    name=li["price_data"]["product_data"]["name"],
                    unit_amount_minor_units=li["price_data"]["unit_amount"],
                    quantity=li["quantity"],
                )
                for li in params["line_items"]
            ],
            metadata=params["metadata"],
            discounts=params.get("discounts") or [],
        )
