"""
Adaptateur Stripe: centralise les appels et la vérification des webhooks.

- La clé API est passée à chaque appel (api_key=...) au lieu de muter stripe.api_key globalement.
- Les objets Stripe sont convertis en dict/list Python simples pour le reste de l'application.
"""
import json
import logging
from typing import Any, Dict, List, Optional

import stripe

from storefront.config import Settings

logger = logging.getLogger(__name__)


class WebhookSignatureError(Exception):
    """Signature Stripe absente, secret non configuré ou signature invalide."""


class MalformedEventError(Exception):
    """Payload signé mais illisible (JSON invalide, type manquant)."""


def _metadata(obj: Any) -> Dict[str, str]:
    meta = getattr(obj, "metadata", None)
    if not meta:
        return {}
    return {str(k): str(v) for k, v in dict(meta).items()}


# module storefront.payments.stripe_client
class StripeGateway:
    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def _api_key(self) -> Optional[str]:
        return self.settings.stripe_secret_key or None

    def create_session(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Crée une session Stripe Checkout.
        - params: paramètres complets (line_items, mode, success_url, cancel_url, metadata, discounts...)
        Retour: {"id": "cs_test_...", "url": "https://..."}
        """
        session = stripe.checkout.Session.create(api_key=self._api_key, **params)
        return {"id": session.id, "url": session.url}

    def find_promotion_code(self, code: str) -> Optional[str]:
        """Retourne l'id du code promo actif correspondant à `code`, sinon None."""
        res = stripe.PromotionCode.list(code=code, active=True, limit=1, api_key=self._api_key)
        data = list(getattr(res, "data", None) or [])
        return data[0].id if data else None

    def find_valid_coupon(self, coupon_id: str) -> Optional[str]:
        """Retourne l'id du coupon Stripe s'il existe et est valide, sinon None."""
        try:
            coupon = stripe.Coupon.retrieve(coupon_id, api_key=self._api_key)
        except stripe.InvalidRequestError as e:
            # Coupon inexistant: ce n'est pas une panne
            if getattr(e, "code", None) == "resource_missing":
                return None
            raise
        return coupon.id if coupon and getattr(coupon, "valid", False) else None

    def list_line_items(self, session_id: str) -> List[Dict[str, Any]]:
        """
        Relit les lignes d'une session (produit étendu) pour la réconciliation.
        Retour: [{"description", "quantity", "amount_total", "product_metadata"}]
        """
        res = stripe.checkout.Session.list_line_items(
            session_id,
            limit=100,
            expand=["data.price.product"],
            api_key=self._api_key,
        )
        items: List[Dict[str, Any]] = []
        for item in getattr(res, "data", None) or []:
            price = getattr(item, "price", None)
            product = getattr(price, "product", None) if price else None
            items.append({
                "description": getattr(item, "description", "") or "",
                "quantity": getattr(item, "quantity", None) or 1,
                "amount_total": getattr(item, "amount_total", None),
                "product_metadata": _metadata(product) if product is not None and not isinstance(product, str) else {},
            })
        return items

    def verify_event(self, payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
        """
        Vérifie et parse un événement Stripe signé (webhook).
        - Vérifie la signature sur le body brut AVANT tout parsing.
        - Lève WebhookSignatureError si en-tête/secret manquant ou signature invalide.
        - Lève MalformedEventError si le payload signé n'est pas un événement exploitable.
        """
        if not sig_header:
            raise WebhookSignatureError("No signature provided")
        if not self.settings.stripe_webhook_secret:
            raise WebhookSignatureError("Webhook secret not configured")
        try:
            body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        except UnicodeDecodeError as e:
            # Un corps non UTF-8 ne peut pas porter une signature valide
            raise WebhookSignatureError("Payload is not valid UTF-8") from e
        try:
            stripe.WebhookSignature.verify_header(body, sig_header, self.settings.stripe_webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise WebhookSignatureError(str(e)) from e
        try:
            event = json.loads(body)
        except ValueError as e:
            raise MalformedEventError("Invalid JSON payload") from e
        if not isinstance(event, dict) or not event.get("type"):
            raise MalformedEventError("Event type missing")
        return event
