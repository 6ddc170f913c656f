"""
Réconciliation paiement -> commande: traite les événements Stripe vérifiés.

Machine d'états d'une session:
  Created -> Completed -> OrderPosted   (succès)
  Created -> Expired                    (aucune commande)
  Created -> PaymentFailed              (aucune commande)

Règles:
- une seule commande WooCommerce par session (clé: meta stripe_session_id)
- après paiement, un échec de création est journalisé mais l'événement est acquitté:
  l'argent a déjà bougé, la commande devient une tâche de réconciliation hors bande
"""
import logging
from typing import Any, Dict, List

from storefront.config import Settings
from storefront.infra.woocommerce_client import WooCommerceClient, WooCommerceError
from storefront.models import ContactDetails
from storefront.payments.metadata import MetadataError, extract_cart, extract_contact_details
from storefront.payments.stripe_client import MalformedEventError, StripeGateway
from . import repository
from .models import (
    PAYMENT_INTENT_META_KEY,
    SESSION_ID_META_KEY,
    OutcomeStatus,
    SessionState,
    WebhookOutcome,
)

logger = logging.getLogger(__name__)

COMPLETION_EVENTS = {"checkout.session.completed", "checkout.session.async_payment_succeeded"}
FAILURE_EVENTS = {"checkout.session.async_payment_failed", "payment_intent.payment_failed"}


def billing_address(billing: ContactDetails, email: str) -> Dict[str, str]:
    return {
        "first_name": billing.first_name,
        "last_name": billing.last_name,
        "company": billing.company,
        "address_1": billing.address1,
        "address_2": billing.address2,
        "city": billing.city,
        "state": billing.state,
        "postcode": billing.postcode,
        "country": billing.country,
        "email": email or billing.email,
        "phone": billing.phone,
    }


def shipping_address(shipping: ContactDetails, billing: ContactDetails) -> Dict[str, str]:
    # Champ par champ: un champ de livraison vide reprend celui de facturation
    return {
        "first_name": shipping.first_name or billing.first_name,
        "last_name": shipping.last_name or billing.last_name,
        "company": shipping.company or billing.company,
        "address_1": shipping.address1 or billing.address1,
        "address_2": shipping.address2 or billing.address2,
        "city": shipping.city or billing.city,
        "state": shipping.state or billing.state,
        "postcode": shipping.postcode or billing.postcode,
        "country": shipping.country or billing.country,
    }


def session_email(session: Dict[str, Any]) -> str:
    details = session.get("customer_details") or {}
    return session.get("customer_email") or details.get("email") or ""


def payment_intent_id(session: Dict[str, Any]) -> str:
    intent = session.get("payment_intent")
    if isinstance(intent, dict):
        return str(intent.get("id") or "")
    return str(intent or "")


# module storefront.orders.service
class OrderReconciler:
    def __init__(self, gateway: StripeGateway, woocommerce: WooCommerceClient, settings: Settings):
        self.gateway = gateway
        self.woocommerce = woocommerce
        self.settings = settings

    def handle_event(self, event: Dict[str, Any]) -> WebhookOutcome:
        """
        Point d'entrée unique pour un événement déjà authentifié.
        - checkout.session.completed / async_payment_succeeded: réconciliation (création de commande)
        - expired / payment_failed: journalisés seulement (aucune mutation)
        - autres types: ignorés
        """
        event_type = event.get("type") or ""
        data = event.get("data") or {}
        obj = data.get("object") if isinstance(data, dict) else None
        if not isinstance(obj, dict):
            raise MalformedEventError("Event object missing")

        if event_type in COMPLETION_EVENTS:
            return self.reconcile_session(obj)

        if event_type == "checkout.session.expired":
            logger.info("orders.webhook session_expired session_id=%s", obj.get("id"))
            return WebhookOutcome(status=OutcomeStatus.RECORDED, state=SessionState.EXPIRED, session_id=obj.get("id"))

        if event_type in FAILURE_EVENTS:
            logger.info("orders.webhook payment_failed type=%s id=%s", event_type, obj.get("id"))
            return WebhookOutcome(status=OutcomeStatus.RECORDED, state=SessionState.PAYMENT_FAILED)

        if event_type == "payment_intent.succeeded":
            logger.info("orders.webhook payment_intent_succeeded id=%s", obj.get("id"))
            return WebhookOutcome(status=OutcomeStatus.RECORDED)

        logger.info("orders.webhook unhandled type=%s", event_type)
        return WebhookOutcome(status=OutcomeStatus.IGNORED)

    def reconcile_session(self, session: Dict[str, Any]) -> WebhookOutcome:
        session_id = str(session.get("id") or "")
        if not session_id:
            raise MalformedEventError("Session id missing")

        if session.get("payment_status") == "unpaid":
            # Moyen de paiement différé: la commande sera créée sur async_payment_succeeded
            logger.info("orders.reconcile awaiting_payment session_id=%s", session_id)
            return WebhookOutcome(status=OutcomeStatus.AWAITING_PAYMENT, state=SessionState.COMPLETED, session_id=session_id)

        try:
            existing = repository.find_order_by_session(self.woocommerce, session_id)
        except WooCommerceError as e:
            # La contrainte d'unicité côté backend reste le garde-fou final
            logger.warning("orders.reconcile lookup_failed session_id=%s error=%s", session_id, e.message)
            existing = None
        if existing:
            logger.info("orders.reconcile duplicate session_id=%s order_id=%s", session_id, existing.get("id"))
            return WebhookOutcome(
                status=OutcomeStatus.DUPLICATE,
                state=SessionState.ORDER_POSTED,
                session_id=session_id,
                order_id=existing.get("id"),
            )

        try:
            billing, shipping = extract_contact_details(session)
            line_items = self.reconstruct_line_items(session)
        except MetadataError as e:
            logger.error(
                "orders.reconcile metadata_invalid session_id=%s error=%s",
                session_id, e, extra={"alert": "reconciliation", "session_id": session_id},
            )
            return WebhookOutcome(status=OutcomeStatus.RECONCILIATION_FAILED, state=SessionState.COMPLETED, session_id=session_id)
        except Exception:
            logger.exception(
                "orders.reconcile line_items_failed session_id=%s", session_id,
                extra={"alert": "reconciliation", "session_id": session_id},
            )
            return WebhookOutcome(status=OutcomeStatus.ORDER_FAILED, state=SessionState.COMPLETED, session_id=session_id)

        payload = self.build_order_payload(session, billing, shipping, line_items)
        try:
            order = repository.create_order(self.woocommerce, payload)
        except WooCommerceError as e:
            if e.is_duplicate:
                logger.info("orders.reconcile duplicate_rejected session_id=%s", session_id)
                return WebhookOutcome(status=OutcomeStatus.DUPLICATE, state=SessionState.ORDER_POSTED, session_id=session_id)
            logger.error(
                "orders.reconcile order_failed session_id=%s status=%s code=%s error=%s",
                session_id, e.status_code, e.code, e.message,
                extra={"alert": "reconciliation", "session_id": session_id},
            )
            return WebhookOutcome(status=OutcomeStatus.ORDER_FAILED, state=SessionState.COMPLETED, session_id=session_id)

        order_id = (order or {}).get("id")
        logger.info("orders.reconcile created session_id=%s order_id=%s items=%s", session_id, order_id, len(line_items))
        return WebhookOutcome(
            status=OutcomeStatus.CREATED,
            state=SessionState.ORDER_POSTED,
            session_id=session_id,
            order_id=order_id,
        )

    def reconstruct_line_items(self, session: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Reconstruit les line_items WooCommerce depuis Stripe (jamais depuis le seul payload d'événement).
        - product_id lu dans la metadata produit des lignes relues (expand data.price.product)
        - repli sur la metadata 'cart' de la session si une ligne n'a pas de product_id
        - Lève MetadataError si aucune ligne exploitable
        """
        fetched = self.gateway.list_line_items(str(session.get("id")))
        items: List[Dict[str, Any]] = []
        complete = True
        for line in fetched:
            meta = line.get("product_metadata") or {}
            try:
                product_id = int(meta.get("product_id") or 0)
            except ValueError:
                product_id = 0
            if product_id <= 0:
                complete = False
                break
            item: Dict[str, Any] = {"product_id": product_id, "quantity": int(line.get("quantity") or 1)}
            bundle_meta = [
                {"key": key, "value": meta[key]}
                for key in ("bundle_type", "bundle_label")
                if meta.get(key)
            ]
            if bundle_meta:
                item["meta_data"] = bundle_meta
            items.append(item)

        if complete and items:
            return items
        cart = extract_cart(session)
        if cart:
            logger.warning("orders.reconcile using_cart_metadata session_id=%s", session.get("id"))
            return cart
        raise MetadataError("No product ids found in line items or cart metadata")

    def build_order_payload(
        self,
        session: Dict[str, Any],
        billing: ContactDetails,
        shipping: ContactDetails,
        line_items: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        intent = payment_intent_id(session)
        return {
            "status": "processing",
            "set_paid": True,
            "customer_id": 0,
            "billing": billing_address(billing, session_email(session)),
            "shipping": shipping_address(shipping, billing),
            "line_items": line_items,
            "payment_method": self.settings.payment_method,
            "payment_method_title": self.settings.payment_method_title,
            "transaction_id": intent,
            "meta_data": [
                {"key": SESSION_ID_META_KEY, "value": session.get("id")},
                {"key": PAYMENT_INTENT_META_KEY, "value": intent},
            ],
        }
