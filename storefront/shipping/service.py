"""
Devis livraison/taxes via une commande provisoire WooCommerce.

Le backend possède les zones de livraison et les règles de taxe: on ne les recalcule pas ici.
Protocole (oracle de prix opaque):
  1) POST /orders (status=pending, set_paid=false, billing=shipping=destination)
  2) lecture de shipping_total, shipping_tax, total_tax, total
  3) DELETE /orders/{id}?force=true en best-effort (action compensatoire journalisée)
Toute erreur backend dégrade vers un devis à zéro avec un message, jamais une exception.
"""
import logging
from typing import Any, Dict, Sequence

from storefront.config import Settings
from storefront.infra.woocommerce_client import WooCommerceClient, WooCommerceError
from storefront.models import CartLine, Destination
from storefront.utils.money import to_decimal
from .models import QUOTE_ERROR_MESSAGE, QuoteResult

logger = logging.getLogger(__name__)


def build_provisional_order(lines: Sequence[CartLine], destination: Destination) -> Dict[str, Any]:
    address = destination.as_address()
    return {
        "status": "pending",
        "set_paid": False,
        "billing": dict(address),
        "shipping": dict(address),
        "line_items": [{"product_id": line.product_id, "quantity": line.quantity} for line in lines],
    }


def read_totals(order: Dict[str, Any]) -> QuoteResult:
    """
    Extrait le devis des totaux calculés par le backend.
    - shipping = shipping_total + shipping_tax
    - tax = total_tax
    - subtotal = total - shipping_total - total_tax
    - Lève ValueError si un total n'est pas numérique.
    """
    shipping_total = to_decimal(order.get("shipping_total"))
    shipping_tax = to_decimal(order.get("shipping_tax"))
    total_tax = to_decimal(order.get("total_tax"))
    total = to_decimal(order.get("total"))
    return QuoteResult(
        shipping=shipping_total + shipping_tax,
        tax=total_tax,
        subtotal=total - shipping_total - total_tax,
        shipping_methods=list(order.get("shipping_lines") or []),
    )


# module storefront.shipping.service
class QuoteService:
    def __init__(self, woocommerce: WooCommerceClient, settings: Settings):
        self.woocommerce = woocommerce
        self.settings = settings

    def quote(self, lines: Sequence[CartLine], destination: Destination) -> QuoteResult:
        if not lines or not destination.is_quotable:
            # Pas encore chiffrable (panier vide ou pays non choisi): aucun appel backend
            return QuoteResult.zero()

        try:
            order = self.woocommerce.create_order(
                build_provisional_order(lines, destination),
                timeout=self.settings.quote_timeout,
            )
        except WooCommerceError as e:
            logger.warning(
                "shipping.quote backend_unavailable country=%s status=%s code=%s error=%s",
                destination.country, e.status_code, e.code, e.message,
            )
            return QuoteResult.zero(error=QUOTE_ERROR_MESSAGE)
        except Exception:
            logger.exception("shipping.quote adapter_failed country=%s", destination.country)
            return QuoteResult.zero(error=QUOTE_ERROR_MESSAGE)

        if not isinstance(order, dict):
            # Réponse 2xx inexploitable (liste, null...): aucun id à supprimer
            logger.warning("shipping.quote unexpected_body type=%s", type(order).__name__)
            return QuoteResult.zero(error=QUOTE_ERROR_MESSAGE)

        try:
            result = read_totals(order)
        except ValueError as e:
            logger.warning("shipping.quote unreadable_totals order_id=%s error=%s", order.get("id"), e)
            result = QuoteResult.zero(error=QUOTE_ERROR_MESSAGE)
        finally:
            self.discard_provisional_order(order.get("id"))

        logger.info(
            "shipping.quote country=%s shipping=%s tax=%s",
            destination.country, result.shipping, result.tax,
        )
        return result

    def discard_provisional_order(self, order_id: Any) -> bool:
        """
        Supprime la commande provisoire (force=true, sans passer par la corbeille).
        - Best-effort: un échec est journalisé et n'affecte jamais le devis renvoyé.
        """
        if not order_id:
            return False
        try:
            self.woocommerce.delete_order(order_id, force=True, timeout=self.settings.quote_timeout)
            return True
        except Exception:
            logger.exception("shipping.quote cleanup_failed order_id=%s", order_id)
            return False
