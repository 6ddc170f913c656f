"""
Accès aux commandes WooCommerce pour la réconciliation des paiements.
"""
import logging
from typing import Any, Dict, Optional

from storefront.infra.woocommerce_client import WooCommerceClient
from .models import SESSION_ID_META_KEY

logger = logging.getLogger(__name__)


def _has_session_meta(order: Dict[str, Any], session_id: str) -> bool:
    for meta in order.get("meta_data") or []:
        if meta.get("key") == SESSION_ID_META_KEY and str(meta.get("value")) == session_id:
            return True
    return False


# module storefront.orders.repository
def find_order_by_session(woocommerce: WooCommerceClient, session_id: str) -> Optional[Dict[str, Any]]:
    """
    Cherche une commande déjà créée pour cette session Stripe.
    - La recherche WooCommerce est large (search=...), on filtre strictement sur meta_data.
    - Nécessite que stripe_session_id soit indexé dans les champs de recherche côté WordPress.
    - Propage WooCommerceError (l'appelant décide de la politique).
    """
    if not session_id:
        return None
    for order in woocommerce.search_orders(session_id):
        if _has_session_meta(order, session_id):
            return order
    return None


def create_order(woocommerce: WooCommerceClient, payload: Dict[str, Any]) -> Dict[str, Any]:
    """POST /orders; propage WooCommerceError (dont les refus de doublon 409)."""
    return woocommerce.create_order(payload)
