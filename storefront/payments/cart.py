"""
Logique panier pure (pas de Stripe, pas de WooCommerce).
Transforme les lignes du panier client en line_items Stripe et en metadata de session.
"""
import json
from typing import Any, Dict, List, Optional, Sequence

from fastapi import HTTPException

from storefront.models import CartLine, ContactDetails
from storefront.utils.money import to_minor_units

METADATA_VERSION = "1"
# Limite Stripe: 500 caractères par valeur de metadata
STRIPE_METADATA_VALUE_LIMIT = 500


# module storefront.payments.cart
def line_name(line: CartLine) -> str:
    name = line.name or f"Product #{line.product_id}"
    return f"{name} ({line.bundle_label})" if line.bundle_label else name


def to_line_items(lines: Sequence[CartLine], currency: str) -> List[Dict[str, Any]]:
    """
    Construit les line_items Stripe à partir des lignes du panier.
    - Une ligne panier = une ligne Stripe (pas d'agrégation: bundles distincts).
    - unit_amount en unités mineures, arrondi half-up (19.995 -> 2000).
    - product_data.metadata porte product_id/bundle/cart_item_id pour la réconciliation webhook.
    - Soulève HTTPException(400) si le panier est vide.
    """
    if not lines:
        raise HTTPException(status_code=400, detail="No items in cart")
    line_items: List[Dict[str, Any]] = []
    for line in lines:
        product_data: Dict[str, Any] = {
            "name": line_name(line),
            "metadata": {
                "product_id": str(line.product_id),
                "bundle_type": line.bundle_type or "one-month",
                "bundle_label": line.bundle_label or "",
                "cart_item_id": line.cart_item_id or "",
            },
        }
        if line.image:
            product_data["images"] = [line.image]
        if line.description:
            product_data["description"] = line.description
        line_items.append({
            "quantity": line.quantity,
            "price_data": {
                "currency": currency,
                "unit_amount": to_minor_units(line.unit_price),
                "product_data": product_data,
            },
        })
    return line_items


def make_metadata(
    lines: Sequence[CartLine],
    billing: ContactDetails,
    shipping: Optional[ContactDetails] = None,
) -> Dict[str, str]:
    """
    Sérialise les métadonnées de session (contrat versionné, relu par le webhook).
    - billingDetails / shippingDetails: JSON camelCase; shipping = billing si absent.
    - cart: JSON compact [{product_id, quantity}] seulement s'il tient dans la limite Stripe.
    """
    shipping = shipping or billing
    metadata = {
        "metadataVersion": METADATA_VERSION,
        "billingDetails": billing.model_dump_json(by_alias=True),
        "shippingDetails": shipping.model_dump_json(by_alias=True),
    }
    cart_json = json.dumps(
        [{"product_id": line.product_id, "quantity": line.quantity} for line in lines],
        separators=(",", ":"),
    )
    if len(cart_json) <= STRIPE_METADATA_VALUE_LIMIT:
        metadata["cart"] = cart_json
    return metadata
