"""
Désérialisation des métadonnées de session Stripe (billingDetails, shippingDetails, cart).

Contrat versionné écrit par payments.cart.make_metadata: la forme est validée à la lecture,
toute metadata illisible devient une MetadataError (erreur de réconciliation, jamais une exception non gérée).
"""
import json
from typing import Any, Dict, List, Tuple

from pydantic import ValidationError

from storefront.models import ContactDetails
from .cart import METADATA_VERSION


class MetadataError(Exception):
    """Metadata de session absente, illisible ou de forme inattendue."""


def _parse_contact(raw: Any, field: str) -> ContactDetails:
    if not raw:
        raise MetadataError(f"{field} missing")
    try:
        data = json.loads(raw) if isinstance(raw, str) else raw
    except ValueError as e:
        raise MetadataError(f"{field} is not valid JSON") from e
    if not isinstance(data, dict):
        raise MetadataError(f"{field} must be a JSON object")
    try:
        return ContactDetails.model_validate(data)
    except ValidationError as e:
        raise MetadataError(f"{field} has an invalid shape: {e.errors()[0].get('msg')}") from e


# module storefront.payments.metadata
def extract_contact_details(session: Dict[str, Any]) -> Tuple[ContactDetails, ContactDetails]:
    """
    Extrait (billing, shipping) depuis une session Stripe Checkout.
    - Attend session["metadata"] = {metadataVersion, billingDetails(JSON), shippingDetails(JSON)}
    - Une metadata sans version est acceptée (sessions antérieures au versionnage).
    - shippingDetails absent: on retombe sur billing.
    """
    meta = (session or {}).get("metadata") or {}
    version = meta.get("metadataVersion")
    if version and version != METADATA_VERSION:
        raise MetadataError(f"Unsupported metadata version {version}")
    billing = _parse_contact(meta.get("billingDetails"), "billingDetails")
    if meta.get("shippingDetails"):
        shipping = _parse_contact(meta.get("shippingDetails"), "shippingDetails")
    else:
        shipping = billing
    return billing, shipping


def extract_cart(session: Dict[str, Any]) -> List[Dict[str, int]]:
    """
    Extrait le panier compact [{product_id, quantity}] de la metadata.
    - Tolérant: retourne [] si absent ou illisible (ce n'est qu'un repli).
    """
    meta = (session or {}).get("metadata") or {}
    try:
        cart = json.loads(meta.get("cart") or "[]")
    except ValueError:
        return []
    result: List[Dict[str, int]] = []
    for entry in cart if isinstance(cart, list) else []:
        try:
            pid = int(entry.get("product_id") or 0)
            qty = int(entry.get("quantity") or 0)
        except (AttributeError, TypeError, ValueError):
            continue
        if pid > 0 and qty > 0:
            result.append({"product_id": pid, "quantity": qty})
    return result
