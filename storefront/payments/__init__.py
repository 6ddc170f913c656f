"""
Module 'payments' (feature-first): point d'entrée public.
Réunit logique panier, metadata Stripe, client Stripe et construction de session.
"""

from .cart import line_name, to_line_items, make_metadata
from .metadata import MetadataError, extract_contact_details, extract_cart
from .stripe_client import StripeGateway, WebhookSignatureError, MalformedEventError
from .service import CheckoutSessionBuilder

__all__ = [
    # cart
    "line_name",
    "to_line_items",
    "make_metadata",
    # metadata
    "MetadataError",
    "extract_contact_details",
    "extract_cart",
    # stripe
    "StripeGateway",
    "WebhookSignatureError",
    "MalformedEventError",
    # services
    "CheckoutSessionBuilder",
]
