"""
Factory d'application pour les entrypoints (ex: storefront.asgi).
Ordonne les étapes d'initialisation de manière lisible et testable.
"""
from typing import Optional

from fastapi import FastAPI

from storefront.config import Settings, load_settings
from storefront.infra.woocommerce_client import WooCommerceClient
from storefront.payments.stripe_client import StripeGateway
from .exceptions import register_exception_handlers
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_no_cache_middleware, register_security_middleware
from .routers import register_routers


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Construit l'app FastAPI avec le lifespan et enregistre:
      - la configuration et les adaptateurs (WooCommerce, Stripe) sur app.state
      - middlewares de base, sécurité, no-cache
      - gestionnaires d'exceptions et routers (API v1, health)
    Retour:
      FastAPI prêt à être utilisé par le serveur ASGI.
    """
    settings = settings or load_settings()
    app = FastAPI(title="Storefront Checkout API", lifespan=lifespan)
    app.state.settings = settings
    app.state.woocommerce = WooCommerceClient(settings)
    app.state.stripe_gateway = StripeGateway(settings)

    register_basic_middlewares(app, settings)
    register_security_middleware(app, settings)
    register_no_cache_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
