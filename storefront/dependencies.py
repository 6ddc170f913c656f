"""
Dépendances FastAPI: exposent la configuration et les adaptateurs posés sur app.state par la factory.
Les tests remplacent ces fonctions via app.dependency_overrides (fakes, sans toucher l'environnement).
"""
from fastapi import Depends, Request

from storefront.config import Settings
from storefront.coupons.service import CouponValidator
from storefront.infra.woocommerce_client import WooCommerceClient
from storefront.orders.service import OrderReconciler
from storefront.payments.service import CheckoutSessionBuilder
from storefront.payments.stripe_client import StripeGateway
from storefront.shipping.service import QuoteService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_woocommerce(request: Request) -> WooCommerceClient:
    return request.app.state.woocommerce


def get_stripe_gateway(request: Request) -> StripeGateway:
    return request.app.state.stripe_gateway


def get_coupon_validator(
    woocommerce: WooCommerceClient = Depends(get_woocommerce),
    settings: Settings = Depends(get_settings),
) -> CouponValidator:
    return CouponValidator(woocommerce, settings)


def get_quote_service(
    woocommerce: WooCommerceClient = Depends(get_woocommerce),
    settings: Settings = Depends(get_settings),
) -> QuoteService:
    return QuoteService(woocommerce, settings)


def get_checkout_builder(
    gateway: StripeGateway = Depends(get_stripe_gateway),
    settings: Settings = Depends(get_settings),
) -> CheckoutSessionBuilder:
    return CheckoutSessionBuilder(gateway, settings)


def get_order_reconciler(
    gateway: StripeGateway = Depends(get_stripe_gateway),
    woocommerce: WooCommerceClient = Depends(get_woocommerce),
    settings: Settings = Depends(get_settings),
) -> OrderReconciler:
    return OrderReconciler(gateway, woocommerce, settings)
