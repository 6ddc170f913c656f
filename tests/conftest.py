import hashlib
import hmac
import json
import os
import time
from decimal import Decimal
from typing import Any, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient

# Pas de Redis en tests: le lifespan désactive fastapi-limiter
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

from storefront.app_setup.factory import create_app
from storefront.config import Settings
from storefront.dependencies import get_stripe_gateway, get_woocommerce
from storefront.infra.woocommerce_client import WooCommerceError
from storefront.models import CartLine, ContactDetails
from storefront.payments.cart import make_metadata
from storefront.payments.stripe_client import StripeGateway

WEBHOOK_SECRET = "whsec_test_secret"


# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)
        elif "tests/functional/" in nodeid:
            item.add_marker(pytest.mark.functional)


class FakeWooCommerce:
    """
    Backend commerce en mémoire.
    - Commandes provisoires (set_paid=False): reçoivent quote_totals comme le ferait WooCommerce.
    - search_orders: recherche large (sous-chaîne dans toute la commande), comme ?search= côté WordPress.
    - enforce_unique_session: refuse (409) une 2e commande portant le même stripe_session_id.
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self.orders: Dict[int, Dict[str, Any]] = {}
        self.deleted: List[int] = []
        self.coupons: Dict[str, List[Dict[str, Any]]] = {}
        self.quote_totals = {
            "shipping_total": "25.00",
            "shipping_tax": "1.25",
            "total_tax": "8.75",
            "total": "183.75",
            "shipping_lines": [{"method_id": "flat_rate", "method_title": "Flat rate", "total": "25.00"}],
        }
        self.zones: List[Dict[str, Any]] = []
        self.zone_locations: Dict[int, List[Dict[str, Any]]] = {}
        self.coupon_error: Optional[Exception] = None
        self.create_error: Optional[Exception] = None
        self.delete_error: Optional[Exception] = None
        self.search_error: Optional[Exception] = None
        self.zones_error: Optional[Exception] = None
        self.enforce_unique_session = False
        self._next_id = 100

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    def paid_orders(self) -> List[Dict[str, Any]]:
        return [o for o in self.orders.values() if o.get("set_paid")]

    @staticmethod
    def _session_meta(order: Dict[str, Any]) -> Optional[str]:
        for meta in order.get("meta_data") or []:
            if meta.get("key") == "stripe_session_id":
                return meta.get("value")
        return None

    def create_order(self, payload, *, timeout=None):
        self.calls.append(("create_order", payload))
        if self.create_error:
            raise self.create_error
        session_id = self._session_meta(payload)
        if self.enforce_unique_session and session_id:
            if any(self._session_meta(o) == session_id for o in self.orders.values()):
                raise WooCommerceError("Duplicate stripe_session_id", status_code=409, code="duplicate_session")
        self._next_id += 1
        order = dict(payload, id=self._next_id)
        if not payload.get("set_paid"):
            order.update(self.quote_totals)
        self.orders[self._next_id] = order
        return order

    def delete_order(self, order_id, *, force=True, timeout=None):
        self.calls.append(("delete_order", order_id))
        if self.delete_error:
            raise self.delete_error
        self.deleted.append(order_id)
        return self.orders.pop(order_id, {"id": order_id})

    def search_orders(self, term, *, per_page=20):
        self.calls.append(("search_orders", term))
        if self.search_error:
            raise self.search_error
        return [o for o in self.orders.values() if term in json.dumps(o)]

    def list_coupons(self, code):
        self.calls.append(("list_coupons", code))
        if self.coupon_error:
            raise self.coupon_error
        return self.coupons.get(code.upper(), [])

    def list_shipping_zones(self):
        self.calls.append(("list_shipping_zones", None))
        if self.zones_error:
            raise self.zones_error
        return self.zones

    def list_zone_locations(self, zone_id):
        self.calls.append(("list_zone_locations", zone_id))
        return self.zone_locations.get(zone_id, [])

    def ping(self):
        self.calls.append(("ping", None))
        return {"namespace": "wc/v3"}

    def close(self):
        pass


class FakeStripeGateway(StripeGateway):
    """
    Passerelle Stripe sans réseau: la vérification de signature (verify_event) reste la vraie.
    """

    def __init__(self, settings: Settings):
        super().__init__(settings)
        self.created: List[Dict[str, Any]] = []
        self.promotion_codes: Dict[str, str] = {}
        self.coupons: Dict[str, str] = {}
        self.line_items: Dict[str, List[Dict[str, Any]]] = {}
        self.default_line_items = [
            {
                "description": "Vitamin C Serum (1 Month)",
                "quantity": 2,
                "amount_total": 15000,
                "product_metadata": {"product_id": "42", "bundle_type": "one-month", "bundle_label": "1 Month"},
            }
        ]
        self.create_error: Optional[Exception] = None
        self.discount_error: Optional[Exception] = None
        self.line_items_error: Optional[Exception] = None
        self.line_items_calls = 0

    def create_session(self, params):
        if self.create_error:
            raise self.create_error
        self.created.append(params)
        n = len(self.created)
        return {"id": f"cs_test_{n}", "url": f"https://checkout.stripe.test/c/pay/cs_test_{n}"}

    def find_promotion_code(self, code):
        if self.discount_error:
            raise self.discount_error
        return self.promotion_codes.get(code)

    def find_valid_coupon(self, coupon_id):
        if self.discount_error:
            raise self.discount_error
        return self.coupons.get(coupon_id)

    def list_line_items(self, session_id):
        self.line_items_calls += 1
        if self.line_items_error:
            raise self.line_items_error
        return self.line_items.get(session_id, self.default_line_items)


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """En-tête Stripe-Signature (schéma v1: HMAC-SHA256 de 't.payload')."""
    ts = timestamp if timestamp is not None else int(time.time())
    signature = hmac.new(secret.encode("utf-8"), f"{ts}.{payload}".encode("utf-8"), hashlib.sha256).hexdigest()
    return f"t={ts},v1={signature}"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        woocommerce_url="https://shop.example.test",
        woocommerce_consumer_key="ck_test",
        woocommerce_consumer_secret="cs_test",
        stripe_secret_key="sk_test_dummy",
        stripe_webhook_secret=WEBHOOK_SECRET,
        site_url="https://store.example.test",
        allowed_hosts=["testserver"],
    )


@pytest.fixture
def fake_wc() -> FakeWooCommerce:
    return FakeWooCommerce()


@pytest.fixture
def fake_stripe(settings) -> FakeStripeGateway:
    return FakeStripeGateway(settings)


@pytest.fixture
def billing() -> ContactDetails:
    return ContactDetails(
        first_name="Jane",
        last_name="Doe",
        address1="Villa 12, Street 4",
        city="Dubai",
        state="DU",
        postcode="00000",
        country="AE",
        email="jane@example.com",
        phone="+971500000000",
    )


@pytest.fixture
def cart_lines() -> List[CartLine]:
    return [
        CartLine(product_id=42, quantity=2, unit_price=Decimal("75.00"), name="Vitamin C Serum", bundle_label="1 Month"),
    ]


@pytest.fixture
def session_event(billing, cart_lines):
    """Fabrique d'événements checkout.session.* avec une metadata au format écrit par le checkout."""
    def _make(
        session_id: str = "cs_test_1",
        event_type: str = "checkout.session.completed",
        payment_status: str = "paid",
        metadata: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        return {
            "id": "evt_test_1",
            "type": event_type,
            "data": {
                "object": {
                    "id": session_id,
                    "object": "checkout.session",
                    "payment_status": payment_status,
                    "customer_email": "jane@example.com",
                    "payment_intent": "pi_test_1",
                    "metadata": metadata if metadata is not None else make_metadata(cart_lines, billing),
                }
            },
        }
    return _make


@pytest.fixture
def sign():
    return sign_payload


@pytest.fixture
def app(settings, fake_wc, fake_stripe):
    fastapi_app = create_app(settings)
    fastapi_app.dependency_overrides[get_woocommerce] = lambda: fake_wc
    fastapi_app.dependency_overrides[get_stripe_gateway] = lambda: fake_stripe
    try:
        yield fastapi_app
    finally:
        fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c
