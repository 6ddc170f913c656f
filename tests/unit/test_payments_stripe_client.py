import json
from unittest.mock import MagicMock

import pytest
import stripe

from storefront.payments.stripe_client import MalformedEventError, StripeGateway, WebhookSignatureError


def test_create_session_passes_api_key_per_call(monkeypatch, settings):
    captured = {}

    def fake_create(**kwargs):
        captured.update(kwargs)
        return MagicMock(id="cs_test_abc", url="https://checkout.stripe.test/c/pay/cs_test_abc")

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    result = StripeGateway(settings).create_session({"mode": "payment", "line_items": []})

    assert result == {"id": "cs_test_abc", "url": "https://checkout.stripe.test/c/pay/cs_test_abc"}
    assert captured["api_key"] == "sk_test_dummy"
    assert captured["mode"] == "payment"


def test_find_promotion_code(monkeypatch, settings):
    monkeypatch.setattr(stripe.PromotionCode, "list", lambda **kw: MagicMock(data=[MagicMock(id="promo_1")]))
    assert StripeGateway(settings).find_promotion_code("SAVE10") == "promo_1"

    monkeypatch.setattr(stripe.PromotionCode, "list", lambda **kw: MagicMock(data=[]))
    assert StripeGateway(settings).find_promotion_code("SAVE10") is None


def test_find_valid_coupon_missing_is_none(monkeypatch, settings):
    def missing(coupon_id, **kw):
        raise stripe.InvalidRequestError("No such coupon", param="id", code="resource_missing")

    monkeypatch.setattr(stripe.Coupon, "retrieve", missing)
    assert StripeGateway(settings).find_valid_coupon("NOPE") is None


def test_find_valid_coupon_invalid_is_none(monkeypatch, settings):
    monkeypatch.setattr(stripe.Coupon, "retrieve", lambda coupon_id, **kw: MagicMock(id=coupon_id, valid=False))
    assert StripeGateway(settings).find_valid_coupon("OLD") is None

    monkeypatch.setattr(stripe.Coupon, "retrieve", lambda coupon_id, **kw: MagicMock(id=coupon_id, valid=True))
    assert StripeGateway(settings).find_valid_coupon("WELCOME") == "WELCOME"


def test_list_line_items_reads_expanded_product_metadata(monkeypatch, settings):
    product = MagicMock(metadata={"product_id": "42", "bundle_type": "one-month"})
    item = MagicMock(description="Serum (1 Month)", quantity=2, amount_total=15000, price=MagicMock(product=product))
    captured = {}

    def fake_list(session_id, **kw):
        captured.update(kw, session_id=session_id)
        return MagicMock(data=[item])

    monkeypatch.setattr(stripe.checkout.Session, "list_line_items", fake_list)
    items = StripeGateway(settings).list_line_items("cs_test_1")

    assert captured["session_id"] == "cs_test_1"
    assert captured["expand"] == ["data.price.product"]
    assert items == [{
        "description": "Serum (1 Month)",
        "quantity": 2,
        "amount_total": 15000,
        "product_metadata": {"product_id": "42", "bundle_type": "one-month"},
    }]


def test_verify_event_accepts_valid_signature(settings, sign):
    payload = json.dumps({"id": "evt_1", "type": "checkout.session.completed", "data": {"object": {}}})
    event = StripeGateway(settings).verify_event(payload.encode("utf-8"), sign(payload))
    assert event["type"] == "checkout.session.completed"


def test_verify_event_rejects_bad_signature(settings, sign):
    payload = json.dumps({"id": "evt_1", "type": "checkout.session.completed"})
    with pytest.raises(WebhookSignatureError):
        StripeGateway(settings).verify_event(payload.encode("utf-8"), sign(payload, secret="whsec_other"))


def test_verify_event_rejects_tampered_body(settings, sign):
    payload = json.dumps({"id": "evt_1", "type": "checkout.session.completed"})
    tampered = payload.replace("evt_1", "evt_2")
    with pytest.raises(WebhookSignatureError):
        StripeGateway(settings).verify_event(tampered.encode("utf-8"), sign(payload))


def test_verify_event_missing_header_or_secret(settings, sign):
    payload = '{"type": "x"}'
    with pytest.raises(WebhookSignatureError):
        StripeGateway(settings).verify_event(payload.encode("utf-8"), None)

    no_secret = settings.model_copy(update={"stripe_webhook_secret": ""})
    with pytest.raises(WebhookSignatureError):
        StripeGateway(no_secret).verify_event(payload.encode("utf-8"), sign(payload))


def test_verify_event_signed_but_malformed(settings, sign):
    payload = "not json at all"
    with pytest.raises(MalformedEventError):
        StripeGateway(settings).verify_event(payload.encode("utf-8"), sign(payload))

    payload = json.dumps({"id": "evt_1"})
    with pytest.raises(MalformedEventError):
        StripeGateway(settings).verify_event(payload.encode("utf-8"), sign(payload))


def test_verify_event_non_utf8_body_is_signature_error(settings, sign):
    with pytest.raises(WebhookSignatureError):
        StripeGateway(settings).verify_event(b"\xff\xfe{bad", sign("{bad"))
