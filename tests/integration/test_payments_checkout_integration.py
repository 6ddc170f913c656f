import json

import stripe


def _payload(**overrides):
    body = {
        "lines": [{"productId": 42, "quantity": 2, "unitPrice": "19.995", "name": "Vitamin C Serum", "bundleLabel": "1 Month"}],
        "couponCode": None,
        "customerEmail": "jane@example.com",
        "billingDetails": {"firstName": "Jane", "lastName": "Doe", "address1": "Villa 12", "city": "Dubai", "country": "AE"},
    }
    body.update(overrides)
    return body


def test_checkout_returns_session(client, fake_stripe):
    r = client.post("/api/v1/payments/checkout", json=_payload())
    assert r.status_code == 200
    assert r.json() == {"sessionId": "cs_test_1", "url": "https://checkout.stripe.test/c/pay/cs_test_1"}

    params = fake_stripe.created[0]
    assert params["line_items"][0]["price_data"]["unit_amount"] == 2000
    billing = json.loads(params["metadata"]["billingDetails"])
    assert billing["firstName"] == "Jane"
    # shippingDetails absent: copie de billingDetails
    assert params["metadata"]["shippingDetails"] == params["metadata"]["billingDetails"]


def test_checkout_with_promotion_code(client, fake_stripe):
    fake_stripe.promotion_codes["SAVE10"] = "promo_123"
    r = client.post("/api/v1/payments/checkout", json=_payload(couponCode="SAVE10"))
    assert r.status_code == 200
    assert fake_stripe.created[0]["discounts"] == [{"promotion_code": "promo_123"}]


def test_checkout_empty_cart_is_400(client, fake_stripe):
    r = client.post("/api/v1/payments/checkout", json=_payload(lines=[]))
    assert r.status_code == 400
    assert r.json() == {"detail": "No items in cart"}
    assert fake_stripe.created == []


def test_checkout_stripe_failure_is_502(client, fake_stripe):
    fake_stripe.create_error = stripe.APIConnectionError("Stripe unreachable")
    r = client.post("/api/v1/payments/checkout", json=_payload())
    assert r.status_code == 502


def test_checkout_billing_without_country_is_422(client):
    r = client.post("/api/v1/payments/checkout", json=_payload(billingDetails={"firstName": "Jane"}))
    assert r.status_code == 422
