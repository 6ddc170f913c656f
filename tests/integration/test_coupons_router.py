def test_validate_coupon_ok(client, fake_wc):
    fake_wc.coupons["SAVE10"] = [{"id": 7, "code": "save10", "discount_type": "percent", "amount": "10.00",
                                  "minimum_amount": "", "maximum_amount": "", "usage_count": 0}]
    r = client.post("/api/v1/coupons/validate", json={"code": "save10", "cartTotal": 200})

    assert r.status_code == 200
    data = r.json()
    assert data["valid"] is True
    assert data["discount"] == 20.0
    assert data["coupon"]["code"] == "SAVE10"
    assert data["coupon"]["discountType"] == "percent"


def test_validate_coupon_minimum_not_met(client, fake_wc):
    fake_wc.coupons["MIN150"] = [{"id": 8, "code": "min150", "discount_type": "fixed_cart", "amount": "20",
                                  "minimum_amount": "150.00"}]
    r = client.post("/api/v1/coupons/validate", json={"code": "MIN150", "cartTotal": 100})

    assert r.status_code == 200
    assert r.json() == {"valid": False, "message": "Minimum order amount of Dhs. 150.00 required"}


def test_validate_coupon_empty_code_is_400(client, fake_wc):
    r = client.post("/api/v1/coupons/validate", json={"code": "", "cartTotal": 100})
    assert r.status_code == 400
    assert r.json() == {"valid": False, "message": "Coupon code required"}
    assert fake_wc.count("list_coupons") == 0


def test_validate_coupon_unknown(client):
    r = client.post("/api/v1/coupons/validate", json={"code": "NOPE", "cartTotal": 100})
    assert r.status_code == 200
    assert r.json()["message"] == "Invalid coupon code"
