from fastapi.testclient import TestClient

from storefront.app_setup.factory import create_app


def test_unknown_host_rejected_even_with_open_cors(settings):
    # CORS ouvert ne doit pas ouvrir le contrôle des hôtes
    app = create_app(settings.model_copy(update={"cors_origins": ["*"], "allowed_hosts": ["store.example.test"]}))
    with TestClient(app) as client:
        r = client.get("/health")
    assert r.status_code == 400


def test_allowed_hosts_wildcard_accepts_any_host(settings):
    app = create_app(settings.model_copy(update={"allowed_hosts": ["*"]}))
    with TestClient(app) as client:
        r = client.get("/health")
    assert r.status_code == 200


def test_api_responses_are_not_cached(client):
    r = client.get("/api/v1/shipping/locations")
    assert r.headers["cache-control"].startswith("no-store")
    assert r.headers["x-frame-options"] == "DENY"
