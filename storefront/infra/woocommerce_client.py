"""
Adaptateur WooCommerce (REST API v3): centralise les appels HTTP vers le backend commerce.

- Authentification basique (consumer key / consumer secret).
- En-tête Host optionnel (requis par certains environnements locaux, ex: Local by Flywheel).
- Timeout par défaut configurable, surchargeable appel par appel (ex: devis livraison/taxes).
- Toute erreur HTTP ou réseau est convertie en WooCommerceError.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from storefront.config import Settings

logger = logging.getLogger(__name__)


class WooCommerceError(Exception):
    """
    Erreur d'appel au backend commerce.
    - status_code: code HTTP (None si erreur réseau/timeout)
    - code: code d'erreur WooCommerce (ex: woocommerce_rest_shop_order_invalid_id) ou 'timeout'/'unreachable'
    """

    def __init__(self, message: str, status_code: Optional[int] = None, code: str = ""):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    @property
    def is_duplicate(self) -> bool:
        return self.status_code == 409 or "duplicate" in (self.code or "").lower()


# module storefront.infra.woocommerce_client
class WooCommerceClient:
    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None):
        headers = {"Content-Type": "application/json"}
        if settings.woocommerce_host_header:
            headers["Host"] = settings.woocommerce_host_header
        self.base_url = settings.woocommerce_api_url
        self._client = httpx.Client(
            base_url=self.base_url,
            auth=(settings.woocommerce_consumer_key, settings.woocommerce_consumer_secret),
            headers=headers,
            timeout=settings.woocommerce_timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, *, timeout: Optional[float] = None, **kwargs) -> Any:
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            resp = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise WooCommerceError(f"WooCommerce timeout on {method} {path}", code="timeout") from e
        except httpx.HTTPError as e:
            raise WooCommerceError(f"WooCommerce unreachable on {method} {path}: {e}", code="unreachable") from e

        if resp.is_error:
            code, message = "", resp.text
            try:
                body = resp.json()
                if isinstance(body, dict):
                    code = str(body.get("code") or "")
                    message = str(body.get("message") or message)
            except ValueError:
                pass
            raise WooCommerceError(message, status_code=resp.status_code, code=code)
        try:
            return resp.json()
        except ValueError as e:
            raise WooCommerceError(f"Invalid JSON from WooCommerce on {method} {path}", status_code=resp.status_code) from e

    # --- Commandes ---
    def create_order(self, payload: Dict[str, Any], *, timeout: Optional[float] = None) -> Dict[str, Any]:
        return self._request("POST", "/orders", json=payload, timeout=timeout)

    def delete_order(self, order_id: Any, *, force: bool = True, timeout: Optional[float] = None) -> Dict[str, Any]:
        return self._request("DELETE", f"/orders/{order_id}", params={"force": "true" if force else "false"}, timeout=timeout)

    def search_orders(self, term: str, *, per_page: int = 20) -> List[Dict[str, Any]]:
        return self._request("GET", "/orders", params={"search": term, "per_page": per_page, "status": "any"}) or []

    # --- Coupons ---
    def list_coupons(self, code: str) -> List[Dict[str, Any]]:
        return self._request("GET", "/coupons", params={"code": code}) or []

    # --- Zones de livraison ---
    def list_shipping_zones(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/shipping/zones") or []

    def list_zone_locations(self, zone_id: Any) -> List[Dict[str, Any]]:
        return self._request("GET", f"/shipping/zones/{zone_id}/locations") or []

    # --- Santé ---
    def ping(self) -> Dict[str, Any]:
        return self._request("GET", "/")
