from urllib.parse import urlparse
import socket
from typing import Any, Dict

from storefront.infra.woocommerce_client import WooCommerceClient, WooCommerceError


def health_woocommerce_info(woocommerce: WooCommerceClient, woocommerce_url: str) -> Dict[str, Any]:
    """
    Diagnostic de connectivité vers le backend commerce.
    - Résolution DNS de l'hôte configuré
    - Appel GET / de l'API REST v3 (index des routes)
    """
    parsed = urlparse(woocommerce_url) if woocommerce_url else None
    hostname = parsed.hostname if parsed else None
    dns_ok = None
    dns_error = None
    if hostname:
        try:
            socket.getaddrinfo(hostname, 443)
            dns_ok = True
        except OSError as e:
            dns_ok = False
            dns_error = str(e)

    info: Dict[str, Any] = {
        "url": woocommerce_url,
        "hostname": hostname,
        "dns_ok": dns_ok,
        "dns_error": dns_error,
        "connect_ok": False,
        "error": None,
    }
    try:
        woocommerce.ping()
        info["connect_ok"] = True
    except WooCommerceError as e:
        info["error"] = e.message
    return info
