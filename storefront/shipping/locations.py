"""
Pays et états desservis, déduits des zones de livraison WooCommerce.
- location.type == "country": code pays (ex: "AE")
- location.type == "state": "PAYS:ETAT" (ex: "US:CA")
Repli sur ALLOWED_COUNTRIES si la liste des zones est indisponible.
"""
import logging
from typing import Dict, List

from storefront.config import Settings
from storefront.infra.woocommerce_client import WooCommerceClient, WooCommerceError
from .models import ShippingLocations, ShippingZone

logger = logging.getLogger(__name__)


def list_shipping_locations(woocommerce: WooCommerceClient, settings: Settings) -> ShippingLocations:
    try:
        zones = woocommerce.list_shipping_zones()
    except WooCommerceError as e:
        logger.warning("shipping.locations zones_unavailable error=%s", e.message)
        return ShippingLocations(countries=sorted(settings.allowed_countries), fallback=True)

    countries: set = set()
    states: Dict[str, List[str]] = {}
    for zone in zones:
        try:
            locations = woocommerce.list_zone_locations(zone.get("id"))
        except WooCommerceError as e:
            logger.warning("shipping.locations zone_failed zone_id=%s error=%s", zone.get("id"), e.message)
            continue
        for location in locations:
            code = str(location.get("code") or "")
            if location.get("type") == "country" and code:
                countries.add(code)
            elif location.get("type") == "state" and ":" in code:
                country, state = code.split(":", 1)
                countries.add(country)
                if state not in states.setdefault(country, []):
                    states[country].append(state)

    return ShippingLocations(
        countries=sorted(countries),
        countries_with_states=states,
        zones=[ShippingZone(id=z.get("id"), name=z.get("name") or "") for z in zones],
    )
