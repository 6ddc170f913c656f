"""
Endpoints livraison/taxes consommés par le front.
- POST /api/v1/shipping/quote: devis via l'oracle WooCommerce (toujours 200, erreurs dans le corps)
- GET /api/v1/shipping/locations: pays/états desservis (repli sur la liste configurée)
"""
from fastapi import APIRouter, Depends

from storefront.config import Settings
from storefront.dependencies import get_quote_service, get_settings, get_woocommerce
from storefront.infra.woocommerce_client import WooCommerceClient
from storefront.utils.rate_limit import optional_rate_limit
from .locations import list_shipping_locations
from .models import QuoteRequest, QuoteResult, ShippingLocations
from .service import QuoteService

router = APIRouter(prefix="/api/v1/shipping", tags=["Shipping API"])


@router.post(
    "/quote",
    response_model=QuoteResult,
    response_model_exclude_none=True,
    dependencies=[Depends(optional_rate_limit(times=30, seconds=60))],
)
def quote_shipping_tax(body: QuoteRequest, service: QuoteService = Depends(get_quote_service)):
    """
    Calcule livraison et taxes pour {lines, country, state, postcode, city}.
    - Panier vide ou pays absent: devis à zéro sans appel backend.
    - Backend indisponible: devis à zéro + champ error (l'UI affiche des totaux provisoires).
    """
    return service.quote(body.lines, body.destination)


@router.get("/locations", response_model=ShippingLocations)
def shipping_locations(
    woocommerce: WooCommerceClient = Depends(get_woocommerce),
    settings: Settings = Depends(get_settings),
):
    return list_shipping_locations(woocommerce, settings)
