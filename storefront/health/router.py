from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from storefront.config import Settings
from storefront.dependencies import get_settings, get_woocommerce
from storefront.health.service import health_woocommerce_info
from storefront.infra.woocommerce_client import WooCommerceClient
from storefront.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
def health_root():
    return {"ok": True}


@router.get("/woocommerce")
def health_woocommerce(
    woocommerce: WooCommerceClient = Depends(get_woocommerce),
    settings: Settings = Depends(get_settings),
):
    return JSONResponse(health_woocommerce_info(woocommerce, settings.woocommerce_url))


@router.get("/rate-limit")
def health_rate_limit(request: Request):
    return rate_limit_health_info(request)
