"""
Gestionnaires d'exceptions.
- HTTPException: corps JSON standard {"detail": ...}.
- WooCommerceError non interceptée par un service: 502.
"""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from storefront.infra.woocommerce_client import WooCommerceError

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))

    @app.exception_handler(WooCommerceError)
    async def woocommerce_error_handler(request: Request, exc: WooCommerceError):
        logger.error("woocommerce.unhandled path=%s status=%s code=%s error=%s", request.url.path, exc.status_code, exc.code, exc.message)
        return JSONResponse(status_code=502, content={"detail": "Commerce backend unavailable"})
