import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from storefront.dependencies import get_order_reconciler, get_stripe_gateway
from storefront.payments.stripe_client import MalformedEventError, StripeGateway, WebhookSignatureError
from .service import OrderReconciler

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("storefront.security")
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])


# module storefront.orders.views
@router.post("/webhook", include_in_schema=False)
async def webhook_stripe(
    request: Request,
    gateway: StripeGateway = Depends(get_stripe_gateway),
    reconciler: OrderReconciler = Depends(get_order_reconciler),
):
    """
    Webhook Stripe: crée la commande WooCommerce quand une session est payée.
    - Signature: vérifiée sur le body brut (Stripe-Signature + STRIPE_WEBHOOK_SECRET) avant tout parsing
    - Idempotence: une seule commande par session (meta stripe_session_id)
    - Réponses: 200 {"received": true, "status": ...} y compris doublon et échec backend post-paiement
    - Erreurs: 400 uniquement si signature invalide ou payload illisible
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    try:
        event = gateway.verify_event(payload, sig_header)
    except WebhookSignatureError as e:
        client_host = request.client.host if request.client else "unknown"
        security_logger.warning("security.webhook signature_rejected client=%s reason=%s", client_host, e)
        raise HTTPException(status_code=400, detail=f"Webhook Error: {e}")
    except MalformedEventError as e:
        logger.warning("orders.webhook malformed_payload reason=%s", e)
        raise HTTPException(status_code=400, detail="Invalid Stripe webhook payload")

    try:
        outcome = await run_in_threadpool(reconciler.handle_event, event)
    except MalformedEventError as e:
        logger.warning("orders.webhook malformed_event id=%s reason=%s", event.get("id"), e)
        raise HTTPException(status_code=400, detail="Invalid Stripe webhook payload")

    logger.info("orders.webhook type=%s status=%s", event.get("type"), outcome.status.value)
    return JSONResponse(outcome.model_dump(mode="json", by_alias=True, exclude_none=True))
