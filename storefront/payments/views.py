import logging

from fastapi import APIRouter, Depends, HTTPException

from storefront.dependencies import get_checkout_builder
from storefront.utils.rate_limit import optional_rate_limit
from .models import CheckoutRequest, CheckoutResponse
from .service import CheckoutSessionBuilder

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])


# module storefront.payments.views
@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    dependencies=[Depends(optional_rate_limit(times=10, seconds=60))],
)
def create_checkout_session(
    body: CheckoutRequest,
    builder: CheckoutSessionBuilder = Depends(get_checkout_builder),
):
    """
    Crée une session Checkout Stripe pour le panier client.
    - Entrée JSON: {lines, couponCode?, customerEmail, billingDetails, shippingDetails?}
    - Coupon: appliqué si résolu côté Stripe, ignoré sinon (jamais bloquant)
    - Retour: {sessionId, url} pour rediriger vers la page hébergée
    - Erreurs: 400 si panier vide, 502 si Stripe refuse la création
    """
    if not body.lines:
        raise HTTPException(status_code=400, detail="No items in cart")
    try:
        session = builder.build(
            body.lines,
            body.coupon_code,
            body.customer_email,
            body.billing_details,
            body.shipping_details,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("payments.checkout failed")
        raise HTTPException(status_code=502, detail=str(e) or "Failed to create checkout session")
    return CheckoutResponse(session_id=session.session_id, url=session.url)
