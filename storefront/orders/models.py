from enum import Enum
from typing import Optional

from storefront.models import CamelModel

SESSION_ID_META_KEY = "stripe_session_id"
PAYMENT_INTENT_META_KEY = "stripe_payment_intent"


class SessionState(str, Enum):
    """
    Cycle de vie d'une session de paiement vu par le webhook.
    CREATED est l'état initial implicite (session créée au checkout): aucun événement ne le renvoie.
    """
    CREATED = "created"
    COMPLETED = "completed"
    ORDER_POSTED = "order_posted"
    EXPIRED = "expired"
    PAYMENT_FAILED = "payment_failed"


class OutcomeStatus(str, Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"
    AWAITING_PAYMENT = "awaiting_payment"
    ORDER_FAILED = "order_failed"
    RECONCILIATION_FAILED = "reconciliation_failed"
    RECORDED = "recorded"
    IGNORED = "ignored"


class WebhookOutcome(CamelModel):
    received: bool = True
    status: OutcomeStatus
    state: Optional[SessionState] = None
    session_id: Optional[str] = None
    order_id: Optional[int] = None
