from typing import Any, Dict, List, Optional

from pydantic import Field

from storefront.models import CamelModel, CartLine, ContactDetails


class CheckoutRequest(CamelModel):
    lines: List[CartLine] = Field(default_factory=list)
    coupon_code: Optional[str] = None
    customer_email: str = ""
    billing_details: ContactDetails
    shipping_details: Optional[ContactDetails] = None


class ProviderLineItem(CamelModel):
    name: str
    unit_amount_minor_units: int
    quantity: int


class PaymentSession(CamelModel):
    session_id: str
    url: Optional[str] = None
    line_items: List[ProviderLineItem] = Field(default_factory=list)
    metadata: Dict[str, str] = Field(default_factory=dict)
    discounts: List[Dict[str, Any]] = Field(default_factory=list)


class CheckoutResponse(CamelModel):
    session_id: str
    url: Optional[str] = None
