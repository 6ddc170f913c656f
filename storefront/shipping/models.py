from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import Field

from storefront.models import CamelModel, CartLine, Destination, Money

QUOTE_ERROR_MESSAGE = "Unable to calculate shipping and tax. Please try again."


class QuoteRequest(Destination):
    lines: List[CartLine] = Field(default_factory=list)

    @property
    def destination(self) -> Destination:
        return Destination(country=self.country, state=self.state, postcode=self.postcode, city=self.city)


class QuoteResult(CamelModel):
    shipping: Money = Decimal("0")
    tax: Money = Decimal("0")
    subtotal: Money = Decimal("0")
    shipping_methods: List[Dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def zero(cls, error: Optional[str] = None) -> "QuoteResult":
        return cls(error=error)


class ShippingZone(CamelModel):
    id: int
    name: str = ""


class ShippingLocations(CamelModel):
    countries: List[str] = Field(default_factory=list)
    countries_with_states: Dict[str, List[str]] = Field(default_factory=dict)
    zones: List[ShippingZone] = Field(default_factory=list)
    fallback: bool = False
