"""
Types partagés entre les features (panier, destination, coordonnées).

Le panier vit côté client: le serveur ne fait que recevoir des lignes
{productId, quantity, unitPrice} et ne les persiste jamais.
Les modèles acceptent le camelCase du front (alias) comme le snake_case.
"""
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

# Décimal sérialisé en nombre JSON (le front attend des nombres, pas des chaînes)
Money = Annotated[Decimal, PlainSerializer(lambda v: float(v), return_type=float, when_used="json")]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CartLine(CamelModel):
    product_id: int
    quantity: int = Field(ge=1)
    unit_price: Money = Field(ge=0)
    # Descripteurs opaques transmis par le conteneur de panier
    name: str = ""
    bundle_type: str = "one-month"
    bundle_label: str = ""
    cart_item_id: str = ""
    image: str = ""
    description: str = ""


class Destination(CamelModel):
    country: str = ""
    state: str = ""
    postcode: str = ""
    city: str = ""

    @field_validator("country", mode="before")
    @classmethod
    def normalize_country(cls, v):
        return (v or "").strip().upper()

    @property
    def is_quotable(self) -> bool:
        return bool(self.country)

    def as_address(self) -> dict:
        return {"country": self.country, "state": self.state, "postcode": self.postcode, "city": self.city}


class ContactDetails(Destination):
    country: str
    first_name: str = ""
    last_name: str = ""
    company: str = ""
    address1: str = ""
    address2: str = ""
    email: str = ""
    phone: str = ""

    @field_validator("country")
    @classmethod
    def country_required(cls, v: str) -> str:
        if not v:
            raise ValueError("country is required")
        return v
