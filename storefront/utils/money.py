"""
Helpers monétaires (Decimal uniquement, jamais de float pour les montants).
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CENT = Decimal("0.01")
UNIT = Decimal("1")


def to_decimal(value: Any, default: str = "0") -> Decimal:
    """
    Convertit une valeur (str|int|float|Decimal|None) en Decimal.
    - Les chaînes vides / None donnent `default` (WooCommerce renvoie souvent "").
    - Les floats passent par str() pour éviter les artefacts binaires (19.995 reste 19.995).
    - Lève ValueError si la valeur n'est pas numérique.
    """
    if value is None or value == "":
        return Decimal(default)
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Montant invalide: {value!r}") from e


def quantize_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(value: Any) -> int:
    """
    Convertit un prix décimal en unités mineures (centimes/fils) pour Stripe.
    - Arrondi au plus proche (half-up), jamais de troncature: 19.995 -> 2000.
    """
    return int((to_decimal(value) * 100).quantize(UNIT, rounding=ROUND_HALF_UP))


def format_amount(value: Decimal, label: str) -> str:
    """Formate un montant pour un message utilisateur, ex: 'Dhs. 150.00'."""
    return f"{label} {quantize_cents(value):.2f}".strip()
