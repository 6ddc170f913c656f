# storefront.config
from pathlib import Path
import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale du service storefront.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise les secrets/URLs (WooCommerce, Stripe), CORS/hosts, devise
- Regroupe le tout dans un objet Settings injecté dans les composants
  (pas de client global construit à l'import)
"""

DEFAULT_ALLOWED_COUNTRIES = "AE,SA,KW,QA,BH,OM,US,GB,CA"


def _clean_env(v: Optional[str]) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")


def _split_env(v: Optional[str]) -> List[str]:
    return [item.strip() for item in _clean_env(v).split(",") if item.strip()]


def _normalize_url(url: str) -> str:
    # WOOCOMMERCE_URL peut parfois être sans schéma: on préfixe en https://
    if url and not url.startswith("http"):
        url = "https://" + url
    return url.rstrip("/")


class Settings(BaseModel):
    # WooCommerce (REST API v3)
    woocommerce_url: str = ""
    woocommerce_consumer_key: str = ""
    woocommerce_consumer_secret: str = ""
    woocommerce_host_header: str = ""
    woocommerce_timeout: float = 30.0
    quote_timeout: float = 10.0

    # Stripe
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""

    # Redirections du checkout hébergé
    site_url: str = "http://localhost:3001"
    checkout_success_path: str = "/checkout/success"
    checkout_cancel_path: str = "/checkout?cancelled=true"

    # Devise unique (pas de multi-devise)
    currency: str = "aed"
    currency_label: str = "Dhs."
    allowed_countries: List[str] = Field(default_factory=lambda: _split_env(DEFAULT_ALLOWED_COUNTRIES))

    # Moyen de paiement enregistré sur la commande WooCommerce
    payment_method: str = "stripe"
    payment_method_title: str = "Credit Card (Stripe)"

    # CORS / hosts / en-têtes
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    allowed_hosts: List[str] = Field(default_factory=lambda: ["localhost", "127.0.0.1"])
    secure_headers_hsts: bool = False

    @property
    def woocommerce_api_url(self) -> str:
        return f"{self.woocommerce_url}/wp-json/wc/v3"

    @property
    def success_url(self) -> str:
        sep = "&" if "?" in self.checkout_success_path else "?"
        return f"{self.site_url}{self.checkout_success_path}{sep}session_id={{CHECKOUT_SESSION_ID}}"

    @property
    def cancel_url(self) -> str:
        return f"{self.site_url}{self.checkout_cancel_path}"


def load_settings() -> Settings:
    """
    Construit Settings depuis l'environnement (après chargement du .env).
    - Accepte NEXT_PUBLIC_WOOCOMMERCE_URL comme alias de WOOCOMMERCE_URL.
    - Les listes (ALLOWED_COUNTRIES, CORS_ORIGINS, ALLOWED_HOSTS) sont séparées par des virgules.
    """
    woocommerce_url = _normalize_url(
        _clean_env(os.getenv("WOOCOMMERCE_URL") or os.getenv("NEXT_PUBLIC_WOOCOMMERCE_URL"))
    )
    return Settings(
        woocommerce_url=woocommerce_url,
        woocommerce_consumer_key=_clean_env(os.getenv("WOOCOMMERCE_CONSUMER_KEY")),
        woocommerce_consumer_secret=_clean_env(os.getenv("WOOCOMMERCE_CONSUMER_SECRET")),
        woocommerce_host_header=_clean_env(os.getenv("WOOCOMMERCE_HOST_HEADER")),
        woocommerce_timeout=float(os.getenv("WOOCOMMERCE_TIMEOUT_SECONDS", "30")),
        quote_timeout=float(os.getenv("QUOTE_TIMEOUT_SECONDS", "10")),
        stripe_secret_key=_clean_env(os.getenv("STRIPE_SECRET_KEY")),
        stripe_webhook_secret=_clean_env(os.getenv("STRIPE_WEBHOOK_SECRET")),
        site_url=_normalize_url(_clean_env(os.getenv("SITE_URL")) or "http://localhost:3001"),
        checkout_success_path=os.getenv("CHECKOUT_SUCCESS_PATH", "/checkout/success"),
        checkout_cancel_path=os.getenv("CHECKOUT_CANCEL_PATH", "/checkout?cancelled=true"),
        currency=_clean_env(os.getenv("CURRENCY") or "aed").lower(),
        currency_label=_clean_env(os.getenv("CURRENCY_LABEL") or "Dhs."),
        allowed_countries=[c.upper() for c in _split_env(os.getenv("ALLOWED_COUNTRIES", DEFAULT_ALLOWED_COUNTRIES))],
        cors_origins=_split_env(os.getenv("CORS_ORIGINS", "*")),
        allowed_hosts=_split_env(os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1")),
        secure_headers_hsts=(os.getenv("SECURE_HEADERS_HSTS", "false").lower() == "true"),
    )
