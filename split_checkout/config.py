import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import load_dotenv

# Force-load .env (Windows-safe)
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=BASE_DIR / ".env")

_TRUTHY = {"1", "true", "yes", "on"}


def _get_list(raw_value: Optional[str]) -> List[str]:
    if not raw_value:
        return []
    return [item.strip() for item in raw_value.split(",") if item.strip()]


def _get_bool(raw_value: Optional[str]) -> bool:
    return (raw_value or "").strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Settings:
    stripe_secret_key: Optional[str] = None
    stripe_publishable_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    stripe_api_version: str = "2024-06-20"
    shopify_access_token: Optional[str] = None
    shop_domain: Optional[str] = None
    shopify_api_version: str = "2024-10"
    currency: str = "cad"
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    require_customer_email: bool = False
    required_customer_tag: Optional[str] = None
    jwt_secret: Optional[str] = None
    http_timeout_seconds: float = 10.0
    static_dir: Optional[str] = "public"
    log_level: str = "INFO"
    environment: str = "production"
    app_url: str = ""

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            stripe_secret_key=env.get("STRIPE_SECRET_KEY") or None,
            stripe_publishable_key=env.get("STRIPE_PUBLISHABLE_KEY") or None,
            stripe_webhook_secret=(
                env.get("STRIPE_WEBHOOK_SECRET") or env.get("WEBHOOK_SECRET") or None
            ),
            stripe_api_version=env.get("STRIPE_API_VERSION", "2024-06-20"),
            shopify_access_token=env.get("SHOPIFY_ACCESS_TOKEN") or None,
            shop_domain=env.get("SHOP_DOMAIN") or None,
            shopify_api_version=env.get("SHOPIFY_API_VERSION", "2024-10"),
            currency=env.get("CURRENCY", "cad").lower(),
            allowed_origins=_get_list(env.get("ALLOWED_ORIGINS", "*")),
            require_customer_email=_get_bool(env.get("REQUIRE_CUSTOMER_EMAIL")),
            required_customer_tag=env.get("REQUIRED_CUSTOMER_TAG") or None,
            jwt_secret=env.get("JWT_SECRET") or None,
            http_timeout_seconds=float(env.get("HTTP_TIMEOUT_SECONDS", "10")),
            static_dir=env.get("STATIC_DIR", "public") or None,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            environment=env.get("APP_ENV") or env.get("NODE_ENV") or "production",
            app_url=env.get("APP_URL", ""),
        )

    def missing_credentials(self) -> List[str]:
        """Names of the credentials the checkout flow cannot run without."""
        required = {
            "STRIPE_SECRET_KEY": self.stripe_secret_key,
            "SHOPIFY_ACCESS_TOKEN": self.shopify_access_token,
            "SHOP_DOMAIN": self.shop_domain,
        }
        return [name for name, value in required.items() if not value]
