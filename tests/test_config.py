from split_checkout.config import Settings


def test_from_env_reads_values():
    settings = Settings.from_env(
        {
            "STRIPE_SECRET_KEY": "sk_live_1",
            "WEBHOOK_SECRET": "whsec_1",
            "SHOPIFY_ACCESS_TOKEN": "shpat_1",
            "SHOP_DOMAIN": "shop.myshopify.com",
            "CURRENCY": "CAD",
            "ALLOWED_ORIGINS": "https://a.example, https://b.example ,",
            "REQUIRE_CUSTOMER_EMAIL": "true",
            "REQUIRED_CUSTOMER_TAG": "split-ok",
            "HTTP_TIMEOUT_SECONDS": "2.5",
            "LOG_LEVEL": "debug",
            "NODE_ENV": "development",
        }
    )

    assert settings.stripe_webhook_secret == "whsec_1"
    assert settings.currency == "cad"
    assert settings.allowed_origins == ["https://a.example", "https://b.example"]
    assert settings.require_customer_email is True
    assert settings.required_customer_tag == "split-ok"
    assert settings.http_timeout_seconds == 2.5
    assert settings.log_level == "DEBUG"
    assert settings.environment == "development"
    assert settings.missing_credentials() == []


def test_from_env_defaults():
    settings = Settings.from_env({})

    assert settings.stripe_api_version == "2024-06-20"
    assert settings.shopify_api_version == "2024-10"
    assert settings.allowed_origins == ["*"]
    assert settings.require_customer_email is False
    assert settings.jwt_secret is None
    assert settings.static_dir == "public"
    assert settings.missing_credentials() == [
        "STRIPE_SECRET_KEY",
        "SHOPIFY_ACCESS_TOKEN",
        "SHOP_DOMAIN",
    ]
