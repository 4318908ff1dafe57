from food_api.core.config import EnvironmentMode, Settings


def production(**overrides) -> Settings:
    values = {
        "env_mode": "production",
        "stripe_secret_key": "sk_live_x",
        "stripe_webhook_secret": "whsec_x",
        "sendgrid_api_key": "SG.x",
        "jwt_secret": "prod-secret",
    }
    values.update(overrides)
    return Settings(**values)


def test_complete_production_config():
    settings = production()

    assert settings.env_mode == EnvironmentMode.PRODUCTION
    assert settings.validate_production_config() == []


def test_production_requires_webhook_secret():
    assert production(stripe_webhook_secret=None).validate_production_config() == [
        "STRIPE_WEBHOOK_SECRET"
    ]


def test_production_rejects_default_jwt_secret():
    missing = production(stripe_secret_key=None, jwt_secret="change-me").validate_production_config()

    assert missing == ["STRIPE_SECRET_KEY", "JWT_SECRET"]


def test_development_needs_no_keys():
    settings = Settings(env_mode="development", stripe_secret_key=None, stripe_webhook_secret=None)

    assert settings.validate_production_config() == []
