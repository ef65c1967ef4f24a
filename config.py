"""
config.py — Flask configuration classes for the Flood Verification service.
"""
import os
import secrets


class BaseConfig:
    """Base configuration shared by all environments."""
    SECRET_KEY = os.environ.get("SECRET_KEY") or secrets.token_hex(32)

    if os.environ.get("VERCEL") == "1":
        DATABASE_URL = os.environ.get("DATABASE_URL", f"sqlite:///{os.path.join('/tmp', 'app.db')}")
    else:
        DATABASE_URL = os.environ.get("DATABASE_URL", f"sqlite:///{os.path.join(os.path.dirname(__file__), 'data', 'app.db')}")

    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    RATE_LIMIT = os.environ.get("RATE_LIMIT", "60 per minute")

    # Weather provider (OpenWeatherMap current conditions)
    WEATHER_API_KEY = os.environ.get("WEATHER_API_KEY")
    WEATHER_BASE_URL = os.environ.get("WEATHER_BASE_URL", "https://api.openweathermap.org/data/2.5")
    WEATHER_TIMEOUT = float(os.environ.get("WEATHER_TIMEOUT", 5))
    WEATHER_CACHE_SECONDS = int(os.environ.get("WEATHER_CACHE_SECONDS", 300))

    # News provider (NewsAPI /everything)
    NEWS_API_KEY = os.environ.get("NEWS_API_KEY")
    NEWS_BASE_URL = os.environ.get("NEWS_BASE_URL", "https://newsapi.org/v2")
    NEWS_TIMEOUT = float(os.environ.get("NEWS_TIMEOUT", 5))
    NEWS_PAGE_SIZE = int(os.environ.get("NEWS_PAGE_SIZE", 5))

    # Social provider; an access token switches the stub on
    INSTAGRAM_ACCESS_TOKEN = os.environ.get("INSTAGRAM_ACCESS_TOKEN")

    BULK_VERIFY_DEFAULT_LIMIT = int(os.environ.get("BULK_VERIFY_DEFAULT_LIMIT", 20))
    BULK_VERIFY_MAX_LIMIT = int(os.environ.get("BULK_VERIFY_MAX_LIMIT", 50))
    VERIFY_MAX_WORKERS = int(os.environ.get("VERIFY_MAX_WORKERS", 3))

    VERSION = "1.0.0"


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    TESTING = False
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{os.path.join(os.path.dirname(__file__), 'data', 'dev.db')}"
    )


class ProductionConfig(BaseConfig):
    DEBUG = False
    TESTING = False


class TestingConfig(BaseConfig):
    DEBUG = True
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    RATELIMIT_ENABLED = False
    WEATHER_API_KEY = "test-weather-key"
    NEWS_API_KEY = "test-news-key"
    INSTAGRAM_ACCESS_TOKEN = None


config_map = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
