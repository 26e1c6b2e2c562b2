from __future__ import annotations
import os
from pathlib import Path

class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    BASE_DIR = Path(__file__).resolve().parent
    # SQLite file in project directory
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'app.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # search result cache
    SEARCH_CACHE_TTL = int(os.getenv("SEARCH_CACHE_TTL", 300))        # seconds
    SEARCH_CACHE_MAXSIZE = int(os.getenv("SEARCH_CACHE_MAXSIZE", 1024))

    DEFAULT_TIMEZONE = "Asia/Kathmandu"

class DevConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
    SEED_DEMO_DATA = True

class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SEED_DEMO_DATA = False

class ProdConfig(BaseConfig):
    DEBUG = False
    SEED_DEMO_DATA = False

config_map = {
    "dev": DevConfig,
    "test": TestConfig,
    "prod": ProdConfig,
    "default": DevConfig,
}

# reservation defaults
DEFAULT_DURATION_MIN = 90
MAX_DURATION_MIN = 24 * 60
