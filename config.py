import os
from pathlib import Path

from dotenv import load_dotenv


BASE_DIR = Path(__file__).resolve().parent
ENV_PATH = BASE_DIR / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH)


def _normalise_prefix(raw_prefix: str) -> str:
    raw_prefix = raw_prefix.strip()
    if not raw_prefix or raw_prefix == "/":
        return ""
    if not raw_prefix.startswith("/"):
        raw_prefix = f"/{raw_prefix}"
    return raw_prefix.rstrip("/")


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")

    URL_PREFIX = _normalise_prefix(os.environ.get("FLASK_URL_PREFIX", ""))

    API_TITLE = os.environ.get("API_TITLE", "Planboard API")
    API_VERSION = os.environ.get("API_VERSION", "0.1.0")

    PLANNING_API_URL = os.environ.get("PLANNING_API_URL", "http://localhost:3000")
    PLANNING_API_TOKEN = os.environ.get("PLANNING_API_TOKEN") or None
    PLANNING_API_TIMEOUT = float(os.environ.get("PLANNING_API_TIMEOUT", "10"))
    PLANNING_PAGE_LIMIT = int(os.environ.get("PLANNING_PAGE_LIMIT", "50"))
    PLANNING_SCREEN_TTL = float(os.environ.get("PLANNING_SCREEN_TTL", "3600"))

    # Set to an object exposing the PlanningApiClient methods to bypass HTTP.
    PLANNING_BACKEND = None


class TestConfig(Config):
    TESTING = True
    URL_PREFIX = ""
    PLANNING_API_URL = "http://planning.test"
    PLANNING_API_TOKEN = None
