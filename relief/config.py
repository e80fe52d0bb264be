import json
import logging
import os
from pathlib import Path

DATA_DIR = Path(__file__).parent.parent / "data"

# Substituted for a missing/zero affected count in demand estimation only
DEFAULT_AFFECTED_COUNT = 1000

INCIDENTS_URL = os.getenv("RELIEF_INCIDENTS_URL", "")
CATALOG_URL = os.getenv("RELIEF_CATALOG_URL", "")
PROVIDER_TIMEOUT = float(os.getenv("RELIEF_PROVIDER_TIMEOUT", "10"))

LOG_LEVEL = os.getenv("RELIEF_LOG_LEVEL", "INFO")

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv(
        "RELIEF_CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
    ).split(",")
    if o.strip()
]


def configure_logging(level: str | None = None):
    """Configure root logging once for the service."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_incidents() -> list[dict]:
    """Load the raw incident list from data/incidents.json."""
    path = DATA_DIR / "incidents.json"
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)["incidents"]


def load_catalog() -> dict:
    """Load the resource catalog snapshot from data/resources.json."""
    path = DATA_DIR / "resources.json"
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
