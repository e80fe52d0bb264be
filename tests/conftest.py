from pathlib import Path
import sys

import pytest

# Put the project root on the import path regardless of where pytest runs
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from relief import config
from relief.optimizer.schemas import ResourceCatalog
from relief.store import DataStore, data_store
from tests.helpers import make_incident


@pytest.fixture
def scenario_incidents():
    """Incident A outranks incident B."""
    return [
        make_incident("B", type="fire", severity="medium", affected_count=500),
        make_incident("A", type="flood", severity="high", affected_count=15000),
    ]


@pytest.fixture
def seed_catalog() -> ResourceCatalog:
    return ResourceCatalog.model_validate(config.load_catalog())


@pytest.fixture
def store() -> DataStore:
    s = DataStore()
    s.load_from_json()
    return s


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from relief.main import app

    # Fresh singleton state for every test
    data_store.__init__()
    data_store.load_from_json()
    with TestClient(app) as c:
        yield c
