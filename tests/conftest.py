# tests/conftest.py

import pytest

from services.store import OpportunityStore
from orchestrator.board import OpportunityBoard


# ─────────────────────────────────────────
# FIXTURES : DONNÉES DE RÉFÉRENCE
# Les deux opportunités de la page d'origine.
# ─────────────────────────────────────────

@pytest.fixture
def sample_opportunities():
    return [
        {"customer": "ABC Ltd", "value": 20000, "stage": "Prospecting"},
        {"customer": "XYZ Corp", "value": 50000, "stage": "Negotiation"},
    ]


@pytest.fixture
def store(sample_opportunities):
    """Store seedé : ids 1 et 2."""
    return OpportunityStore(seed=sample_opportunities)


@pytest.fixture
def records(store):
    return store.list()


@pytest.fixture
def board(store):
    return OpportunityBoard(store, {"currency_symbol": "$"})


@pytest.fixture
def api_client(store):
    """
    Client HTTP sur l'app FastAPI.
    Le store global est remplacé par celui du test.
    """
    from fastapi.testclient import TestClient
    from api.main import app
    from api.dependencies import get_store, get_config

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_config] = lambda: {
        "currency_symbol": "$",
        "seed_demo": False,
    }

    yield TestClient(app)

    app.dependency_overrides.clear()
