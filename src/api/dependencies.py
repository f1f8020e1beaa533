# api/dependencies.py

from typing import Optional

from orchestrator.settings import get_board_config, DEMO_OPPORTUNITIES
from services.store import OpportunityStore

_store: Optional[OpportunityStore] = None


def get_store() -> OpportunityStore:
    """
    Store unique pour la durée du process.
    Rien n'est persisté : un redémarrage repart du jeu de démo.
    """
    global _store

    if _store is None:
        seed = DEMO_OPPORTUNITIES if get_board_config()["seed_demo"] else []
        _store = OpportunityStore(seed=seed)

    return _store


def get_config() -> dict:
    return get_board_config()
