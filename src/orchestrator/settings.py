# orchestrator/settings.py

import logging
import os

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────
# CONFIG PAR DÉFAUT
# Si une variable n'est pas dans l'environnement,
# on utilise ces valeurs.
# ─────────────────────────────────────────

DEFAULT_BOARD_CONFIG = {
    "currency_symbol": "$",
    "seed_demo": True,
}

# Jeu de démo affiché au premier lancement
DEMO_OPPORTUNITIES = [
    {"customer": "ABC Ltd", "value": 20000, "stage": "Prospecting"},
    {"customer": "XYZ Corp", "value": 50000, "stage": "Negotiation"},
]

_ENV_KEYS = {
    "currency_symbol": "OPPORTUNITIES_CURRENCY_SYMBOL",
    "seed_demo": "OPPORTUNITIES_SEED_DEMO",
}


def get_board_config() -> dict:
    """
    Fusionne l'environnement avec les defaults.
    Les booléens acceptent "1", "true", "yes", "on".
    """
    config = dict(DEFAULT_BOARD_CONFIG)

    for key, env_name in _ENV_KEYS.items():
        raw = os.getenv(env_name)
        if raw is None:
            continue

        if isinstance(DEFAULT_BOARD_CONFIG[key], bool):
            config[key] = raw.strip().lower() in ("1", "true", "yes", "on")
        else:
            config[key] = raw

    logger.debug(f"Config board : {config}")
    return config


def get_frontend_origins() -> list:
    origins = [
        "http://localhost:3000",   # front local
    ]

    frontend_origins = os.getenv("FRONTEND_ORIGINS", "")
    if frontend_origins:
        origins.extend([o.strip() for o in frontend_origins.split(",") if o.strip()])

    return sorted(set(origins))
