# api/main.py

import os
import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.dependencies import get_store
from api.routes import opportunities
from models import InvalidStageError
from orchestrator.settings import get_frontend_origins
from services.store import OpportunityStore

# Charge .env en local uniquement
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s [%(levelname)s] %(name)s : %(message)s",
)
logger = logging.getLogger("pipeline.api")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Pipeline API",
        version="1.0.0",
        description="Opportunités commerciales, en mémoire",
    )

    origins = get_frontend_origins()
    logger.info(f"Démarrage : origines autorisées {origins}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.add_exception_handler(InvalidStageError, _invalid_stage_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)

    app.include_router(opportunities.router, prefix="/opportunities", tags=["opportunities"])
    app.add_api_route("/", health, methods=["GET"])
    app.add_api_route("/health", health, methods=["GET"])

    return app


def health(store: OpportunityStore = Depends(get_store)) -> dict:
    return {"status": "ok", "service": "pipeline-api", "opportunities": len(store)}


# ─────────────────────────────────────────
# ERREURS
# ─────────────────────────────────────────

async def _invalid_stage_handler(request: Request, exc: InvalidStageError):
    """Stage hors énumération (filtre ou édition) → 400, pas 500."""
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def _unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Erreur non gérée : {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Erreur interne"})


app = create_app()
