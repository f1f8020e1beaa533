# api/routes/opportunities.py

import logging
from typing import Optional, Union

from fastapi import APIRouter, HTTPException, Query, Depends
from pydantic import BaseModel

from api.dependencies import get_store, get_config
from models import Stage, ALL_STAGES
from orchestrator.board import (
    STAGE_FILTER_OPTIONS, EMPTY_MESSAGE, render_rows, is_submittable,
)
from services.query import filter_opportunities
from services.store import OpportunityStore

router = APIRouter()
logger = logging.getLogger(__name__)


# ─────────────────────────────────────────
# MODÈLES DE REQUÊTE
# ─────────────────────────────────────────

class CreateOpportunityRequest(BaseModel):
    customer: str = ""
    value: Union[float, int, str] = ""
    stage: Stage = Stage.PROSPECTING
    closing_date: Optional[str] = None
    notes: Optional[str] = None


class UpdateOpportunityRequest(BaseModel):
    # Tout est optionnel : seuls les champs envoyés sont fusionnés
    customer: Optional[str] = None
    value: Optional[Union[float, int, str]] = None
    stage: Optional[Stage] = None
    closing_date: Optional[str] = None
    notes: Optional[str] = None


# ─────────────────────────────────────────
# ROUTES
# ─────────────────────────────────────────

@router.get("")
def list_opportunities(
    q: str = Query("", description="Recherche : id O-XXX, client ou valeur"),
    stage: str = Query(ALL_STAGES),
    store: OpportunityStore = Depends(get_store),
    config: dict = Depends(get_config),
) -> dict:
    visible = filter_opportunities(store.list(), q, stage)

    return {
        "rows": render_rows(visible, config["currency_symbol"]),
        "opportunities": [o.to_dict() for o in visible],
        "count": len(visible),
        "total": len(store),
        "empty_message": EMPTY_MESSAGE if not visible else None,
    }


@router.get("/stages")
def list_stages() -> dict:
    return {"stages": Stage.choices(), "filter_options": list(STAGE_FILTER_OPTIONS)}


@router.get("/{opp_id}")
def get_opportunity(
    opp_id: int,
    store: OpportunityStore = Depends(get_store),
) -> dict:
    opp = store.get(opp_id)
    if opp is None:
        raise HTTPException(status_code=404, detail="Opportunité introuvable")
    return {"opportunity": opp.to_dict()}


@router.post("")
def create_opportunity(
    body: CreateOpportunityRequest,
    store: OpportunityStore = Depends(get_store),
) -> dict:
    """
    Client ou valeur vide → aucune création, aucune erreur.
    Le front doit déjà bloquer ce cas.
    """
    fields = body.model_dump()

    if not is_submittable(fields):
        logger.debug("create_opportunity ignorée : client ou valeur vide")
        return {"opportunity": None, "created": False}

    opp = store.add(fields)
    return {"opportunity": opp.to_dict(), "created": True}


@router.put("/{opp_id}")
def update_opportunity(
    opp_id: int,
    body: UpdateOpportunityRequest,
    store: OpportunityStore = Depends(get_store),
) -> dict:
    """
    Fusion partielle. Même garde-fou que la création : si le résultat
    fusionné a un client ou une valeur vide, rien n'est modifié.
    """
    current = store.get(opp_id)
    if current is None:
        raise HTTPException(status_code=404, detail="Opportunité introuvable")

    fields = body.model_dump(exclude_unset=True)

    if not is_submittable({**current.to_dict(), **fields}):
        logger.debug(f"update_opportunity {opp_id} ignorée : client ou valeur vide")
        return {"opportunity": None, "updated": False}

    opp = store.update(opp_id, fields)
    return {"opportunity": opp.to_dict(), "updated": True}


@router.delete("/{opp_id}")
def delete_opportunity(
    opp_id: int,
    store: OpportunityStore = Depends(get_store),
) -> dict:
    return {"deleted": store.remove(opp_id)}
