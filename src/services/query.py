# services/query.py

from typing import Iterable

from models import Opportunity, Stage, ALL_STAGES, InvalidStageError


def filter_opportunities(
    records: Iterable[Opportunity],
    query: str = "",
    stage: str = ALL_STAGES,
) -> list:
    """
    Vue filtrée des opportunités.

    Une opportunité passe si :
    → la recherche (insensible à la casse) est contenue dans l'id affiché,
      le client, l'id brut ou la valeur
    → ET le stage vaut "All" ou correspond exactement

    L'ordre d'entrée est conservé. Fonction pure : aucun état.
    """
    check_stage_selector(stage)
    needle = (query or "").lower()

    return [
        opp for opp in records
        if matches_query(opp, needle) and matches_stage(opp, stage)
    ]


def matches_query(opp: Opportunity, needle: str) -> bool:
    if not needle:
        return True

    haystacks = (
        opp.display_id,
        opp.customer or "",
        str(opp.id),
        str(opp.value),
    )
    return any(needle in h.lower() for h in haystacks)


def matches_stage(opp: Opportunity, stage: str) -> bool:
    return stage == ALL_STAGES or opp.stage == stage


def check_stage_selector(stage: str) -> None:
    if stage != ALL_STAGES and stage not in Stage.choices():
        raise InvalidStageError(stage)
