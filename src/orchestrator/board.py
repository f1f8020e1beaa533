# orchestrator/board.py

import logging
from typing import Callable, Iterable, Optional

from models import Opportunity, Stage, ALL_STAGES, EDITABLE_FIELDS
from services.query import filter_opportunities, check_stage_selector
from services.store import OpportunityStore
from orchestrator.settings import DEFAULT_BOARD_CONFIG, DEMO_OPPORTUNITIES

logger = logging.getLogger(__name__)


STAGE_FILTER_OPTIONS = (ALL_STAGES, *Stage.choices())
EMPTY_MESSAGE = "No opportunities found"

INITIAL_DRAFT = {
    "customer": "",
    "value": "",
    "stage": Stage.PROSPECTING.value,
    "closing_date": "",
    "notes": "",
}


# ─────────────────────────────────────────
# RENDU DES LIGNES
# ─────────────────────────────────────────

def format_value(value, currency_symbol: str = "$") -> str:
    """Pas de mise en forme : symbole + saisie brute."""
    return f"{currency_symbol}{value}"


def render_rows(records: Iterable[Opportunity], currency_symbol: str = "$") -> list:
    return [
        {
            "opp_id": opp.display_id,
            "customer": opp.customer,
            "value": format_value(opp.value, currency_symbol),
            "stage": opp.stage.value,
        }
        for opp in records
    ]


# ─────────────────────────────────────────
# BOARD
# ─────────────────────────────────────────

class OpportunityBoard:
    """
    Contrôleur sans UI de la page opportunités.

    Ce qu'il porte :
    → les filtres transitoires (recherche + stage)
    → le brouillon du formulaire d'ajout / d'édition
    → la vue filtrée, recalculée seulement quand
      (version du store, recherche, stage) change

    Ce qu'il ne porte PAS :
    → les enregistrements eux-mêmes (c'est le store)
    """

    def __init__(self, store: OpportunityStore, config: Optional[dict] = None):
        self.store = store
        self.config = {**DEFAULT_BOARD_CONFIG, **(config or {})}

        self.query = ""
        self.stage_filter = ALL_STAGES

        self.draft = dict(INITIAL_DRAFT)
        self.editing_id: Optional[int] = None
        self.is_dialog_open = False

        self._listeners: list[Callable[[list], None]] = []
        self._cache_key = None
        self._visible: list = []

        self.store.subscribe(self._on_store_change)

    @classmethod
    def with_demo_data(cls, config: Optional[dict] = None) -> "OpportunityBoard":
        return cls(OpportunityStore(seed=DEMO_OPPORTUNITIES), config)

    # ─────────────────────────────────────────
    # VUE FILTRÉE
    # ─────────────────────────────────────────

    @property
    def visible(self) -> list:
        key = (self.store.version, self.query, self.stage_filter)
        if key != self._cache_key:
            self._visible = filter_opportunities(
                self.store.list(), self.query, self.stage_filter
            )
            self._cache_key = key
        return list(self._visible)

    def rows(self) -> list:
        return render_rows(self.visible, self.config["currency_symbol"])

    def set_query(self, query: str) -> None:
        self.query = query or ""
        self._changed()

    def set_stage_filter(self, stage: str) -> None:
        check_stage_selector(stage)
        self.stage_filter = stage
        self._changed()

    def subscribe(self, listener: Callable[[list], None]) -> None:
        """listener(visible) après tout changement de store ou de filtre."""
        self._listeners.append(listener)

    def close(self) -> None:
        """Détache le board du store (store partagé entre plusieurs vues)."""
        self.store.unsubscribe(self._on_store_change)
        self._listeners.clear()

    def _on_store_change(self, snapshot: tuple) -> None:
        self._changed()

    def _changed(self) -> None:
        visible = self.visible
        for listener in list(self._listeners):
            listener(visible)

    # ─────────────────────────────────────────
    # FORMULAIRE
    # ─────────────────────────────────────────

    @property
    def mode(self) -> Optional[str]:
        if not self.is_dialog_open:
            return None
        return "edit" if self.editing_id is not None else "create"

    def open_create(self) -> None:
        self._reset_draft()
        self.is_dialog_open = True

    def open_edit(self, opp_id: int) -> bool:
        opp = self.store.get(opp_id)
        if opp is None:
            logger.info(f"open_edit : opportunité {opp_id} introuvable")
            return False

        self.draft = {
            "customer": opp.customer,
            "value": opp.value,
            "stage": opp.stage.value,
            "closing_date": opp.closing_date,
            "notes": opp.notes,
        }
        self.editing_id = opp_id
        self.is_dialog_open = True
        return True

    def update_draft(self, **fields) -> None:
        unknown = [k for k in fields if k not in EDITABLE_FIELDS]
        if unknown:
            raise KeyError(f"Champs inconnus : {', '.join(unknown)}")
        self.draft.update(fields)

    def can_submit(self) -> bool:
        return is_submittable(self.draft)

    def save(self) -> Optional[Opportunity]:
        """
        Soumet le brouillon au store.
        Client ou valeur vide → rien ne se passe, le dialogue reste ouvert.
        """
        if not self.can_submit():
            logger.debug("Soumission ignorée : client ou valeur vide")
            return None

        if self.editing_id is not None:
            opp = self.store.update(self.editing_id, dict(self.draft))
        else:
            opp = self.store.add(dict(self.draft))

        self.is_dialog_open = False
        self._reset_draft()
        return opp

    def cancel(self) -> None:
        self.is_dialog_open = False
        self._reset_draft()

    def delete(self, opp_id: int) -> bool:
        return self.store.remove(opp_id)

    def _reset_draft(self) -> None:
        self.draft = dict(INITIAL_DRAFT)
        self.editing_id = None


def is_submittable(fields: dict) -> bool:
    """Seule validation du système : client et valeur non vides."""
    return _present(fields.get("customer")) and _present(fields.get("value"))


def _present(value) -> bool:
    return value is not None and value != ""
