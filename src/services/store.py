# services/store.py

import logging
from dataclasses import replace
from typing import Callable, Iterable, Optional

from models import Opportunity, Stage, EDITABLE_FIELDS, parse_stage

logger = logging.getLogger(__name__)

Listener = Callable[[tuple], None]


class OpportunityStore:
    """
    Liste autoritaire des opportunités, en mémoire.

    → add()     : assigne l'id (nombre d'enregistrements + 1) et ajoute en fin
    → update()  : fusionne les champs fournis, l'id ne bouge jamais
    → remove()  : supprime si présent, sinon ne fait rien
    → list()    : snapshot immuable, dans l'ordre d'insertion

    Aucune validation de présence ici : c'est au formulaire de filtrer
    les saisies vides avant de soumettre. Seul le stage est contrôlé.
    """

    def __init__(self, seed: Iterable[dict] = ()):
        self._records: list[Opportunity] = []
        self._listeners: list[Listener] = []
        self.version = 0

        for fields in seed:
            self.add(fields)

    # ─────────────────────────────────────────
    # LECTURE
    # ─────────────────────────────────────────

    def list(self) -> tuple:
        return tuple(self._records)

    def get(self, opp_id: int) -> Optional[Opportunity]:
        for opp in self._records:
            if opp.id == opp_id:
                return opp
        return None

    def __len__(self) -> int:
        return len(self._records)

    # ─────────────────────────────────────────
    # ÉCRITURE
    # ─────────────────────────────────────────

    def add(self, fields: dict) -> Opportunity:
        """
        Crée une opportunité à partir des champs du formulaire.

        Politique d'id : len(records) + 1. Après une suppression,
        le nouvel id peut réutiliser celui d'un enregistrement existant.
        On le signale dans les logs, on ne le corrige pas.
        """
        clean = self._clean_fields(fields)
        new_id = len(self._records) + 1

        if self.get(new_id) is not None:
            logger.warning(
                f"Id {new_id} déjà utilisé par un enregistrement existant : "
                f"collision après suppression"
            )

        opp = Opportunity(
            id=new_id,
            customer=clean.get("customer", ""),
            value=clean.get("value", ""),
            stage=clean.get("stage", Stage.PROSPECTING),
            closing_date=clean.get("closing_date"),
            notes=clean.get("notes"),
        )

        self._records.append(opp)
        logger.info(f"Opportunité {opp.display_id} créée : {opp.customer}")
        self._notify()
        return opp

    def update(self, opp_id: int, fields: dict) -> Optional[Opportunity]:
        """
        Fusionne `fields` dans l'opportunité `opp_id`.
        Les champs absents restent inchangés.
        Retourne None si l'id n'existe pas (aucun effet de bord).
        """
        clean = self._clean_fields(fields)

        updated = None
        records = []
        for opp in self._records:
            if opp.id == opp_id:
                opp = replace(opp, **clean)
                if updated is None:
                    updated = opp
            records.append(opp)

        if updated is None:
            logger.info(f"update : opportunité {opp_id} introuvable")
            return None

        self._records = records
        logger.info(
            f"Opportunité {updated.display_id} mise à jour : "
            f"{', '.join(clean) or 'aucun champ'}"
        )
        self._notify()
        return updated

    def remove(self, opp_id: int) -> bool:
        remaining = [o for o in self._records if o.id != opp_id]

        if len(remaining) == len(self._records):
            return False

        self._records = remaining
        logger.info(f"Opportunité {opp_id} supprimée")
        self._notify()
        return True

    # ─────────────────────────────────────────
    # OBSERVATEURS
    # ─────────────────────────────────────────

    def subscribe(self, listener: Listener) -> None:
        """listener(snapshot) est appelé après chaque mutation réussie."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        self.version += 1
        snapshot = self.list()
        for listener in list(self._listeners):
            listener(snapshot)

    # ─────────────────────────────────────────
    # UTILITAIRE INTERNE
    # ─────────────────────────────────────────

    @staticmethod
    def _clean_fields(fields: dict) -> dict:
        """
        Garde uniquement les champs modifiables et valide le stage.
        Lève InvalidStageError avant toute mutation.
        """
        ignored = [k for k in fields if k not in EDITABLE_FIELDS and k != "id"]
        if ignored:
            logger.warning(f"Champs ignorés : {', '.join(map(str, ignored))}")

        clean = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}

        if "stage" in clean:
            clean["stage"] = parse_stage(clean["stage"])

        return clean
