# models.py

from dataclasses import dataclass
from typing import Optional, Union
from enum import Enum


# ─────────────────────────────────────────
# ENUMS
# ─────────────────────────────────────────

class Stage(str, Enum):
    PROSPECTING = "Prospecting"
    QUALIFIED = "Qualified"
    PROPOSAL = "Proposal"
    NEGOTIATION = "Negotiation"
    CLOSED_WON = "Closed Won"
    CLOSED_LOST = "Closed Lost"

    @classmethod
    def choices(cls) -> list:
        return [s.value for s in cls]


ALL_STAGES = "All"


class InvalidStageError(ValueError):
    """Stage hors de l'énumération (ou sélecteur inconnu)."""

    def __init__(self, stage):
        self.stage = stage
        super().__init__(f"Stage invalide : {stage!r}")


def parse_stage(raw) -> Stage:
    """
    Convertit une valeur brute ("Negotiation", Stage.NEGOTIATION) en Stage.
    Aucune normalisation de casse : l'ensemble est fermé.
    """
    if isinstance(raw, Stage):
        return raw
    try:
        return Stage(raw)
    except ValueError:
        raise InvalidStageError(raw) from None


# ─────────────────────────────────────────
# IDENTIFIANT AFFICHÉ
# ─────────────────────────────────────────

DISPLAY_ID_PREFIX = "O-"
DISPLAY_ID_WIDTH = 3


def format_display_id(opp_id: int) -> str:
    """7 → "O-007". Jamais utilisé comme clé."""
    return f"{DISPLAY_ID_PREFIX}{str(opp_id).zfill(DISPLAY_ID_WIDTH)}"


# ─────────────────────────────────────────
# CORE MODEL
# ─────────────────────────────────────────

# Champs modifiables via add() / update(). L'id n'en fait pas partie.
EDITABLE_FIELDS = ("customer", "value", "stage", "closing_date", "notes")


@dataclass(frozen=True)
class Opportunity:
    # Identité (assignée par le store)
    id: int

    # Client
    customer: str = ""

    # Valeur brute, telle que saisie ("20000" ou 20000)
    value: Union[str, int, float] = ""

    # Pipeline
    stage: Stage = Stage.PROSPECTING

    # Optionnels, sans validation
    closing_date: Optional[str] = None
    notes: Optional[str] = None

    @property
    def display_id(self) -> str:
        return format_display_id(self.id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "display_id": self.display_id,
            "customer": self.customer,
            "value": self.value,
            "stage": self.stage.value,
            "closing_date": self.closing_date,
            "notes": self.notes,
        }
