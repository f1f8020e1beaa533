# tests/test_orchestrator.py

"""
Ce qu'on teste :
→ La vue filtrée du board suit le store et les deux filtres
→ Le formulaire n'envoie rien si client ou valeur est vide
→ Édition : fusion dans l'enregistrement existant
→ Le rendu des lignes (O-XXX, $ + valeur brute)
→ La config fusionne l'environnement avec les defaults
"""

import pytest
from unittest.mock import MagicMock, patch

from models import Stage, InvalidStageError
from services import query
from orchestrator.board import (
    OpportunityBoard, STAGE_FILTER_OPTIONS, INITIAL_DRAFT,
    render_rows, format_value, is_submittable,
)


class TestBoardView:

    def test_initial_view_shows_everything(self, board):
        assert [o.id for o in board.visible] == [1, 2]
        assert board.stage_filter == "All"

    def test_query_and_stage_are_independent(self, board):
        board.set_query("corp")
        assert [o.id for o in board.visible] == [2]

        board.set_stage_filter("Prospecting")
        assert board.visible == []

        board.set_query("")
        assert [o.id for o in board.visible] == [1]

    def test_recomputed_after_store_change(self, board, store):
        board.set_stage_filter("Negotiation")
        store.add({"customer": "Omega", "value": 5, "stage": "Negotiation"})

        assert [o.id for o in board.visible] == [2, 3]

    def test_memoised_until_inputs_change(self, board):
        """
        Deux lectures sans changement → un seul calcul.
        Un changement de recherche → nouveau calcul.
        """
        with patch("orchestrator.board.filter_opportunities",
                   wraps=query.filter_opportunities) as spy:
            board.visible
            board.visible
            assert spy.call_count == 1

            board.set_query("abc")
            board.visible
            assert spy.call_count == 2

    def test_listener_notified_on_every_input(self, board, store):
        """Recherche, stage, puis mutation du store : 3 notifications."""
        listener = MagicMock()
        board.subscribe(listener)

        board.set_query("x")
        board.set_stage_filter("Qualified")
        store.remove(1)

        assert listener.call_count == 3

    def test_invalid_stage_selector(self, board):
        with pytest.raises(InvalidStageError):
            board.set_stage_filter("Closed")
        assert board.stage_filter == "All"

    def test_filter_options(self):
        assert STAGE_FILTER_OPTIONS[0] == "All"
        assert STAGE_FILTER_OPTIONS[1:] == (
            "Prospecting", "Qualified", "Proposal",
            "Negotiation", "Closed Won", "Closed Lost",
        )


class TestBoardForm:

    def test_create_flow(self, board, store):
        board.open_create()
        assert board.mode == "create"

        board.update_draft(customer="Gamma SAS", value="72000", stage="Proposal")
        opp = board.save()

        assert opp.id == 3
        assert opp.value == "72000"
        assert board.mode is None
        assert board.draft == INITIAL_DRAFT
        assert len(store) == 3

    def test_empty_customer_is_silent_noop(self, board, store):
        board.open_create()
        board.update_draft(value="1000")

        assert board.save() is None
        assert len(store) == 2
        assert board.mode == "create"     # le dialogue reste ouvert

    def test_empty_value_is_silent_noop(self, board, store):
        board.open_create()
        board.update_draft(customer="Delta")

        assert board.save() is None
        assert len(store) == 2

    def test_edit_merges_into_existing(self, board, store):
        assert board.open_edit(1) is True
        assert board.mode == "edit"
        assert board.draft["customer"] == "ABC Ltd"

        board.update_draft(value=99999)
        opp = board.save()

        assert opp.id == 1
        assert opp.customer == "ABC Ltd"
        assert opp.value == 99999
        assert len(store) == 2

    def test_edit_without_changes_keeps_optional_fields(self, board, store):
        """
        closing_date et notes à None restent None après une édition
        enregistrée sans modification.
        """
        before = store.get(2)

        board.open_edit(2)
        opp = board.save()

        assert opp.closing_date is None
        assert opp.notes is None
        assert opp.to_dict() == before.to_dict()

    def test_edit_unknown_id(self, board):
        assert board.open_edit(404) is False
        assert board.mode is None

    def test_cancel_resets_edit_state(self, board, store):
        """
        Annuler une édition puis ajouter : on crée bien un nouvel
        enregistrement, l'ancien n'est pas écrasé.
        """
        board.open_edit(2)
        board.cancel()

        board.open_create()
        board.update_draft(customer="New Co", value=10)
        opp = board.save()

        assert opp.id == 3
        assert store.get(2).customer == "XYZ Corp"

    def test_unknown_draft_field(self, board):
        with pytest.raises(KeyError):
            board.update_draft(owner="x")

    def test_delete_forwards_to_store(self, board):
        assert board.delete(1) is True
        assert board.delete(1) is False
        assert [o.id for o in board.visible] == [2]

    @pytest.mark.parametrize("fields,expected", [
        ({"customer": "A", "value": "1"}, True),
        ({"customer": "A", "value": 0}, True),
        ({"customer": "", "value": "1"}, False),
        ({"customer": "A", "value": ""}, False),
        ({"customer": "A"}, False),
    ])
    def test_is_submittable(self, fields, expected):
        assert is_submittable(fields) is expected


    def test_close_detaches_from_store(self, board, store):
        """Après close(), une mutation du store ne notifie plus le board."""
        listener = MagicMock()
        board.subscribe(listener)

        board.close()
        store.add({"customer": "Omega", "value": 5})

        listener.assert_not_called()
        assert board._on_store_change not in store._listeners


class TestRows:

    def test_rows_render_display_fields(self, board):
        rows = board.rows()

        assert rows[0] == {
            "opp_id": "O-001",
            "customer": "ABC Ltd",
            "value": "$20000",
            "stage": "Prospecting",
        }
        assert rows[1]["opp_id"] == "O-002"

    def test_value_is_passthrough(self):
        assert format_value("1,500.5", "€") == "€1,500.5"

    def test_empty_view_renders_no_rows(self, board):
        board.set_query("nonexistent")
        assert board.rows() == []

    def test_render_rows_uses_symbol(self, records):
        rows = render_rows(records, "£")
        assert [r["value"] for r in rows] == ["£20000", "£50000"]


class TestSettings:

    def test_defaults(self, monkeypatch):
        from orchestrator.settings import get_board_config, DEFAULT_BOARD_CONFIG

        monkeypatch.delenv("OPPORTUNITIES_CURRENCY_SYMBOL", raising=False)
        monkeypatch.delenv("OPPORTUNITIES_SEED_DEMO", raising=False)

        assert get_board_config() == DEFAULT_BOARD_CONFIG

    def test_env_overrides_default(self, monkeypatch):
        from orchestrator.settings import get_board_config

        monkeypatch.setenv("OPPORTUNITIES_CURRENCY_SYMBOL", "€")
        monkeypatch.setenv("OPPORTUNITIES_SEED_DEMO", "false")

        config = get_board_config()
        assert config["currency_symbol"] == "€"
        assert config["seed_demo"] is False

    def test_frontend_origins_deduplicated(self, monkeypatch):
        from orchestrator.settings import get_frontend_origins

        monkeypatch.setenv(
            "FRONTEND_ORIGINS",
            "https://crm.example.com, http://localhost:3000,",
        )

        assert get_frontend_origins() == [
            "http://localhost:3000",
            "https://crm.example.com",
        ]

    def test_demo_board(self):
        board = OpportunityBoard.with_demo_data()

        assert [o.customer for o in board.visible] == ["ABC Ltd", "XYZ Corp"]
        assert board.visible[1].stage == Stage.NEGOTIATION
