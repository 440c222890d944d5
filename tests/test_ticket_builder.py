"""Tests for the ticket builder."""

import pytest

from betly.errors import ApiError, EmptyTicketError, ErrorCode, InvalidSelectionError, NetworkError
from betly.normalize import draft_to_dict
from betly.storage import StorageKeys
from betly.ticket_builder import TicketBuilder, combined_odds

from factories import make_selection, make_ticket


# =============================================================================
# Derived values
# =============================================================================


class TestCombinedOdds:
    def test_empty_is_one(self):
        assert combined_odds([]) == 1.0

    def test_product_of_odds(self):
        selections = [make_selection(1, 1.5), make_selection(2, 2.0), make_selection(3, 1.25)]
        assert combined_odds(selections) == pytest.approx(3.75)

    def test_two_leg_scenario(self, builder):
        builder.add_selection(make_selection(1, 1.80))
        builder.add_selection(make_selection(2, 2.10))

        assert builder.total_odds() == pytest.approx(3.78)
        assert builder.potential_win() == pytest.approx(37.80)

    def test_potential_win_tracks_every_mutation(self, builder):
        builder.add_selection(make_selection(1, 2.0))
        assert builder.potential_win() == pytest.approx(builder.stake * builder.total_odds())

        builder.update_stake(25)
        assert builder.potential_win() == pytest.approx(50.0)

        builder.add_selection(make_selection(2, 1.5))
        assert builder.potential_win() == pytest.approx(75.0)

        builder.remove_selection(1)
        assert builder.potential_win() == pytest.approx(37.5)


# =============================================================================
# Draft mutations
# =============================================================================


class TestSelections:
    def test_add_appends_in_insertion_order(self, builder):
        builder.add_selection(make_selection(3))
        builder.add_selection(make_selection(1))

        assert [s.match_id for s in builder.draft.selections] == [3, 1]

    def test_same_match_replaces_in_place(self, builder):
        builder.add_selection(make_selection(1, 1.80, "Home win"))
        builder.add_selection(make_selection(2, 2.10))
        builder.add_selection(make_selection(1, 3.20, "Draw"))

        assert builder.selection_count() == 2
        assert [s.match_id for s in builder.draft.selections] == [1, 2]
        assert builder.get_selection(1).odds == 3.20
        assert builder.get_selection(1).bet == "Draw"

    def test_remove(self, builder):
        builder.add_selection(make_selection(1))
        builder.add_selection(make_selection(2))

        builder.remove_selection(1)

        assert not builder.has_selection(1)
        assert builder.has_selection(2)

    def test_remove_absent_is_noop(self, builder):
        builder.add_selection(make_selection(1))
        builder.remove_selection(99)
        assert builder.selection_count() == 1

    def test_get_selection_missing(self, builder):
        assert builder.get_selection(5) is None

    @pytest.mark.parametrize("odds", [0.5, 0.99, 0, -2])
    def test_odds_below_one_rejected(self, builder, odds):
        builder.add_selection(make_selection(2, 2.0))

        with pytest.raises(InvalidSelectionError) as exc_info:
            builder.add_selection(make_selection(1, odds))

        assert exc_info.value.code is ErrorCode.VALIDATION
        assert [s.match_id for s in builder.draft.selections] == [2]
        assert builder.total_odds() == pytest.approx(2.0)

    def test_rejected_odds_do_not_replace_existing(self, builder):
        builder.add_selection(make_selection(1, 1.80))

        with pytest.raises(InvalidSelectionError):
            builder.add_selection(make_selection(1, 0.5))

        assert builder.get_selection(1).odds == 1.80

    def test_even_odds_accepted(self, builder):
        builder.add_selection(make_selection(1, 1.0))
        assert builder.has_selection(1)


class TestStake:
    def test_default_stake(self, builder):
        assert builder.stake == 10

    @pytest.mark.parametrize("value", [0, -5, 0.5, -0.01])
    def test_clamped_to_minimum(self, builder, value):
        builder.update_stake(value)
        assert builder.stake == 1

    def test_valid_stake_kept(self, builder):
        builder.update_stake(42.5)
        assert builder.stake == 42.5


class TestClear:
    def test_clear_resets_draft(self, builder):
        builder.add_selection(make_selection(1))
        builder.update_stake(50)

        builder.clear()

        assert builder.is_empty
        assert builder.stake == 10

    def test_clear_then_reload_stays_empty(self, builder, store, tickets_service):
        builder.add_selection(make_selection(1))
        builder.clear()

        restarted = TicketBuilder(store, tickets_service, default_stake=10, min_stake=1)
        restarted.load_current_ticket()

        assert restarted.is_empty
        assert store.get_item(StorageKeys.CURRENT_TICKET) is None


# =============================================================================
# Persistence
# =============================================================================


class TestPersistence:
    def test_mutations_survive_restart(self, builder, store, tickets_service):
        builder.add_selection(make_selection(1, 1.80))
        builder.add_selection(make_selection(2, 2.10))
        builder.update_stake(20)

        restarted = TicketBuilder(store, tickets_service, default_stake=10, min_stake=1)
        restarted.load_current_ticket()

        assert [s.match_id for s in restarted.draft.selections] == [1, 2]
        assert restarted.stake == 20
        assert restarted.total_odds() == pytest.approx(3.78)
        assert restarted.get_selection(1).match["homeTeam"]["name"] == "Lyon"

    def test_draft_with_rejected_odds_round_trips(self, builder, store, tickets_service):
        with pytest.raises(InvalidSelectionError):
            builder.add_selection(make_selection(1, 0.5))
        builder.add_selection(make_selection(2, 2.0))

        restarted = TicketBuilder(store, tickets_service, default_stake=10, min_stake=1)
        restarted.load_current_ticket()

        assert [s.match_id for s in restarted.draft.selections] == [s.match_id for s in builder.draft.selections]
        assert restarted.total_odds() == pytest.approx(builder.total_odds())
        assert restarted.potential_win() == pytest.approx(builder.potential_win())

    def test_nothing_persisted_leaves_empty_draft(self, builder):
        builder.load_current_ticket()
        assert builder.is_empty
        assert builder.stake == 10

    def test_corrupt_snapshot_ignored(self, builder, store):
        store.set_item(StorageKeys.CURRENT_TICKET, "{not json")
        builder.load_current_ticket()
        assert builder.is_empty

    def test_bad_stored_stake_falls_back_to_default(self, builder, store):
        store.set_json(StorageKeys.CURRENT_TICKET, {"selections": [], "stake": 0})
        builder.load_current_ticket()
        assert builder.stake == 10

    def test_failed_write_does_not_raise(self, builder, store, monkeypatch):
        monkeypatch.setattr(store, "set_item", lambda key, value: False)
        builder.add_selection(make_selection(1))
        assert builder.selection_count() == 1


# =============================================================================
# Save
# =============================================================================


class TestSave:
    def test_empty_ticket_never_reaches_network(self, builder, tickets_service):
        with pytest.raises(EmptyTicketError) as exc_info:
            builder.save()

        assert exc_info.value.code is ErrorCode.VALIDATION
        assert builder.error == "No selections to save"
        tickets_service.create_ticket.assert_not_called()

    def test_success_submits_and_clears(self, builder, tickets_service, store):
        saved = make_ticket("t-9")
        tickets_service.create_ticket.return_value = saved
        builder.add_selection(make_selection(1, 1.80))
        builder.add_selection(make_selection(2, 2.10))

        result = builder.save()

        kwargs = tickets_service.create_ticket.call_args.kwargs
        assert [s.match_id for s in kwargs["selections"]] == [1, 2]
        assert kwargs["total_odds"] == pytest.approx(3.78)
        assert kwargs["stake"] == 10
        assert kwargs["potential_win"] == pytest.approx(37.80)

        assert result is saved
        assert builder.tickets[0] is saved
        assert builder.is_empty
        assert builder.stake == 10
        assert not builder.is_saving
        assert store.get_item(StorageKeys.CURRENT_TICKET) is None

    def test_newest_ticket_first(self, builder, tickets_service):
        builder.tickets = [make_ticket("old")]
        tickets_service.create_ticket.return_value = make_ticket("new")
        builder.add_selection(make_selection(1))

        builder.save()

        assert [t.id for t in builder.tickets] == ["new", "old"]

    def test_failure_preserves_draft_exactly(self, builder, tickets_service, store):
        tickets_service.create_ticket.side_effect = NetworkError()
        builder.add_selection(make_selection(1, 1.80))
        builder.add_selection(make_selection(2, 2.10))
        builder.update_stake(15)
        before = draft_to_dict(builder.draft)
        persisted_before = store.get_item(StorageKeys.CURRENT_TICKET)

        with pytest.raises(NetworkError):
            builder.save()

        assert draft_to_dict(builder.draft) == before
        assert store.get_item(StorageKeys.CURRENT_TICKET) == persisted_before
        assert builder.tickets == []
        assert builder.error == "Network error - please check your connection"
        assert not builder.is_saving

    def test_retry_after_failure(self, builder, tickets_service):
        tickets_service.create_ticket.side_effect = [
            ApiError(ErrorCode.SERVER_ERROR, "Server error", status=503),
            make_ticket("t-2"),
        ]
        builder.add_selection(make_selection(1))

        with pytest.raises(ApiError):
            builder.save()
        ticket = builder.save()

        assert ticket.id == "t-2"
        assert builder.is_empty


# =============================================================================
# Saved tickets
# =============================================================================


class TestSavedTickets:
    def test_load_tickets(self, builder, tickets_service):
        tickets_service.get_tickets.return_value = [make_ticket("a"), make_ticket("b")]

        tickets = builder.load_tickets()

        assert [t.id for t in tickets] == ["a", "b"]
        assert not builder.is_loading

    def test_load_failure_keeps_list(self, builder, tickets_service):
        builder.tickets = [make_ticket("a")]
        tickets_service.get_tickets.side_effect = NetworkError()

        with pytest.raises(NetworkError):
            builder.load_tickets()

        assert [t.id for t in builder.tickets] == ["a"]

    def test_refresh_failure_is_silent(self, builder, tickets_service):
        builder.tickets = [make_ticket("a")]
        tickets_service.get_tickets.side_effect = NetworkError()

        assert builder.refresh_tickets() is False
        assert [t.id for t in builder.tickets] == ["a"]
        assert builder.error is None

    def test_delete_ticket(self, builder, tickets_service):
        builder.tickets = [make_ticket("a"), make_ticket("b")]

        builder.delete_ticket("a")

        tickets_service.delete_ticket.assert_called_once_with("a")
        assert [t.id for t in builder.tickets] == ["b"]

    def test_delete_failure_keeps_ticket(self, builder, tickets_service):
        builder.tickets = [make_ticket("a")]
        tickets_service.delete_ticket.side_effect = ApiError(ErrorCode.NOT_FOUND, "Not found", status=404)

        with pytest.raises(ApiError):
            builder.delete_ticket("a")

        assert [t.id for t in builder.tickets] == ["a"]
        assert builder.error == "Not found"

    def test_reload_ticket_replaces_cached_copy(self, builder, tickets_service):
        builder.tickets = [make_ticket("a"), make_ticket("b")]
        settled = make_ticket("b", stake=25)
        tickets_service.get_ticket.return_value = settled

        assert builder.reload_ticket("b") is settled

        tickets_service.get_ticket.assert_called_once_with("b")
        assert [t.id for t in builder.tickets] == ["a", "b"]
        assert builder.tickets[1].stake == 25

    def test_reload_unknown_ticket_is_cached_first(self, builder, tickets_service):
        builder.tickets = [make_ticket("a")]
        tickets_service.get_ticket.return_value = make_ticket("z")

        builder.reload_ticket("z")

        assert [t.id for t in builder.tickets] == ["z", "a"]

    def test_update_ticket(self, builder, tickets_service):
        builder.tickets = [make_ticket("a")]
        tickets_service.update_ticket.return_value = make_ticket("a", stake=40)

        builder.update_ticket("a", {"stake": 40})

        tickets_service.update_ticket.assert_called_once_with("a", {"stake": 40})
        assert builder.tickets[0].stake == 40

    def test_update_failure_keeps_cached_ticket(self, builder, tickets_service):
        builder.tickets = [make_ticket("a")]
        tickets_service.update_ticket.side_effect = NetworkError()

        with pytest.raises(NetworkError):
            builder.update_ticket("a", {"stake": 40})

        assert builder.tickets[0].stake == 10
        assert builder.error == NetworkError().message
