"""
Ticket builder for composing multi-selection parlays.

This module owns the in-progress ticket draft: its selections, its stake,
and the derived total odds and potential win. Local mutations are written
through to the key-value store; save() is the only operation that talks to
the network, and it leaves the draft untouched when it fails.
"""

import logging
from typing import Optional

from betly.config import Config
from betly.errors import ApiError, EmptyTicketError, InvalidSelectionError
from betly.models import Selection, Ticket, TicketDraft
from betly.normalize import draft_to_dict, parse_draft
from betly.services import TicketsService
from betly.storage import KeyValueStore, StorageKeys

# Configure module logger
logger = logging.getLogger(__name__)

# Decimal odds
MIN_ODDS = 1.0


def combined_odds(selections: list[Selection]) -> float:
    """
    Product of the selections' decimal odds.

    Args:
        selections: Ticket selections

    Returns:
        Combined decimal odds; 1.0 for an empty ticket
    """
    total = 1.0
    for selection in selections:
        total *= selection.odds
    return total


class TicketBuilder:
    """
    In-memory and persisted model of the ticket being composed.

    Draft states are Empty (no selections) and Building (one or more).
    Derived values are recomputed on every read and never cached.
    """

    def __init__(
        self,
        store: KeyValueStore,
        tickets_service: TicketsService,
        default_stake: Optional[float] = None,
        min_stake: Optional[float] = None,
    ):
        """
        Initialize an empty builder.

        Args:
            store: Key-value store holding the draft snapshot
            tickets_service: Remote tickets endpoints
            default_stake: Stake of a fresh draft. If None, uses Config.DEFAULT_STAKE
            min_stake: Lowest allowed stake. If None, uses Config.MIN_STAKE
        """
        self.store = store
        self.tickets_service = tickets_service
        self.default_stake = default_stake if default_stake is not None else Config.DEFAULT_STAKE
        self.min_stake = min_stake if min_stake is not None else Config.MIN_STAKE

        self.draft = TicketDraft(stake=self.default_stake)
        self.tickets: list[Ticket] = []
        self.is_loading = False
        self.is_saving = False
        self.error: Optional[str] = None

    # Building the draft

    def add_selection(self, selection: Selection) -> None:
        """
        Add a selection, replacing in place any existing one for the same match.

        Raises:
            InvalidSelectionError: Odds below 1.0; the draft is unchanged
        """
        if selection.odds < MIN_ODDS:
            self.error = f"Odds must be at least {MIN_ODDS:g}, got {selection.odds:g}"
            raise InvalidSelectionError(self.error)

        selections = self.draft.selections
        for idx, existing in enumerate(selections):
            if existing.match_id == selection.match_id:
                selections[idx] = selection
                logger.debug(f"Replaced selection for match {selection.match_id}")
                break
        else:
            selections.append(selection)
            logger.debug(f"Added selection for match {selection.match_id}")

        self.persist_current_ticket()

    def remove_selection(self, match_id: int) -> None:
        """Remove the selection for a match. Absent matches are ignored."""
        self.draft.selections = [s for s in self.draft.selections if s.match_id != match_id]
        self.persist_current_ticket()

    def update_stake(self, stake: float) -> None:
        """Set the stake, clamped to the minimum stake."""
        self.draft.stake = max(self.min_stake, stake)
        self.persist_current_ticket()

    def clear(self) -> None:
        """Reset to an empty draft and delete the persisted snapshot."""
        self.draft = TicketDraft(stake=self.default_stake)
        if not self.store.delete_item(StorageKeys.CURRENT_TICKET):
            logger.error("Failed to delete persisted ticket draft")

    # Derived values

    def total_odds(self) -> float:
        return combined_odds(self.draft.selections)

    def potential_win(self) -> float:
        return self.draft.stake * self.total_odds()

    def has_selection(self, match_id: int) -> bool:
        return any(s.match_id == match_id for s in self.draft.selections)

    def get_selection(self, match_id: int) -> Optional[Selection]:
        for selection in self.draft.selections:
            if selection.match_id == match_id:
                return selection
        return None

    def selection_count(self) -> int:
        return len(self.draft.selections)

    @property
    def stake(self) -> float:
        return self.draft.stake

    @property
    def is_empty(self) -> bool:
        return not self.draft.selections

    # Persistence

    def load_current_ticket(self) -> None:
        """Restore the draft persisted by a previous session, if any."""
        data = self.store.get_json(StorageKeys.CURRENT_TICKET)
        if data is None:
            return

        self.draft = parse_draft(data, self.default_stake, self.min_stake)
        logger.info(f"Restored ticket draft with {self.selection_count()} selections")

    def persist_current_ticket(self) -> None:
        """Write the draft snapshot. A failed write is logged, never raised."""
        if not self.store.set_json(StorageKeys.CURRENT_TICKET, draft_to_dict(self.draft)):
            logger.error("Failed to persist ticket draft")

    # Remote operations

    def save(self) -> Ticket:
        """
        Submit the draft as a saved ticket.

        On success the returned ticket is put at the front of `tickets` and
        the draft is cleared. On failure the draft is left exactly as it was.

        Returns:
            The server's saved ticket

        Raises:
            EmptyTicketError: If the draft has no selections (no request is made)
            ApiError: If the request fails
        """
        if self.is_empty:
            error = EmptyTicketError()
            self.error = error.message
            raise error

        self.is_saving = True
        self.error = None
        try:
            ticket = self.tickets_service.create_ticket(
                selections=list(self.draft.selections),
                total_odds=self.total_odds(),
                stake=self.draft.stake,
                potential_win=self.potential_win(),
            )
        except ApiError as e:
            self.error = e.message or "Failed to save ticket"
            logger.error(f"Failed to save ticket: {e.code.value}")
            raise
        finally:
            self.is_saving = False

        self.tickets.insert(0, ticket)
        self.clear()
        logger.info(f"Saved ticket {ticket.id} ({len(ticket.selections)} selections, stake {ticket.stake})")
        return ticket

    def load_tickets(self) -> list[Ticket]:
        """
        Replace the saved-ticket list with the server's.

        Raises:
            ApiError: If the request fails; the previous list is kept
        """
        self.is_loading = True
        self.error = None
        try:
            self.tickets = self.tickets_service.get_tickets()
        except ApiError as e:
            self.error = e.message or "Failed to load tickets"
            raise
        finally:
            self.is_loading = False

        logger.info(f"Loaded {len(self.tickets)} saved tickets")
        return self.tickets

    def refresh_tickets(self) -> bool:
        """Background reload; failures are logged and stale data is kept."""
        try:
            self.tickets = self.tickets_service.get_tickets()
            return True
        except ApiError as e:
            logger.warning(f"Ticket refresh failed: {e.code.value}")
            return False

    def _replace_cached(self, ticket: Ticket) -> None:
        for idx, existing in enumerate(self.tickets):
            if existing.id == ticket.id:
                self.tickets[idx] = ticket
                return
        self.tickets.insert(0, ticket)

    def reload_ticket(self, ticket_id: str) -> Ticket:
        """
        Fetch one saved ticket and update it in the cached list.

        Raises:
            ApiError: If the request fails; the cached list is unchanged
        """
        ticket = self.tickets_service.get_ticket(ticket_id)
        self._replace_cached(ticket)
        return ticket

    def update_ticket(self, ticket_id: str, data: dict) -> Ticket:
        """
        Send a partial update for a saved ticket and cache the server's copy.

        Args:
            ticket_id: Saved ticket id
            data: camelCase fields to change

        Raises:
            ApiError: If the request fails; the cached list is unchanged
        """
        self.error = None
        try:
            ticket = self.tickets_service.update_ticket(ticket_id, data)
        except ApiError as e:
            self.error = e.message or "Failed to update ticket"
            raise

        self._replace_cached(ticket)
        logger.info(f"Updated ticket {ticket_id}")
        return ticket

    def delete_ticket(self, ticket_id: str) -> None:
        """
        Delete a saved ticket remotely, then locally.

        Raises:
            ApiError: If the request fails; the local list is unchanged
        """
        self.error = None
        try:
            self.tickets_service.delete_ticket(ticket_id)
        except ApiError as e:
            self.error = e.message or "Failed to delete ticket"
            raise

        self.tickets = [t for t in self.tickets if t.id != ticket_id]

    def clear_error(self) -> None:
        self.error = None
