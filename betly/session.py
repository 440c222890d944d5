"""
Construction of the client's component objects.

Everything is built once here and handed around by reference; nothing is
looked up globally, so tests can build a session around fakes.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests

from betly.ai_chat import AIChatSession, ProposalAdapter
from betly.client import ApiClient
from betly.credits import CreditLedger
from betly.services import (
    AIChatService,
    CreditsService,
    PredictionsService,
    TicketsService,
    TipsService,
)
from betly.storage import KeyValueStore
from betly.ticket_builder import TicketBuilder
from betly.unlock import UnlockGate

# Configure module logger
logger = logging.getLogger(__name__)


@dataclass
class BetlySession:
    store: KeyValueStore
    client: ApiClient
    tickets: TicketBuilder
    credits: CreditLedger
    unlocks: UnlockGate
    chat: AIChatSession
    proposals: ProposalAdapter

    @classmethod
    def create(
        cls,
        store_path: Optional[Path] = None,
        base_url: Optional[str] = None,
        http_session: Optional[requests.Session] = None,
    ) -> "BetlySession":
        """
        Build a session from Config, with optional overrides.

        Args:
            store_path: Key-value store file. If None, uses Config.STORE_PATH
            base_url: API root. If None, uses Config.API_BASE_URL
            http_session: requests Session to send through
        """
        store = KeyValueStore(store_path)
        client = ApiClient(store, base_url=base_url, session=http_session)

        chat_service = AIChatService(client)
        tickets = TicketBuilder(store, TicketsService(client))
        credits = CreditLedger(CreditsService(client), store)

        return cls(
            store=store,
            client=client,
            tickets=tickets,
            credits=credits,
            unlocks=UnlockGate(credits, PredictionsService(client), TipsService(client)),
            chat=AIChatSession(chat_service),
            proposals=ProposalAdapter(tickets, chat_service),
        )

    def startup(self) -> None:
        """Restore local state saved by the previous run."""
        self.tickets.load_current_ticket()
        self.credits.load_cached_balance()
        logger.info(
            f"Session ready: {self.tickets.selection_count()} draft selections, "
            f"authenticated={self.client.is_authenticated()}"
        )

    def refresh(self) -> None:
        """Background refresh of balance, packs, costs and tickets. Never raises on remote failure."""
        if not self.client.is_authenticated():
            logger.debug("Skipping refresh: not authenticated")
            return
        self.credits.refresh_all()
        self.tickets.refresh_tickets()
