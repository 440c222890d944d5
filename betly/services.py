"""
Endpoint wrappers for the Betly remote API.

Each service maps one resource family onto ApiClient calls and normalizes
the JSON into dataclasses. No state is kept here; caching and
reconciliation live in the component objects that use these services.
"""

import logging
from typing import Any, Callable, Optional, TypeVar

from betly import endpoints
from betly.client import ApiClient
from betly.errors import ApiError, ErrorCode
from betly.models import (
    AITokenUsage,
    ChatMessage,
    ContentType,
    ContentUnlockStatus,
    CreditBalance,
    CreditCosts,
    CreditPack,
    CreditTransaction,
    ProposalStatus,
    Selection,
    Ticket,
)
from betly.normalize import (
    parse_balance,
    parse_chat_message,
    parse_costs,
    parse_list,
    parse_pack,
    parse_ticket,
    parse_token_usage,
    parse_transaction,
    parse_unlock_status,
    selection_to_dict,
)

# Configure module logger
logger = logging.getLogger(__name__)

T = TypeVar("T")


def _parse_one(data: Any, parser: Callable[[dict], T], label: str) -> T:
    """Parse a single record, treating a malformed one as a failed call."""
    if not isinstance(data, dict):
        raise ApiError(ErrorCode.UNKNOWN_ERROR, f"Malformed {label} response")
    try:
        return parser(data)
    except (ValueError, TypeError, KeyError) as e:
        logger.error(f"Failed to parse {label}: {e}")
        raise ApiError(ErrorCode.UNKNOWN_ERROR, f"Malformed {label} response")


class TicketsService:
    def __init__(self, client: ApiClient):
        self.client = client

    def get_tickets(self) -> list[Ticket]:
        return parse_list(self.client.get(endpoints.TICKETS), parse_ticket, "ticket")

    def get_ticket(self, ticket_id: str) -> Ticket:
        return _parse_one(self.client.get(endpoints.ticket_by_id(ticket_id)), parse_ticket, "ticket")

    def create_ticket(
        self,
        selections: list[Selection],
        total_odds: float,
        stake: float,
        potential_win: float,
    ) -> Ticket:
        payload = {
            "selections": [selection_to_dict(s) for s in selections],
            "totalOdds": total_odds,
            "stake": stake,
            "potentialWin": potential_win,
        }
        return _parse_one(self.client.post(endpoints.TICKETS, json=payload), parse_ticket, "ticket")

    def update_ticket(self, ticket_id: str, data: dict) -> Ticket:
        return _parse_one(self.client.put(endpoints.ticket_by_id(ticket_id), json=data), parse_ticket, "ticket")

    def delete_ticket(self, ticket_id: str) -> None:
        self.client.delete(endpoints.ticket_by_id(ticket_id))


class CreditsService:
    def __init__(self, client: ApiClient):
        self.client = client

    def get_balance(self) -> CreditBalance:
        return _parse_one(self.client.get(endpoints.CREDITS_BALANCE), parse_balance, "balance")

    def get_history(self) -> list[CreditTransaction]:
        return parse_list(self.client.get(endpoints.CREDITS_HISTORY), parse_transaction, "transaction")

    def get_packs(self) -> list[CreditPack]:
        return parse_list(self.client.get(endpoints.CREDITS_PACKS), parse_pack, "credit pack")

    def get_costs(self) -> CreditCosts:
        return _parse_one(self.client.get(endpoints.CREDITS_COSTS), parse_costs, "costs")

    def check_unlock(self, content_type: ContentType, content_id: str) -> ContentUnlockStatus:
        path = endpoints.credits_check(content_type.value, content_id)
        return _parse_one(self.client.get(path), parse_unlock_status, "unlock status")

    def spend(self, content_type: ContentType, content_id: str) -> CreditBalance:
        payload = {"contentType": content_type.value, "contentId": content_id}
        return _parse_one(self.client.post(endpoints.CREDITS_SPEND, json=payload), parse_balance, "balance")


class PredictionsService:
    def __init__(self, client: ApiClient):
        self.client = client

    def unlock_prediction(self, match_id: int) -> Optional[dict]:
        """Spend and unlock in one server-side step; returns the prediction payload."""
        return self.client.post(endpoints.unlock_prediction(match_id))


class TipsService:
    def __init__(self, client: ApiClient):
        self.client = client

    def unlock_tip(self, tip_id: str) -> Optional[dict]:
        """Spend and unlock in one server-side step; returns the tip payload."""
        return self.client.post(endpoints.unlock_tip(tip_id))


class AIChatService:
    def __init__(self, client: ApiClient):
        self.client = client

    def get_usage(self) -> AITokenUsage:
        return _parse_one(self.client.get(endpoints.AI_CHAT_USAGE), parse_token_usage, "token usage")

    def convert_credits(self) -> AITokenUsage:
        return _parse_one(self.client.post(endpoints.AI_CHAT_CONVERT_CREDITS), parse_token_usage, "token usage")

    def get_history(self, match_id: int) -> list[ChatMessage]:
        return parse_list(self.client.get(endpoints.ai_chat_history(match_id)), parse_chat_message, "chat message")

    def send_message(self, match_id: int, message: str) -> ChatMessage:
        data = self.client.post(endpoints.ai_chat_message(match_id), json={"message": message})
        return _parse_one(data, parse_chat_message, "chat message")

    def delete_conversation(self, match_id: int) -> None:
        self.client.delete(endpoints.ai_chat_delete(match_id))

    def update_ticket_status(self, message_id: str, status: ProposalStatus) -> None:
        self.client.put(endpoints.ai_chat_ticket_status(message_id), json={"status": status.value})
