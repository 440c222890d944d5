"""
Conversion between API JSON and the client's dataclasses.

The API speaks camelCase JSON. Parsers here raise ValueError on records
missing required fields; list parsers skip such records with a warning so
one bad entry does not hide the rest.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar

from betly.models import (
    AITokenUsage,
    ChatMessage,
    ContentUnlockStatus,
    CreditBalance,
    CreditCosts,
    CreditPack,
    CreditTransaction,
    Selection,
    Ticket,
    TicketDraft,
    TicketProposal,
    TicketStatus,
    ProposalStatus,
)

# Configure module logger
logger = logging.getLogger(__name__)

T = TypeVar("T")


def parse_list(data: Any, parser: Callable[[dict], T], label: str) -> list[T]:
    """
    Parse a list of API records, skipping invalid entries.

    Args:
        data: Decoded JSON (expected to be a list of dicts)
        parser: Parser for a single record
        label: Record kind, for log messages

    Returns:
        Parsed records. Invalid entries are skipped.
    """
    items: list[T] = []

    if not isinstance(data, list):
        logger.warning(f"Expected list of {label}, got {type(data).__name__}")
        return items

    for idx, record in enumerate(data):
        try:
            items.append(parser(record))
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning(f"Failed to parse {label} at index {idx}: {e}")
            logger.debug(f"{label} data: {record}")

    return items


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp; None for missing or unparseable values."""
    if not value:
        return None

    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        logger.debug(f"Could not parse timestamp: {value}")
        return None


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _require(data: dict, key: str) -> Any:
    value = data.get(key)
    if value is None:
        raise ValueError(f"missing required field '{key}'")
    return value


def _int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


# Selections and tickets

def parse_selection(data: dict) -> Selection:
    odds = float(_require(data, "odds"))
    if odds < 1.0:
        raise ValueError(f"odds must be >= 1.0, got {odds}")

    return Selection(
        match_id=int(_require(data, "matchId")),
        bet=str(data.get("bet") or ""),
        odds=odds,
        match=data.get("match") or {},
    )


def selection_to_dict(selection: Selection) -> dict:
    return {
        "matchId": selection.match_id,
        "match": selection.match,
        "bet": selection.bet,
        "odds": selection.odds,
    }


def _ticket_status(value: Any) -> TicketStatus:
    # An unknown status must not fail a ticket the server already stored
    try:
        return TicketStatus(value or TicketStatus.PENDING.value)
    except ValueError:
        logger.warning(f"Unknown ticket status {value!r}, treating as pending")
        return TicketStatus.PENDING


def parse_ticket(data: dict) -> Ticket:
    return Ticket(
        id=str(_require(data, "id")),
        selections=parse_list(data.get("selections") or [], parse_selection, "selection"),
        total_odds=float(_require(data, "totalOdds")),
        stake=float(_require(data, "stake")),
        potential_win=float(_require(data, "potentialWin")),
        status=_ticket_status(data.get("status")),
        created_at=parse_datetime(data.get("createdAt")),
        settled_at=parse_datetime(data.get("settledAt")),
    )


def draft_to_dict(draft: TicketDraft) -> dict:
    """Snapshot persisted to the key-value store."""
    return {
        "selections": [selection_to_dict(s) for s in draft.selections],
        "stake": draft.stake,
    }


def parse_draft(data: Any, default_stake: float, min_stake: float) -> TicketDraft:
    """
    Rebuild a draft from a persisted snapshot.

    Falls back to the default stake when the stored one is missing or below
    the minimum; invalid selections are dropped.
    """
    if not isinstance(data, dict):
        return TicketDraft(stake=default_stake)

    selections = parse_list(data.get("selections") or [], parse_selection, "selection")

    stake = default_stake
    try:
        stored = float(data.get("stake"))
        if stored >= min_stake:
            stake = stored
    except (TypeError, ValueError):
        pass

    # Collapse duplicates a hand-edited snapshot might carry; last one wins
    by_match: dict[int, int] = {}
    unique: list[Selection] = []
    for selection in selections:
        if selection.match_id in by_match:
            unique[by_match[selection.match_id]] = selection
        else:
            by_match[selection.match_id] = len(unique)
            unique.append(selection)

    return TicketDraft(selections=unique, stake=stake)


# Credits

def parse_balance(data: dict) -> CreditBalance:
    return CreditBalance(
        subscription=_int(data.get("subscription")),
        purchased=_int(data.get("purchased")),
        total=int(_require(data, "total")),
        weekly_reset=parse_datetime(data.get("weeklyReset")),
    )


def balance_to_dict(balance: CreditBalance) -> dict:
    return {
        "subscription": balance.subscription,
        "purchased": balance.purchased,
        "total": balance.total,
        "weeklyReset": format_datetime(balance.weekly_reset),
    }


def parse_unlock_status(data: dict) -> ContentUnlockStatus:
    return ContentUnlockStatus(
        is_unlocked=bool(data.get("isUnlocked")),
        cost=_int(data.get("cost")),
        can_afford=bool(data.get("canAfford")),
    )


def parse_costs(data: dict) -> CreditCosts:
    defaults = CreditCosts()
    return CreditCosts(
        match_prediction=_int(data.get("matchPrediction"), defaults.match_prediction),
        tip=_int(data.get("tip"), defaults.tip),
        parlay=_int(data.get("parlay"), defaults.parlay),
        ai_chat=_int(data.get("aiChat"), defaults.ai_chat),
        value_bet=_int(data.get("valueBet"), defaults.value_bet),
        team_analysis=_int(data.get("teamAnalysis"), defaults.team_analysis),
        player_analysis=_int(data.get("playerAnalysis"), defaults.player_analysis),
    )


def parse_pack(data: dict) -> CreditPack:
    return CreditPack(
        id=str(_require(data, "id")),
        name=data.get("name") or "",
        credits=int(_require(data, "credits")),
        price=float(_require(data, "price")),
        currency=data.get("currency") or "EUR",
        bonus=_int(data.get("bonus")),
        popular=bool(data.get("popular")),
    )


def parse_transaction(data: dict) -> CreditTransaction:
    return CreditTransaction(
        id=str(_require(data, "id")),
        type=str(_require(data, "type")),
        amount=int(_require(data, "amount")),
        description=data.get("description") or "",
        created_at=parse_datetime(data.get("createdAt")),
        content_type=data.get("contentType"),
        content_id=data.get("contentId"),
    )


# AI chat

def parse_token_usage(data: dict) -> AITokenUsage:
    return AITokenUsage(
        used=_int(data.get("used")),
        limit=_int(data.get("limit")),
        remaining=_int(data.get("remaining")),
        reset_at=parse_datetime(data.get("resetAt")),
    )


def parse_proposal(data: dict) -> TicketProposal:
    stake = data.get("stake")
    potential_win = data.get("potentialWin")
    return TicketProposal(
        id=str(_require(data, "id")),
        selections=parse_list(data.get("selections") or [], parse_selection, "selection"),
        total_odds=float(data.get("totalOdds") or 1.0),
        reasoning=data.get("reasoning") or "",
        risks=[str(r) for r in data.get("risks") or []],
        status=ProposalStatus(data.get("status") or ProposalStatus.PENDING.value),
        stake=float(stake) if stake is not None else None,
        potential_win=float(potential_win) if potential_win is not None else None,
    )


def parse_chat_message(data: dict) -> ChatMessage:
    proposal = data.get("ticketProposal")
    tokens_used = data.get("tokensUsed")
    return ChatMessage(
        id=str(_require(data, "id")),
        role=str(_require(data, "role")),
        content=data.get("content") or "",
        created_at=parse_datetime(data.get("createdAt")),
        ticket_proposal=parse_proposal(proposal) if proposal else None,
        tokens_used=int(tokens_used) if tokens_used is not None else None,
    )
