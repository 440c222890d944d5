"""Builders for test data."""

import json
from datetime import datetime, timezone
from typing import Any, Optional

import requests

from betly.models import (
    CreditBalance,
    ProposalStatus,
    Selection,
    Ticket,
    TicketProposal,
    TicketStatus,
)


def make_selection(match_id: int = 1, odds: float = 1.80, bet: str = "Home win") -> Selection:
    return Selection(
        match_id=match_id,
        bet=bet,
        odds=odds,
        match={"id": match_id, "homeTeam": {"name": "Lyon"}, "awayTeam": {"name": "Nantes"}},
    )


def make_ticket(ticket_id: str = "t-1", selections: Optional[list[Selection]] = None, stake: float = 10.0) -> Ticket:
    selections = selections or [make_selection()]
    total_odds = 1.0
    for s in selections:
        total_odds *= s.odds
    return Ticket(
        id=ticket_id,
        selections=selections,
        total_odds=total_odds,
        stake=stake,
        potential_win=stake * total_odds,
        status=TicketStatus.PENDING,
        created_at=datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc),
    )


def make_balance(subscription: int = 3, purchased: int = 1, total: Optional[int] = None) -> CreditBalance:
    return CreditBalance(
        subscription=subscription,
        purchased=purchased,
        total=subscription + purchased if total is None else total,
    )


def make_proposal(
    proposal_id: str = "msg-1",
    selections: Optional[list[Selection]] = None,
    status: ProposalStatus = ProposalStatus.PENDING,
) -> TicketProposal:
    selections = selections or [make_selection(1, 1.5), make_selection(2, 2.0)]
    return TicketProposal(
        id=proposal_id,
        selections=selections,
        total_odds=3.0,
        reasoning="Both sides in form",
        risks=["Rotation before a cup match"],
        status=status,
    )


def make_response(status: int = 200, body: Any = None, raw: Optional[bytes] = None) -> requests.Response:
    """A requests.Response carrying a JSON body (or raw bytes)."""
    response = requests.Response()
    response.status_code = status
    if raw is not None:
        response._content = raw
    elif body is not None:
        response._content = json.dumps(body).encode("utf-8")
    else:
        response._content = b""
    response.headers["Content-Type"] = "application/json"
    return response
