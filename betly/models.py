"""
Data models for the Betly ticket and credits client.

This module defines the dataclasses and enums used throughout the client
for representing ticket selections, saved tickets, credit balances,
unlockable content references and AI chat messages.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class TicketStatus(Enum):
    """Settlement status of a saved ticket. Driven by the server only."""

    PENDING = "pending"
    WON = "won"
    LOST = "lost"
    VOID = "void"


class ProposalStatus(Enum):
    """Status of an AI-suggested ticket. Accepted and declined are terminal."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"

    @property
    def is_terminal(self) -> bool:
        return self is not ProposalStatus.PENDING


class ContentType(Enum):
    """Credit-gated content kinds."""

    MATCH_PREDICTION = "match_prediction"
    TIP = "tip"
    PARLAY = "parlay"
    AI_CHAT = "ai_chat"
    VALUE_BET = "value_bet"
    TEAM_ANALYSIS = "team_analysis"
    PLAYER_ANALYSIS = "player_analysis"


class MessageDelivery(Enum):
    """Whether a chat message has been acknowledged by the server."""

    PENDING = "pending"
    CONFIRMED = "confirmed"


@dataclass
class Selection:
    """
    One leg of a parlay.

    Attributes:
        match_id: Match identifier; a ticket holds at most one selection per match
        bet: Free-text description of the wagered outcome
        odds: Decimal odds (>= 1.0)
        match: Denormalized match snapshot (teams, league, kickoff), display only
    """
    match_id: int
    bet: str
    odds: float
    match: dict[str, Any] = field(default_factory=dict)


@dataclass
class TicketDraft:
    """The in-progress parlay. Derived values live on TicketBuilder."""
    selections: list[Selection] = field(default_factory=list)
    stake: float = 10.0


@dataclass
class Ticket:
    """
    Server-authoritative saved ticket.

    Attributes:
        id: Ticket identifier
        selections: Selections as submitted
        total_odds: Combined odds as recorded by the server
        stake: Stake
        potential_win: stake * total_odds as recorded by the server
        status: Settlement status
        created_at: Creation timestamp
        settled_at: Settlement timestamp, if settled
    """
    id: str
    selections: list[Selection]
    total_odds: float
    stake: float
    potential_win: float
    status: TicketStatus
    created_at: Optional[datetime]
    settled_at: Optional[datetime] = None


@dataclass
class CreditBalance:
    """Spendable credits. `total` is the server's figure and is authoritative."""
    subscription: int
    purchased: int
    total: int
    weekly_reset: Optional[datetime] = None


@dataclass(frozen=True)
class ContentRef:
    """A (content_type, content_id) pair identifying unlockable content."""
    content_type: ContentType
    content_id: str


@dataclass
class ContentUnlockStatus:
    """Advisory answer from the credits check endpoint. Never a reservation."""
    is_unlocked: bool
    cost: int
    can_afford: bool


@dataclass
class CreditCosts:
    """Credit cost per content type."""
    match_prediction: int = 5
    tip: int = 3
    parlay: int = 10
    ai_chat: int = 1
    value_bet: int = 5
    team_analysis: int = 8
    player_analysis: int = 5

    def cost_for(self, content_type: ContentType) -> int:
        return getattr(self, content_type.value)


@dataclass
class CreditPack:
    id: str
    name: str
    credits: int
    price: float
    currency: str
    bonus: int = 0
    popular: bool = False


@dataclass
class CreditTransaction:
    id: str
    type: str
    amount: int
    description: str
    created_at: Optional[datetime]
    content_type: Optional[str] = None
    content_id: Optional[str] = None


@dataclass
class AITokenUsage:
    used: int
    limit: int
    remaining: int
    reset_at: Optional[datetime] = None


@dataclass
class TicketProposal:
    """
    A ticket suggested by the AI chat.

    Attributes:
        id: Identifier of the chat message carrying the proposal
        selections: Suggested selections
        total_odds: Combined odds as computed by the server
        reasoning: Free-text rationale
        risks: Free-text risk notes
        status: Pending until accepted or declined
        stake: Suggested stake, if any
        potential_win: Suggested potential win, if any
    """
    id: str
    selections: list[Selection]
    total_odds: float
    reasoning: str
    risks: list[str]
    status: ProposalStatus = ProposalStatus.PENDING
    stake: Optional[float] = None
    potential_win: Optional[float] = None


@dataclass
class ChatMessage:
    """
    A message in a match's AI chat.

    User messages start out PENDING while the request is in flight and are
    replaced by a CONFIRMED copy once the server answers.
    """
    id: str
    role: str
    content: str
    created_at: Optional[datetime]
    delivery: MessageDelivery = MessageDelivery.CONFIRMED
    ticket_proposal: Optional[TicketProposal] = None
    tokens_used: Optional[int] = None
