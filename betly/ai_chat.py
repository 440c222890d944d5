"""
AI match chat and ticket proposals.

AIChatSession keeps each match's message list. A user message is added as
PENDING while the request is in flight and is either replaced by its
CONFIRMED copy or removed, so a failed send never leaves a stray entry.

ProposalAdapter moves an accepted AI-suggested ticket into the ticket
builder through add_selection, so the one-selection-per-match rule applies
to proposal selections exactly as it does to manual ones.
"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from betly.errors import ApiError
from betly.models import (
    AITokenUsage,
    ChatMessage,
    MessageDelivery,
    ProposalStatus,
    TicketProposal,
)
from betly.services import AIChatService
from betly.ticket_builder import TicketBuilder

# Configure module logger
logger = logging.getLogger(__name__)


class ProposalAdapter:
    """Accept or decline AI-suggested tickets."""

    def __init__(self, builder: TicketBuilder, chat_service: AIChatService):
        self.builder = builder
        self.chat_service = chat_service

    def accept(self, proposal: TicketProposal) -> bool:
        """
        Copy a proposal's selections into the draft and mark it accepted.

        Selections are added before the status update, so they stay in the
        draft if the status request fails.

        Args:
            proposal: Proposal to accept

        Returns:
            True if accepted now, False if it was already terminal (nothing sent)

        Raises:
            ApiError: If the status update fails; the proposal stays pending
        """
        if proposal.status.is_terminal:
            logger.info(f"Proposal {proposal.id} already {proposal.status.value}, not accepting")
            return False

        for selection in proposal.selections:
            self.builder.add_selection(selection)

        self.chat_service.update_ticket_status(proposal.id, ProposalStatus.ACCEPTED)
        proposal.status = ProposalStatus.ACCEPTED
        logger.info(f"Accepted proposal {proposal.id} with {len(proposal.selections)} selections")
        return True

    def decline(self, proposal: TicketProposal) -> bool:
        """
        Mark a proposal declined. The draft is not touched.

        Returns:
            True if declined now, False if it was already terminal (nothing sent)
        """
        if proposal.status.is_terminal:
            logger.info(f"Proposal {proposal.id} already {proposal.status.value}, not declining")
            return False

        self.chat_service.update_ticket_status(proposal.id, ProposalStatus.DECLINED)
        proposal.status = ProposalStatus.DECLINED
        logger.info(f"Declined proposal {proposal.id}")
        return True


class AIChatSession:
    """Per-match AI chat messages and token usage."""

    def __init__(self, chat_service: AIChatService):
        self.chat_service = chat_service
        self.messages: dict[int, list[ChatMessage]] = {}
        self.token_usage: Optional[AITokenUsage] = None
        self.current_match_id: Optional[int] = None
        self.is_loading = False
        self.is_sending = False
        self.error: Optional[str] = None

    def load_usage(self) -> Optional[AITokenUsage]:
        try:
            self.token_usage = self.chat_service.get_usage()
        except ApiError as e:
            logger.error(f"Failed to load AI chat usage: {e.message}")
        return self.token_usage

    def load_history(self, match_id: int) -> list[ChatMessage]:
        """
        Replace a match's messages with the server history.

        Raises:
            ApiError: If the request fails; cached messages are kept
        """
        self.is_loading = True
        self.error = None
        self.current_match_id = match_id
        try:
            self.messages[match_id] = self.chat_service.get_history(match_id)
        except ApiError as e:
            self.error = e.message or "Failed to load chat history"
            raise
        finally:
            self.is_loading = False

        return self.messages[match_id]

    def send_message(self, match_id: int, text: str) -> ChatMessage:
        """
        Send a user message and append the assistant's reply.

        Returns:
            The assistant's reply

        Raises:
            ApiError: If sending fails; the pending message has been removed
        """
        pending = ChatMessage(
            id=f"pending-{uuid.uuid4()}",
            role="user",
            content=text,
            created_at=datetime.now(timezone.utc),
            delivery=MessageDelivery.PENDING,
        )
        thread = self.messages.setdefault(match_id, [])
        thread.append(pending)

        self.is_sending = True
        self.error = None
        try:
            reply = self.chat_service.send_message(match_id, text)
        except ApiError as e:
            self.messages[match_id] = [m for m in self.messages[match_id] if m.id != pending.id]
            self.error = e.message or "Failed to send message"
            logger.warning(f"Chat message for match {match_id} failed: {e.code.value}")
            raise
        finally:
            self.is_sending = False

        confirmed = replace(pending, id=f"user-{reply.id}", delivery=MessageDelivery.CONFIRMED)
        self.messages[match_id] = [
            confirmed if m.id == pending.id else m for m in self.messages[match_id]
        ] + [reply]

        if reply.tokens_used and self.token_usage:
            self.token_usage = replace(
                self.token_usage,
                used=self.token_usage.used + reply.tokens_used,
                remaining=self.token_usage.remaining - reply.tokens_used,
            )

        return reply

    def delete_conversation(self, match_id: int) -> None:
        """
        Raises:
            ApiError: If the request fails; local messages are kept
        """
        self.chat_service.delete_conversation(match_id)
        self.messages.pop(match_id, None)

    def convert_credits(self) -> AITokenUsage:
        """
        Convert credits into AI chat tokens.

        Raises:
            TierRequiredError: If the user lacks the expert tier
            InsufficientCreditsError: If the balance is too low
        """
        self.is_loading = True
        self.error = None
        try:
            self.token_usage = self.chat_service.convert_credits()
        except ApiError as e:
            self.error = e.message or "Failed to convert credits"
            raise
        finally:
            self.is_loading = False
        return self.token_usage

    def find_proposal(self, message_id: str) -> Optional[TicketProposal]:
        """Look up a proposal by the id of the message carrying it."""
        for thread in self.messages.values():
            for message in thread:
                if message.id == message_id and message.ticket_proposal:
                    return message.ticket_proposal
        return None

    def has_tokens(self) -> bool:
        return bool(self.token_usage) and self.token_usage.remaining > 0

    def remaining_tokens(self) -> int:
        return self.token_usage.remaining if self.token_usage else 0

    def clear_error(self) -> None:
        self.error = None
