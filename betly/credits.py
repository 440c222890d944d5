"""
Credit ledger client.

Tracks the user's spendable balance as last reported by the server and
mediates spends. The balance is never decremented locally: after a spend
the cached balance is replaced with the server's post-spend figure.
"""

import logging
from typing import Optional

from betly.errors import ApiError
from betly.models import (
    ContentType,
    ContentUnlockStatus,
    CreditBalance,
    CreditCosts,
    CreditPack,
    CreditTransaction,
)
from betly.normalize import balance_to_dict, parse_balance
from betly.services import CreditsService
from betly.storage import KeyValueStore, StorageKeys

# Configure module logger
logger = logging.getLogger(__name__)

# Used until the cost table has been loaded
DEFAULT_COSTS = CreditCosts()
UNKNOWN_CONTENT_COST = 5


class CreditLedger:
    """
    Cached credit balance plus spend and lookup operations.

    Spends are not deduplicated: two concurrent spends for the same content
    are both sent and the server decides. `is_spending` lets a UI disable
    the trigger while a spend is in flight.
    """

    def __init__(self, credits_service: CreditsService, store: Optional[KeyValueStore] = None):
        """
        Initialize the ledger with no balance loaded.

        Args:
            credits_service: Remote credits endpoints
            store: Key-value store for the display cache of the last balance
        """
        self.credits_service = credits_service
        self.store = store

        self.balance: Optional[CreditBalance] = None
        self.packs: list[CreditPack] = []
        self.transactions: list[CreditTransaction] = []
        self.costs: Optional[CreditCosts] = None
        self.is_loading = False
        self.is_spending = False
        self.error: Optional[str] = None

    def _set_balance(self, balance: CreditBalance) -> None:
        self.balance = balance
        if self.store is not None and not self.store.set_json(StorageKeys.CREDIT_BALANCE, balance_to_dict(balance)):
            logger.warning("Failed to cache credit balance")

    def load_cached_balance(self) -> Optional[CreditBalance]:
        """Restore the last balance seen by a previous session, for display only."""
        if self.store is None or self.balance is not None:
            return self.balance

        data = self.store.get_json(StorageKeys.CREDIT_BALANCE)
        if not isinstance(data, dict):
            return None

        try:
            self.balance = parse_balance(data)
        except (ValueError, TypeError) as e:
            logger.warning(f"Ignoring cached balance: {e}")
        return self.balance

    def load_balance(self) -> CreditBalance:
        """
        Fetch the balance and replace the cached one wholesale.

        Raises:
            ApiError: If the request fails; the cached balance is kept
        """
        self.is_loading = True
        self.error = None
        try:
            balance = self.credits_service.get_balance()
        except ApiError as e:
            self.error = e.message or "Failed to load balance"
            raise
        finally:
            self.is_loading = False

        self._set_balance(balance)
        logger.debug(f"Balance loaded: total={balance.total}")
        return balance

    def refresh_balance(self) -> bool:
        """Background reload; failures are logged and the stale balance stays visible."""
        try:
            self._set_balance(self.credits_service.get_balance())
            return True
        except ApiError as e:
            logger.warning(f"Balance refresh failed: {e.code.value}")
            return False

    def can_afford(self, cost: int) -> bool:
        """Local affordability check. False when no balance is loaded."""
        if self.balance is None:
            return False
        return self.balance.total >= cost

    def total_credits(self) -> int:
        return self.balance.total if self.balance else 0

    def check_unlock(self, content_type: ContentType, content_id: str) -> ContentUnlockStatus:
        """Advisory cost/affordability lookup. Not a reservation."""
        return self.credits_service.check_unlock(content_type, content_id)

    def spend(self, content_type: ContentType, content_id: str) -> CreditBalance:
        """
        Spend credits on a piece of content.

        Args:
            content_type: Kind of content
            content_id: Content identifier

        Returns:
            The server's post-spend balance, now cached

        Raises:
            InsufficientCreditsError: With the server's required/available figures
            ApiError: For any other failure
        """
        self.is_spending = True
        self.error = None
        try:
            balance = self.credits_service.spend(content_type, content_id)
        except ApiError as e:
            self.error = e.message or "Failed to spend credits"
            logger.warning(f"Spend on {content_type.value}/{content_id} failed: {e.code.value}")
            raise
        finally:
            self.is_spending = False

        self._set_balance(balance)
        logger.info(f"Spent credits on {content_type.value}/{content_id}, balance now {balance.total}")
        return balance

    def load_packs(self) -> list[CreditPack]:
        try:
            self.packs = self.credits_service.get_packs()
        except ApiError as e:
            logger.error(f"Failed to load credit packs: {e.message}")
        return self.packs

    def load_history(self) -> list[CreditTransaction]:
        try:
            self.transactions = self.credits_service.get_history()
        except ApiError as e:
            logger.error(f"Failed to load transaction history: {e.message}")
        return self.transactions

    def load_costs(self) -> Optional[CreditCosts]:
        try:
            self.costs = self.credits_service.get_costs()
        except ApiError as e:
            logger.error(f"Failed to load costs: {e.message}")
        return self.costs

    def cost_for(self, content_type: ContentType | str) -> int:
        """Cost of a content type, from the loaded table or the defaults."""
        try:
            content_type = ContentType(content_type)
        except ValueError:
            return UNKNOWN_CONTENT_COST
        return (self.costs or DEFAULT_COSTS).cost_for(content_type)

    def refresh_all(self) -> None:
        """Background reload of balance, packs and costs."""
        self.refresh_balance()
        self.load_packs()
        self.load_costs()

    def clear_error(self) -> None:
        self.error = None
