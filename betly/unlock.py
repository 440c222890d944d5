"""
Credit-gated content unlocks.

The gate offers an advisory check (cost, affordability, already unlocked)
for display, and an unlock that calls the content-specific endpoint so the
spend and the unlock happen in one server-side step. Content kinds without
a dedicated endpoint are unlocked through the generic credits spend.
"""

import logging
from typing import Any, Optional

from betly.credits import CreditLedger
from betly.errors import ApiError, ErrorCode, InsufficientCreditsError
from betly.models import ContentRef, ContentType, ContentUnlockStatus
from betly.services import PredictionsService, TipsService

# Configure module logger
logger = logging.getLogger(__name__)


class UnlockGate:
    """
    Unlock protocol shared by predictions, tips, parlays, AI chat and value bets.

    Failures are raised to the caller as typed ApiErrors and never retried
    here; the UI decides whether to offer retry, top-up or upgrade.
    """

    def __init__(
        self,
        ledger: CreditLedger,
        predictions_service: PredictionsService,
        tips_service: TipsService,
    ):
        self.ledger = ledger
        self.predictions_service = predictions_service
        self.tips_service = tips_service

    def check(self, ref: ContentRef) -> ContentUnlockStatus:
        """Advisory status for display. Holds nothing on the server."""
        return self.ledger.check_unlock(ref.content_type, ref.content_id)

    def unlock(self, ref: ContentRef, cost: Optional[int] = None) -> Any:
        """
        Unlock a piece of content.

        Args:
            ref: Content to unlock
            cost: Known cost. When given and a balance is loaded, an
                unaffordable unlock fails locally without a request.

        Returns:
            The unlocked content payload for predictions and tips; the
            post-spend CreditBalance for other content kinds

        Raises:
            InsufficientCreditsError: Locally or from the server (402)
            TierRequiredError: Content needs a higher subscription tier
            ApiError: VALIDATION for a non-numeric prediction id, or any
                other failure
        """
        match_id = None
        if ref.content_type is ContentType.MATCH_PREDICTION:
            try:
                match_id = int(ref.content_id)
            except (TypeError, ValueError):
                raise ApiError(ErrorCode.VALIDATION, f"Invalid match id: {ref.content_id!r}")

        if cost is not None and self.ledger.balance is not None and not self.ledger.can_afford(cost):
            available = self.ledger.total_credits()
            logger.info(
                f"Unlock of {ref.content_type.value}/{ref.content_id} blocked locally: "
                f"cost {cost}, available {available}"
            )
            raise InsufficientCreditsError(required=cost, available=available)

        if match_id is not None:
            payload = self.predictions_service.unlock_prediction(match_id)
        elif ref.content_type is ContentType.TIP:
            payload = self.tips_service.unlock_tip(ref.content_id)
        else:
            return self.ledger.spend(ref.content_type, ref.content_id)

        logger.info(f"Unlocked {ref.content_type.value}/{ref.content_id}")
        # The unlock response carries content, not the balance
        self.ledger.refresh_balance()
        return payload
