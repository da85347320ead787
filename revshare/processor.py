"""
Revenue Share Engine - Main Orchestrator

Fans a transaction's company GCI out to the originating agent's upline.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable

from .calculators import (
    AnnualPayoutLedger,
    SponsorChainWalker,
    TierRatePolicy,
    quantize_money,
)
from .config import MAX_TIERS
from .locks import KeyedLock
from .models import RevenueShareResult, TierOutcome, Transaction, utcnow
from .storage import RevenueShareRepository

logger = logging.getLogger(__name__)


class RevenueShareEngine:
    """
    Computes and persists revenue shares for one transaction.

    Pipeline per run:
    1. Load source agent (absent: nothing owed)
    2. Walk upline, at most MAX_TIERS sponsors
    3. For each tier:
       a. Load sponsor (absent: skip tier)
       b. Raw amount = company GCI × rate for sponsor type
       c. Cap for sponsor type / cap plan
       d. Already paid this calendar year for (sponsor, source)
       e. Final = min(raw, cap - paid), floored at zero
       f. Persist when final > 0

    The caller must clear the transaction's previous shares first; process()
    only ever adds rows.

    Failures are handled per tier: an exception while computing or persisting
    one tier is logged, recorded in RevenueShareResult.failed_tiers, and the
    next tier proceeds. Shares already written are left in place.
    """

    def __init__(self, repository: RevenueShareRepository,
                 clock: Callable[[], datetime] = utcnow):
        self.repository = repository
        self.walker = SponsorChainWalker(repository.get_agent)
        self.policy = TierRatePolicy()
        self.ledger = AnnualPayoutLedger(repository.sum_revenue_share_amounts, clock)
        self._pair_locks = KeyedLock()

    def process(self, transaction: Transaction) -> RevenueShareResult:
        result = RevenueShareResult(transaction_id=transaction.id)

        source = self.repository.get_agent(transaction.agent_id)
        if source is None:
            logger.info(f"Transaction {transaction.id}: source agent {transaction.agent_id} missing, no shares")
            return result

        if transaction.company_gci <= 0:
            logger.info(f"Transaction {transaction.id}: company GCI {transaction.company_gci}, no shares")
            return result

        chain = self.walker.walk_upline(source.id, MAX_TIERS)
        if not chain:
            return result

        year_start = self.ledger.current_year_start()

        for tier, sponsor_id in enumerate(chain, start=1):
            try:
                outcome = self._process_tier(transaction, source.id, sponsor_id, tier, year_start, result)
            except Exception as e:
                logger.error(
                    f"Transaction {transaction.id}: tier {tier} (sponsor {sponsor_id}) failed: {str(e)}",
                    exc_info=True,
                )
                result.failed_tiers.append(tier)
                continue

            if outcome is None:
                result.skipped_tiers.append(tier)
            else:
                result.tiers.append(outcome)

        logger.info(
            f"Transaction {transaction.id}: {len(result.created)} revenue shares "
            f"totalling {result.total_paid} across {len(chain)} tiers"
        )
        return result

    def _process_tier(self, transaction: Transaction, source_id: int, sponsor_id: int,
                      tier: int, year_start: datetime,
                      result: RevenueShareResult) -> TierOutcome | None:
        """Compute and persist one tier. Returns None when the sponsor is gone."""
        sponsor = self.repository.get_agent(sponsor_id)
        if sponsor is None:
            logger.warning(f"Transaction {transaction.id}: sponsor {sponsor_id} at tier {tier} missing, skipped")
            return None

        raw_amount = quantize_money(transaction.company_gci * self.policy.rate_for(sponsor.agent_type))
        cap = self.policy.cap_for(sponsor.agent_type, sponsor.cap_type)
        outcome = TierOutcome(tier=tier, recipient_agent_id=sponsor.id, raw_amount=raw_amount, cap=cap)

        # Read-then-write on the ledger must not interleave for the same pair.
        with self._pair_locks.hold((sponsor.id, source_id)):
            outcome.already_paid = self.ledger.total_paid(sponsor.id, source_id, year_start)
            remaining = cap - outcome.already_paid
            outcome.final_amount = Decimal('0') if remaining <= 0 else min(raw_amount, remaining)

            if outcome.final_amount > 0:
                share = self.repository.create_revenue_share(
                    transaction_id=transaction.id,
                    source_agent_id=source_id,
                    recipient_agent_id=sponsor.id,
                    tier=tier,
                    amount=outcome.final_amount,
                )
                result.created.append(share)

        return outcome
