"""
Annual Payout Ledger

Answers how much a sponsor has already received from one downline agent in
the current calendar year. Always derived from persisted revenue shares.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable

from ..models import utcnow


def start_of_year(moment: datetime) -> datetime:
    """January 1, 00:00 of moment's year, keeping its timezone."""
    return moment.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)


class AnnualPayoutLedger:
    """Calendar-year totals per (recipient, source) pair."""

    def __init__(
        self,
        sum_amounts: Callable[[int, int, datetime], Decimal],
        clock: Callable[[], datetime] = utcnow,
    ):
        self.sum_amounts = sum_amounts
        self.clock = clock

    def current_year_start(self) -> datetime:
        return start_of_year(self.clock())

    def total_paid(self, recipient_agent_id: int, source_agent_id: int,
                   year_start: datetime | None = None) -> Decimal:
        """Sum of shares for the pair created on or after year_start."""
        since = year_start if year_start is not None else self.current_year_start()
        return self.sum_amounts(recipient_agent_id, source_agent_id, since)

    def remaining(self, cap: Decimal, recipient_agent_id: int, source_agent_id: int,
                  year_start: datetime | None = None) -> Decimal:
        """Allowance left under cap, never negative."""
        paid = self.total_paid(recipient_agent_id, source_agent_id, year_start)
        return max(Decimal('0'), cap - paid)
