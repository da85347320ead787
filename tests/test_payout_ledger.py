"""
Unit Tests for the Annual Payout Ledger

Tests verify calendar-year bucketing and per-pair accounting.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from revshare.calculators import AnnualPayoutLedger, start_of_year


class TestStartOfYear:

    def test_january_first_midnight(self):
        moment = datetime(2026, 8, 20, 17, 45, 3, 123, tzinfo=timezone.utc)
        assert start_of_year(moment) == datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_already_at_start(self):
        moment = datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert start_of_year(moment) == moment


class TestTotalPaid:
    """Test ledger totals read from persisted revenue shares."""

    @pytest.fixture
    def ledger(self, store, clock):
        return AnnualPayoutLedger(store.sum_revenue_share_amounts, clock)

    def _share(self, store, recipient, source, amount, transaction_id=1):
        return store.create_revenue_share(
            transaction_id=transaction_id,
            source_agent_id=source,
            recipient_agent_id=recipient,
            tier=1,
            amount=Decimal(str(amount)),
        )

    def test_no_history_is_zero(self, ledger):
        assert ledger.total_paid(1, 2) == Decimal("0")

    def test_sums_matching_pair(self, ledger, store):
        self._share(store, recipient=1, source=2, amount=500)
        self._share(store, recipient=1, source=2, amount=250, transaction_id=2)

        assert ledger.total_paid(1, 2) == Decimal("750")

    def test_other_pairs_not_counted(self, ledger, store):
        """The cap is per relationship, not per recipient."""
        self._share(store, recipient=1, source=2, amount=500)
        self._share(store, recipient=1, source=3, amount=900)
        self._share(store, recipient=4, source=2, amount=900)

        assert ledger.total_paid(1, 2) == Decimal("500")

    def test_previous_year_not_counted(self, ledger, store, clock):
        clock.now = datetime(2025, 12, 31, 23, 59, tzinfo=timezone.utc)
        self._share(store, recipient=1, source=2, amount=2000)

        clock.now = datetime(2026, 1, 1, 0, 0, tzinfo=timezone.utc)
        self._share(store, recipient=1, source=2, amount=100)

        assert ledger.total_paid(1, 2) == Decimal("100")

    def test_explicit_year_start(self, ledger, store, clock):
        clock.now = datetime(2025, 3, 1, tzinfo=timezone.utc)
        self._share(store, recipient=1, source=2, amount=300)
        clock.now = datetime(2026, 3, 1, tzinfo=timezone.utc)

        since_2025 = datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert ledger.total_paid(1, 2, since_2025) == Decimal("300")
        assert ledger.total_paid(1, 2) == Decimal("0")

    def test_remaining_clamped_at_zero(self, ledger, store):
        self._share(store, recipient=1, source=2, amount=1500)

        assert ledger.remaining(Decimal("2000"), 1, 2) == Decimal("500")
        assert ledger.remaining(Decimal("1000"), 1, 2) == Decimal("0")

    def test_deleted_shares_free_allowance(self, ledger, store):
        """No separate counter: deleting rows lowers the total."""
        self._share(store, recipient=1, source=2, amount=1500, transaction_id=7)
        store.delete_revenue_shares(7)

        assert ledger.total_paid(1, 2) == Decimal("0")
