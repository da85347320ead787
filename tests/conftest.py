"""
Shared fixtures for revenue share tests.

Run with: python -m pytest tests/ -v
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from revshare import AgentDirectory, InMemoryStore, RevenueShareEngine, TransactionLifecycleManager
from revshare.models import AgentInput, AgentType, CapType, TransactionInput


class FixedClock:
    """Callable clock the tests can move."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(clock):
    return InMemoryStore(clock=clock)


@pytest.fixture
def directory(store):
    return AgentDirectory(store)


@pytest.fixture
def engine(store, clock):
    return RevenueShareEngine(store, clock=clock)


@pytest.fixture
def lifecycle(store, engine, clock):
    return TransactionLifecycleManager(store, engine=engine, clock=clock)


@pytest.fixture
def make_agent(directory):
    """Factory: make_agent('principal', cap='team', sponsor=agent)."""

    def _make(agent_type="principal", cap=None, sponsor=None, name=None):
        agent_type = AgentType(agent_type)
        if agent_type == AgentType.PRINCIPAL and cap is None:
            cap = "standard"
        return directory.create_agent(AgentInput(
            name=name or f"{agent_type.value} agent",
            agent_type=agent_type,
            cap_type=CapType(cap) if cap else None,
            sponsor_id=sponsor.id if sponsor else None,
        ))

    return _make


@pytest.fixture
def make_transaction_input():
    """Factory for a valid create payload with an explicit company GCI."""

    def _make(agent, company_gci=10000, sale_amount=500000, commission_percentage=3):
        return TransactionInput(
            agent_id=agent.id,
            property_address="123 Main St",
            sale_amount=Decimal(str(sale_amount)),
            commission_percentage=Decimal(str(commission_percentage)),
            transaction_date=datetime(2026, 6, 1, tzinfo=timezone.utc),
            company_gci=Decimal(str(company_gci)) if company_gci is not None else None,
        )

    return _make


@pytest.fixture
def transaction_for(store, make_transaction_input):
    """Persist a transaction directly, without running the engine."""

    def _make(agent, company_gci):
        data = make_transaction_input(agent, company_gci)
        return store.create_transaction(data, data.company_gci)

    return _make
