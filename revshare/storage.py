"""
Storage for agents, transactions and revenue shares.

RevenueShareRepository names the operations the engine and lifecycle manager
consume. InMemoryStore implements them behind a single re-entrant lock; any
other backend only has to provide the same methods.
"""

import threading
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional, Protocol

from .models import (
    Agent, AgentInput, RevenueShare, Transaction, TransactionInput, utcnow
)


class RevenueShareRepository(Protocol):
    """Read/write operations required by the revenue share core."""

    def get_agent(self, agent_id: int) -> Optional[Agent]: ...

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]: ...

    def create_transaction(self, data: TransactionInput, company_gci: Decimal) -> Transaction: ...

    def save_transaction(self, transaction: Transaction) -> Transaction: ...

    def delete_transaction(self, transaction_id: int) -> bool: ...

    def list_revenue_shares(self, transaction_id: int) -> list[RevenueShare]: ...

    def delete_revenue_shares(self, transaction_id: int) -> int: ...

    def create_revenue_share(
        self,
        transaction_id: int,
        source_agent_id: int,
        recipient_agent_id: int,
        tier: int,
        amount: Decimal,
    ) -> RevenueShare: ...

    def sum_revenue_share_amounts(
        self, recipient_agent_id: int, source_agent_id: int, since: datetime
    ) -> Decimal: ...


class AgentRepository(Protocol):
    """Operations the agent directory needs on top of get_agent."""

    def create_agent(self, data: AgentInput) -> Agent: ...

    def get_agent(self, agent_id: int) -> Optional[Agent]: ...

    def list_agents(self) -> list[Agent]: ...

    def list_downline(self, sponsor_id: int) -> list[Agent]: ...

    def save_agent(self, agent: Agent) -> Agent: ...

    def delete_agent(self, agent_id: int) -> bool: ...

    def list_agent_transactions(self, agent_id: int) -> list[Transaction]: ...

    def list_agent_revenue_shares(self, agent_id: int) -> list[RevenueShare]: ...

    def list_revenue_shares(self, transaction_id: Optional[int] = None) -> list[RevenueShare]: ...


class InMemoryStore:
    """Dict-backed store. Records handed out are copies; mutate via save_*."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock
        self._lock = threading.RLock()
        self._agents: dict[int, Agent] = {}
        self._transactions: dict[int, Transaction] = {}
        self._revenue_shares: dict[int, RevenueShare] = {}
        self._next_agent_id = 1
        self._next_transaction_id = 1
        self._next_revenue_share_id = 1

    # -------------------------------------------------------------------------
    # Agents
    # -------------------------------------------------------------------------

    def create_agent(self, data: AgentInput) -> Agent:
        with self._lock:
            agent_id = self._next_agent_id
            self._next_agent_id += 1
            agent = Agent(
                id=agent_id,
                name=data.name,
                agent_type=data.agent_type,
                cap_type=data.cap_type,
                sponsor_id=data.sponsor_id,
                agent_code=data.agent_code or f"{agent_id:06d}",
                anniversary_date=data.anniversary_date,
                created_at=self.clock(),
            )
            self._agents[agent_id] = agent
            return replace(agent)

    def get_agent(self, agent_id: int) -> Optional[Agent]:
        with self._lock:
            agent = self._agents.get(agent_id)
            return replace(agent) if agent else None

    def list_agents(self) -> list[Agent]:
        with self._lock:
            return [replace(a) for a in self._agents.values()]

    def list_downline(self, sponsor_id: int) -> list[Agent]:
        with self._lock:
            return [replace(a) for a in self._agents.values() if a.sponsor_id == sponsor_id]

    def save_agent(self, agent: Agent) -> Agent:
        with self._lock:
            self._agents[agent.id] = replace(agent)
            return replace(agent)

    def delete_agent(self, agent_id: int) -> bool:
        with self._lock:
            return self._agents.pop(agent_id, None) is not None

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def create_transaction(self, data: TransactionInput, company_gci: Decimal) -> Transaction:
        with self._lock:
            transaction_id = self._next_transaction_id
            self._next_transaction_id += 1
            transaction = Transaction(
                id=transaction_id,
                agent_id=data.agent_id,
                property_address=data.property_address,
                sale_amount=data.sale_amount,
                commission_percentage=data.commission_percentage,
                company_gci=company_gci,
                transaction_date=data.transaction_date,
                transaction_type=data.transaction_type,
                transaction_status=data.transaction_status,
                client_name=data.client_name,
                created_at=self.clock(),
            )
            self._transactions[transaction_id] = transaction
            return replace(transaction)

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        with self._lock:
            transaction = self._transactions.get(transaction_id)
            return replace(transaction) if transaction else None

    def list_transactions(self) -> list[Transaction]:
        with self._lock:
            return [replace(t) for t in self._transactions.values()]

    def list_agent_transactions(self, agent_id: int) -> list[Transaction]:
        with self._lock:
            return [replace(t) for t in self._transactions.values() if t.agent_id == agent_id]

    def save_transaction(self, transaction: Transaction) -> Transaction:
        with self._lock:
            self._transactions[transaction.id] = replace(transaction)
            return replace(transaction)

    def delete_transaction(self, transaction_id: int) -> bool:
        with self._lock:
            return self._transactions.pop(transaction_id, None) is not None

    # -------------------------------------------------------------------------
    # Revenue shares
    # -------------------------------------------------------------------------

    def create_revenue_share(
        self,
        transaction_id: int,
        source_agent_id: int,
        recipient_agent_id: int,
        tier: int,
        amount: Decimal,
    ) -> RevenueShare:
        with self._lock:
            share_id = self._next_revenue_share_id
            self._next_revenue_share_id += 1
            share = RevenueShare(
                id=share_id,
                transaction_id=transaction_id,
                source_agent_id=source_agent_id,
                recipient_agent_id=recipient_agent_id,
                tier=tier,
                amount=amount,
                created_at=self.clock(),
            )
            self._revenue_shares[share_id] = share
            return replace(share)

    def list_revenue_shares(self, transaction_id: Optional[int] = None) -> list[RevenueShare]:
        with self._lock:
            return [
                replace(s) for s in self._revenue_shares.values()
                if transaction_id is None or s.transaction_id == transaction_id
            ]

    def list_agent_revenue_shares(self, agent_id: int) -> list[RevenueShare]:
        """Shares the agent received or generated."""
        with self._lock:
            return [
                replace(s) for s in self._revenue_shares.values()
                if agent_id in (s.recipient_agent_id, s.source_agent_id)
            ]

    def delete_revenue_shares(self, transaction_id: int) -> int:
        with self._lock:
            stale = [sid for sid, s in self._revenue_shares.items() if s.transaction_id == transaction_id]
            for share_id in stale:
                del self._revenue_shares[share_id]
            return len(stale)

    def sum_revenue_share_amounts(
        self, recipient_agent_id: int, source_agent_id: int, since: datetime
    ) -> Decimal:
        with self._lock:
            return sum(
                (
                    s.amount for s in self._revenue_shares.values()
                    if s.recipient_agent_id == recipient_agent_id
                    and s.source_agent_id == source_agent_id
                    and s.created_at >= since
                ),
                Decimal("0"),
            )
