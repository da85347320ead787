"""
Domain Models for the Revenue Share Engine

These dataclasses provide type-safe representations of all business entities.
All monetary values use Decimal for precision.
"""

from dataclasses import dataclass, field, fields
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum


class AgentType(str, Enum):
    PRINCIPAL = "principal"
    SUPPORT = "support"


class CapType(str, Enum):
    STANDARD = "standard"
    TEAM = "team"


TRANSACTION_TYPES = ("buyer", "seller")
TRANSACTION_STATUSES = ("pending", "closed", "cancelled")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_decimal(value) -> Decimal:
    """Convert a raw JSON number or string to Decimal."""
    return Decimal(str(value))


def parse_datetime(value) -> datetime:
    """Parse an ISO date/datetime string (or pass through datetime/date)."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# =============================================================================
# ENTITIES
# =============================================================================


@dataclass
class Agent:
    """A participant in the recruiting hierarchy."""

    id: int
    name: str
    agent_type: AgentType
    cap_type: CapType | None = None  # only meaningful for principals
    sponsor_id: int | None = None
    agent_code: str | None = None
    anniversary_date: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_root(self) -> bool:
        return self.sponsor_id is None


@dataclass
class Transaction:
    """A closed or pending sale originated by an agent."""

    id: int
    agent_id: int
    property_address: str
    sale_amount: Decimal
    commission_percentage: Decimal
    company_gci: Decimal
    transaction_date: datetime
    transaction_type: str = "buyer"
    transaction_status: str = "pending"
    client_name: str | None = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def total_commission(self) -> Decimal:
        return self.sale_amount * self.commission_percentage / Decimal("100")


@dataclass
class RevenueShare:
    """A payout from a transaction's company GCI to one upline sponsor."""

    id: int
    transaction_id: int
    source_agent_id: int
    recipient_agent_id: int
    tier: int
    amount: Decimal
    created_at: datetime = field(default_factory=utcnow)


# =============================================================================
# INPUT MODELS
# =============================================================================


@dataclass
class AgentInput:
    """Payload for creating an agent."""

    name: str
    agent_type: AgentType
    cap_type: CapType | None = None
    sponsor_id: int | None = None
    agent_code: str | None = None
    anniversary_date: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "AgentInput":
        cap = data.get("cap_type")
        anniversary = data.get("anniversary_date")
        return cls(
            name=data["name"],
            agent_type=AgentType(data["agent_type"]),
            cap_type=CapType(cap) if cap else None,
            sponsor_id=data.get("sponsor_id"),
            agent_code=data.get("agent_code"),
            anniversary_date=parse_datetime(anniversary) if anniversary else None,
        )


@dataclass
class AgentUpdate:
    """Mutable agent fields. None means 'leave unchanged'. An explicit null for
    sponsor_id or cap_type sets clear_sponsor or clear_cap: the agent becomes a
    root, or a principal goes back to the default (standard) cap plan."""

    name: str | None = None
    agent_type: AgentType | None = None
    cap_type: CapType | None = None
    sponsor_id: int | None = None
    clear_sponsor: bool = False
    clear_cap: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "AgentUpdate":
        allowed = {"name", "agent_type", "cap_type", "sponsor_id"}
        unknown = set(data) - allowed
        if unknown:
            raise ValueError(f"Fields not updatable on agent: {sorted(unknown)}")
        cap = data.get("cap_type")
        return cls(
            name=data.get("name"),
            agent_type=AgentType(data["agent_type"]) if data.get("agent_type") else None,
            cap_type=CapType(cap) if cap else None,
            sponsor_id=data.get("sponsor_id"),
            clear_sponsor="sponsor_id" in data and data["sponsor_id"] is None,
            clear_cap="cap_type" in data and data["cap_type"] is None,
        )


@dataclass
class TransactionInput:
    """Payload for creating a transaction."""

    agent_id: int
    property_address: str
    sale_amount: Decimal
    commission_percentage: Decimal
    transaction_date: datetime
    company_gci: Decimal | None = None  # derived when omitted
    transaction_type: str = "buyer"
    transaction_status: str = "pending"
    client_name: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "TransactionInput":
        gci = data.get("company_gci")
        return cls(
            agent_id=int(data["agent_id"]),
            property_address=data["property_address"],
            sale_amount=to_decimal(data["sale_amount"]),
            commission_percentage=to_decimal(data["commission_percentage"]),
            transaction_date=parse_datetime(data["transaction_date"]),
            company_gci=to_decimal(gci) if gci is not None else None,
            transaction_type=data.get("transaction_type", "buyer"),
            transaction_status=data.get("transaction_status", "pending"),
            client_name=data.get("client_name"),
        )


@dataclass
class TransactionUpdate:
    """
    Exactly the fields of a transaction that may change after creation.

    None means 'leave unchanged'. agent_id is deliberately absent: moving a
    transaction to another agent is a delete and re-create.
    """

    property_address: str | None = None
    sale_amount: Decimal | None = None
    commission_percentage: Decimal | None = None
    company_gci: Decimal | None = None
    transaction_date: datetime | None = None
    transaction_type: str | None = None
    transaction_status: str | None = None
    client_name: str | None = None

    @classmethod
    def field_names(cls) -> set[str]:
        return {f.name for f in fields(cls)}

    @property
    def changes_commission_basis(self) -> bool:
        return self.sale_amount is not None or self.commission_percentage is not None

    @classmethod
    def from_dict(cls, data: dict) -> "TransactionUpdate":
        unknown = set(data) - cls.field_names()
        if unknown:
            raise ValueError(f"Fields not updatable on transaction: {sorted(unknown)}")

        def money(key):
            return to_decimal(data[key]) if data.get(key) is not None else None

        tx_date = data.get("transaction_date")
        return cls(
            property_address=data.get("property_address"),
            sale_amount=money("sale_amount"),
            commission_percentage=money("commission_percentage"),
            company_gci=money("company_gci"),
            transaction_date=parse_datetime(tx_date) if tx_date else None,
            transaction_type=data.get("transaction_type"),
            transaction_status=data.get("transaction_status"),
            client_name=data.get("client_name"),
        )


# =============================================================================
# RESULT MODELS
# =============================================================================


@dataclass
class TierOutcome:
    """What happened at one level of the upline chain."""

    tier: int
    recipient_agent_id: int
    raw_amount: Decimal = Decimal("0")
    cap: Decimal = Decimal("0")
    already_paid: Decimal = Decimal("0")
    final_amount: Decimal = Decimal("0")


@dataclass
class RevenueShareResult:
    """Outcome of one engine run for a transaction."""

    transaction_id: int
    created: list[RevenueShare] = field(default_factory=list)
    tiers: list[TierOutcome] = field(default_factory=list)
    skipped_tiers: list[int] = field(default_factory=list)  # sponsor record missing
    failed_tiers: list[int] = field(default_factory=list)  # storage error
    error: str | None = None  # run aborted before reaching the tiers

    @property
    def complete(self) -> bool:
        return not self.failed_tiers and self.error is None

    @property
    def total_paid(self) -> Decimal:
        return sum((share.amount for share in self.created), Decimal("0"))


@dataclass
class DownlineNode:
    """An agent with its sponsor, lifetime revenue share earnings and downline."""

    agent: Agent
    sponsor: Agent | None = None
    total_earnings: Decimal = Decimal("0")
    downline: list["DownlineNode"] = field(default_factory=list)
