"""
Output Builder

Converts domain records into JSON-ready dicts for the API.
"""

from datetime import datetime
from decimal import Decimal

from .models import Agent, DownlineNode, RevenueShare, RevenueShareResult, TierOutcome, Transaction


def to_money(value: Decimal) -> float:
    """Convert Decimal to float with 2 decimal places."""
    return round(float(value), 2)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class OutputBuilder:
    """Builds API response bodies."""

    def agent(self, agent: Agent) -> dict:
        return {
            "id": agent.id,
            "name": agent.name,
            "agent_code": agent.agent_code,
            "agent_type": agent.agent_type.value,
            "cap_type": agent.cap_type.value if agent.cap_type else None,
            "sponsor_id": agent.sponsor_id,
            "anniversary_date": _iso(agent.anniversary_date),
            "created_at": _iso(agent.created_at),
        }

    def downline(self, root: DownlineNode) -> dict:
        """Nested agent dicts, each with total_earnings and its own downline list."""
        body = self._downline_entry(root)
        body["sponsor"] = self.agent(root.sponsor) if root.sponsor else None
        stack = [(root, body)]
        while stack:
            node, entry = stack.pop()
            for child in node.downline:
                child_entry = self._downline_entry(child)
                entry["downline"].append(child_entry)
                stack.append((child, child_entry))
        return body

    def _downline_entry(self, node: DownlineNode) -> dict:
        entry = self.agent(node.agent)
        entry["total_earnings"] = to_money(node.total_earnings)
        entry["downline"] = []
        return entry

    def transaction(self, transaction: Transaction) -> dict:
        return {
            "id": transaction.id,
            "agent_id": transaction.agent_id,
            "property_address": transaction.property_address,
            "sale_amount": to_money(transaction.sale_amount),
            "commission_percentage": float(transaction.commission_percentage),
            "total_commission": to_money(transaction.total_commission),
            "company_gci": to_money(transaction.company_gci),
            "transaction_date": _iso(transaction.transaction_date),
            "transaction_type": transaction.transaction_type,
            "transaction_status": transaction.transaction_status,
            "client_name": transaction.client_name,
            "created_at": _iso(transaction.created_at),
        }

    def revenue_share(self, share: RevenueShare) -> dict:
        return {
            "id": share.id,
            "transaction_id": share.transaction_id,
            "source_agent_id": share.source_agent_id,
            "recipient_agent_id": share.recipient_agent_id,
            "tier": share.tier,
            "amount": to_money(share.amount),
            "created_at": _iso(share.created_at),
        }

    def revenue_shares(self, shares: list[RevenueShare]) -> dict:
        ordered = sorted(shares, key=lambda s: (s.transaction_id, s.tier))
        return {
            "revenue_shares": [self.revenue_share(s) for s in ordered],
            "total_amount": to_money(sum((s.amount for s in shares), Decimal("0"))),
        }

    def processing_result(self, result: RevenueShareResult) -> dict:
        """Per-tier breakdown with a description of how each amount was reached."""
        return {
            "transaction_id": result.transaction_id,
            "complete": result.complete,
            "total_paid": to_money(result.total_paid),
            "tiers": [self._tier(t) for t in result.tiers],
            "skipped_tiers": result.skipped_tiers,
            "failed_tiers": result.failed_tiers,
            "error": result.error,
        }

    def _tier(self, outcome: TierOutcome) -> dict:
        remaining = max(Decimal("0"), outcome.cap - outcome.already_paid)
        if outcome.final_amount <= 0:
            description = "Annual cap reached; nothing paid" if remaining <= 0 else "Share rounds to zero; nothing paid"
        elif outcome.final_amount == outcome.raw_amount:
            description = f"Full share paid; {to_money(remaining - outcome.final_amount):,.2f} left under cap"
        else:
            description = f"Clamped to remaining allowance of {to_money(remaining):,.2f}"
        return {
            "tier": outcome.tier,
            "recipient_agent_id": outcome.recipient_agent_id,
            "raw_amount": to_money(outcome.raw_amount),
            "annual_cap": to_money(outcome.cap),
            "already_paid": to_money(outcome.already_paid),
            "amount": to_money(outcome.final_amount),
            "description": description,
        }
