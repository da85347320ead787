"""
Agent Directory

Agent CRUD and the sponsor graph rules: sponsors must exist, no agent may end
up in its own upline, and an agent with history cannot be deleted.
"""

import logging
from collections import defaultdict
from dataclasses import replace
from decimal import Decimal
from typing import Optional

from .errors import NotFoundError
from .models import Agent, AgentInput, AgentType, AgentUpdate, DownlineNode, Transaction
from .storage import AgentRepository
from .validators import InputValidator

logger = logging.getLogger(__name__)


class AgentDirectory:
    def __init__(self, repository: AgentRepository, validator: InputValidator | None = None):
        self.repository = repository
        self.validator = validator or InputValidator()

    def create_agent(self, data: AgentInput) -> Agent:
        self.validator.validate_agent(data)
        if data.sponsor_id is not None:
            self._require_sponsor(data.sponsor_id)
        agent = self.repository.create_agent(data)
        logger.info(f"Created agent {agent.id} ({agent.agent_type.value}), sponsor {agent.sponsor_id}")
        return agent

    def get_agent(self, agent_id: int) -> Optional[Agent]:
        return self.repository.get_agent(agent_id)

    def list_agents(self) -> list[Agent]:
        return self.repository.list_agents()

    def list_roots(self) -> list[Agent]:
        return [a for a in self.repository.list_agents() if a.is_root]

    def list_downline(self, agent_id: int) -> list[Agent]:
        """Agents directly sponsored by agent_id."""
        if self.repository.get_agent(agent_id) is None:
            raise NotFoundError("Agent", agent_id)
        return self.repository.list_downline(agent_id)

    def downline_tree(self, agent_id: int) -> DownlineNode:
        """
        The agent, its sponsor and its whole downline, each node carrying the
        total of revenue shares it has received.

        Built from one pass over agents and shares with a sponsor index, so the
        cost is linear in the directory size and a corrupted loop is visited once.
        """
        agent = self.repository.get_agent(agent_id)
        if agent is None:
            raise NotFoundError("Agent", agent_id)

        children = defaultdict(list)
        for candidate in self.repository.list_agents():
            if candidate.sponsor_id is not None:
                children[candidate.sponsor_id].append(candidate)

        earnings = defaultdict(Decimal)
        for share in self.repository.list_revenue_shares():
            earnings[share.recipient_agent_id] += share.amount

        sponsor = self.repository.get_agent(agent.sponsor_id) if agent.sponsor_id is not None else None
        root = DownlineNode(agent=agent, sponsor=sponsor, total_earnings=earnings[agent.id])

        seen = {agent.id}
        stack = [root]
        while stack:
            node = stack.pop()
            for child in sorted(children[node.agent.id], key=lambda a: a.id):
                if child.id in seen:
                    logger.warning(f"Agent {child.id} reached twice while building downline of {agent_id}")
                    continue
                seen.add(child.id)
                child_node = DownlineNode(agent=child, sponsor=node.agent, total_earnings=earnings[child.id])
                node.downline.append(child_node)
                stack.append(child_node)
        return root

    def list_transactions(self, agent_id: int) -> list[Transaction]:
        if self.repository.get_agent(agent_id) is None:
            raise NotFoundError("Agent", agent_id)
        return self.repository.list_agent_transactions(agent_id)

    def update_agent(self, agent_id: int, update: AgentUpdate) -> Optional[Agent]:
        agent = self.repository.get_agent(agent_id)
        if agent is None:
            return None

        changes = {}
        if update.name is not None:
            if not update.name.strip():
                raise ValueError("name cannot be blank")
            changes["name"] = update.name
        if update.agent_type is not None:
            changes["agent_type"] = update.agent_type
        if update.clear_cap:
            changes["cap_type"] = None
        elif update.cap_type is not None:
            changes["cap_type"] = update.cap_type
        if update.clear_sponsor:
            changes["sponsor_id"] = None
        elif update.sponsor_id is not None:
            self._check_reassignment(agent_id, update.sponsor_id)
            changes["sponsor_id"] = update.sponsor_id

        updated = replace(agent, **changes)
        if updated.agent_type == AgentType.SUPPORT:
            if update.cap_type is not None:
                raise ValueError("cap_type only applies to principal agents")
            updated.cap_type = None

        return self.repository.save_agent(updated)

    def delete_agent(self, agent_id: int) -> bool:
        """Remove an agent with no downline, transactions or revenue shares."""
        if self.repository.get_agent(agent_id) is None:
            return False
        if self.repository.list_downline(agent_id):
            raise ValueError(f"Agent {agent_id} still sponsors other agents")
        if self.repository.list_agent_transactions(agent_id):
            raise ValueError(f"Agent {agent_id} has transactions")
        if self.repository.list_agent_revenue_shares(agent_id):
            raise ValueError(f"Agent {agent_id} has revenue shares")
        return self.repository.delete_agent(agent_id)

    def _require_sponsor(self, sponsor_id: int) -> Agent:
        sponsor = self.repository.get_agent(sponsor_id)
        if sponsor is None:
            raise ValueError(f"Sponsor {sponsor_id} not found")
        return sponsor

    def _check_reassignment(self, agent_id: int, sponsor_id: int) -> None:
        """Reject a new sponsor that is the agent itself or one of its downline."""
        if sponsor_id == agent_id:
            raise ValueError("An agent cannot sponsor itself")
        self._require_sponsor(sponsor_id)

        seen = set()
        current_id = sponsor_id
        while current_id is not None and current_id not in seen:
            if current_id == agent_id:
                raise ValueError(f"Sponsor {sponsor_id} is in the downline of agent {agent_id}")
            seen.add(current_id)
            current = self.repository.get_agent(current_id)
            current_id = current.sponsor_id if current else None
