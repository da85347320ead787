"""
Sponsorship Chain Walker

Produces an agent's upline, nearest sponsor first.
"""

import logging
from typing import Callable, Optional

from ..config import MAX_TIERS
from ..models import Agent

logger = logging.getLogger(__name__)


class SponsorChainWalker:
    """Bounded iterative walk over sponsor_id pointers."""

    def __init__(self, load_agent: Callable[[int], Optional[Agent]]):
        self.load_agent = load_agent

    def walk_upline(self, agent_id: int, max_depth: int = MAX_TIERS) -> list[int]:
        """
        Return up to max_depth sponsor ids above agent_id.

        The starting agent is never included. The walk stops at a root, at a
        missing agent record, after max_depth steps, or when it would revisit
        an agent (a sponsor cycle), whichever comes first. Each id appears at
        most once.
        """
        depth = max(0, min(max_depth, MAX_TIERS))
        chain: list[int] = []
        visited = {agent_id}
        current_id = agent_id

        while len(chain) < depth:
            current = self.load_agent(current_id)
            if current is None or current.sponsor_id is None:
                break
            if current.sponsor_id in visited:
                logger.warning(f"Sponsor cycle above agent {agent_id} at {current.sponsor_id}; upline cut to {chain}")
                break
            chain.append(current.sponsor_id)
            visited.add(current.sponsor_id)
            current_id = current.sponsor_id

        return chain
