"""
Tier Rate Policy

Maps a sponsor's agent type to a revenue share rate and its cap plan to an
annual ceiling. The rate does not depend on the tier level.
"""

from decimal import Decimal

from ..config import ANNUAL_CAPS, REVENUE_SHARE_RATES
from ..models import AgentType, CapType


class TierRatePolicy:
    """Pure lookups; no storage access."""

    RATES = REVENUE_SHARE_RATES
    CAPS = ANNUAL_CAPS

    def rate_for(self, agent_type: AgentType) -> Decimal:
        """Fraction of company GCI paid to a sponsor of this type."""
        return self.RATES[AgentType(agent_type)]

    def cap_for(self, agent_type: AgentType, cap_type: CapType | None) -> Decimal:
        """
        Annual ceiling per (recipient, source) pair.

        - principal, standard cap: 2000
        - principal, team cap: 1000
        - principal, no cap plan: treated as standard
        - support: 2000 (cap plan ignored)
        """
        agent_type = AgentType(agent_type)
        if agent_type == AgentType.SUPPORT:
            return self.CAPS[(AgentType.SUPPORT, None)]
        plan = CapType(cap_type) if cap_type else CapType.STANDARD
        return self.CAPS[(agent_type, plan)]
