"""
Business constants for revenue share and company GCI.

Deployment settings (PORT, ENVIRONMENT) are read from the environment by the
entry points, not here.
"""

from decimal import Decimal

from .models import AgentType, CapType

# Upline depth is fixed; callers may ask for less, never more.
MAX_TIERS = 5

# Company retains 15% of the total commission.
COMPANY_GCI_RATE = Decimal("0.15")

REVENUE_SHARE_RATES = {
    AgentType.PRINCIPAL: Decimal("0.125"),  # 12.5% of company GCI
    AgentType.SUPPORT: Decimal("0.02"),  # 2% of company GCI
}

# Annual ceiling per (recipient, source) pair.
ANNUAL_CAPS = {
    (AgentType.PRINCIPAL, CapType.STANDARD): Decimal("2000"),
    (AgentType.PRINCIPAL, CapType.TEAM): Decimal("1000"),
    (AgentType.SUPPORT, None): Decimal("2000"),
}

MONEY_QUANTUM = Decimal("0.01")
