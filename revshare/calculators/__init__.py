"""
Calculators Package

Provides the building blocks the revenue share engine orchestrates.
"""

from .chain import SponsorChainWalker
from .gci import CompanyGCICalculator, quantize_money
from .ledger import AnnualPayoutLedger, start_of_year
from .rates import TierRatePolicy

__all__ = [
    "SponsorChainWalker",
    "TierRatePolicy",
    "AnnualPayoutLedger",
    "CompanyGCICalculator",
    "quantize_money",
    "start_of_year",
]
