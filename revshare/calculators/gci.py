"""
Company GCI Calculator

Derives the company's retained portion of a transaction's commission.
All use Decimal for precision with ROUND_HALF_UP rounding.
"""

from decimal import ROUND_HALF_UP, Decimal

from ..config import COMPANY_GCI_RATE, MONEY_QUANTUM


def quantize_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places using half-up rounding."""
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


class CompanyGCICalculator:
    """Calculates total commission and company GCI for a sale."""

    COMPANY_RATE = COMPANY_GCI_RATE

    def total_commission(self, sale_amount: Decimal, commission_percentage: Decimal) -> Decimal:
        """sale_amount × commission_percentage / 100."""
        return quantize_money(sale_amount * commission_percentage / Decimal('100'))

    def calculate(self, sale_amount: Decimal, commission_percentage: Decimal) -> Decimal:
        """Company GCI is 15% of the total commission."""
        total = self.total_commission(sale_amount, commission_percentage)
        if total < 0:
            raise ValueError(f"Total commission cannot be negative, got: {total}")
        return quantize_money(total * self.COMPANY_RATE)
