"""
Input Validation for the Revenue Share Engine

Validates agent and transaction input before anything is persisted.
Raises ValueError with clear messages for any constraint violations.
"""

from decimal import Decimal

from .models import (
    TRANSACTION_STATUSES,
    TRANSACTION_TYPES,
    AgentInput,
    AgentType,
    TransactionInput,
    TransactionUpdate,
)

MIN_SALE_AMOUNT = Decimal('10000')
MAX_SALE_AMOUNT = Decimal('1000000000')


class InputValidator:
    """Validates agent and transaction input according to business rules."""

    def validate_agent(self, data: AgentInput) -> None:
        if not data.name or not data.name.strip():
            raise ValueError("name is required")

        if data.agent_type == AgentType.SUPPORT and data.cap_type is not None:
            raise ValueError("cap_type only applies to principal agents")

        if data.agent_code is not None and (len(data.agent_code) != 6 or not data.agent_code.isdigit()):
            raise ValueError(f"agent_code must be 6 digits, got: {data.agent_code}")

    def validate_transaction(self, data: TransactionInput) -> None:
        """Run all validations on a create payload. Raises ValueError if any check fails."""
        if not data.property_address or not data.property_address.strip():
            raise ValueError("property_address is required")

        self._validate_sale_amount(data.sale_amount)
        self._validate_commission_percentage(data.commission_percentage)
        self._validate_descriptors(data.transaction_type, data.transaction_status)

        if data.company_gci is not None:
            self._validate_company_gci(data.company_gci)

    def validate_transaction_update(self, update: TransactionUpdate) -> None:
        if update.property_address is not None and not update.property_address.strip():
            raise ValueError("property_address cannot be blank")

        if update.sale_amount is not None:
            self._validate_sale_amount(update.sale_amount)

        if update.commission_percentage is not None:
            self._validate_commission_percentage(update.commission_percentage)

        self._validate_descriptors(update.transaction_type, update.transaction_status)

        if update.company_gci is not None:
            self._validate_company_gci(update.company_gci)

    def _validate_sale_amount(self, sale_amount: Decimal) -> None:
        if not sale_amount.is_finite():
            raise ValueError(f"sale_amount must be a finite number, got: {sale_amount}")
        if not (MIN_SALE_AMOUNT <= sale_amount <= MAX_SALE_AMOUNT):
            raise ValueError(
                f"sale_amount must be between {MIN_SALE_AMOUNT} and {MAX_SALE_AMOUNT}, got: {sale_amount}"
            )

    def _validate_commission_percentage(self, commission_percentage: Decimal) -> None:
        if not commission_percentage.is_finite():
            raise ValueError(f"commission_percentage must be a finite number, got: {commission_percentage}")
        if not (0 < commission_percentage <= 100):
            raise ValueError(f"commission_percentage must be between 0 and 100, got: {commission_percentage}")

    def _validate_company_gci(self, company_gci: Decimal) -> None:
        if not company_gci.is_finite():
            raise ValueError(f"company_gci must be a finite number, got: {company_gci}")
        if company_gci < 0:
            raise ValueError(f"company_gci cannot be negative, got: {company_gci}")

    def _validate_descriptors(self, transaction_type: str | None, transaction_status: str | None) -> None:
        if transaction_type is not None and transaction_type not in TRANSACTION_TYPES:
            raise ValueError(f"Invalid transaction_type: {transaction_type}. Must be 'buyer' or 'seller'")

        if transaction_status is not None and transaction_status not in TRANSACTION_STATUSES:
            raise ValueError(
                f"Invalid transaction_status: {transaction_status}. "
                f"Must be one of {', '.join(TRANSACTION_STATUSES)}"
            )
