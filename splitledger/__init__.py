# splitledger/__init__.py
"""Shared-expense balances and settlement suggestions."""

from splitledger.settlement import (
    EPSILON, Balance, Expense, ExpenseValidationError, Settlement, SettlementError,
    calculate_balances, calculate_settlements, suggest_settlements,
)
from splitledger.ledger import apply_settlement, summarize_expenses

__version__ = '1.0.0'
