"""Core business logic: currency rates, expense splits and trip balances."""

from .balance_service import BalanceAggregator, load_expenses
from .currency_service import (
    RapidApiRateSource,
    RateCache,
    RateProvider,
    format_currency,
)
from .expense_service import ExpenseValidator, SplitCalculator, expense_from_document

__all__ = [
    "BalanceAggregator",
    "ExpenseValidator",
    "RapidApiRateSource",
    "RateCache",
    "RateProvider",
    "SplitCalculator",
    "expense_from_document",
    "format_currency",
    "load_expenses",
]
