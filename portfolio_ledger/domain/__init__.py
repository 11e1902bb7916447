# portfolio_ledger/domain/__init__.py
from .enums import TransactionType, CurrencyClass
from .transactions import Transaction
from .positions import Position, Quote
from .results import UnrealizedPnL, RealizedGain, PortfolioSummary

__all__ = [
    "TransactionType", "CurrencyClass",
    "Transaction",
    "Position", "Quote",
    "UnrealizedPnL", "RealizedGain", "PortfolioSummary",
]
