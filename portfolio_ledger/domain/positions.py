from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from .transactions import Transaction
from portfolio_ledger.utils.type_utils import safe_divide


@dataclass
class Position:
    """
    Projection of the transaction log for one position key. Never persisted:
    rebuilt from the transactions every time they change.
    """
    key: str
    company: str
    symbol: str = ""
    shares: Decimal = Decimal("0")
    currency: str = "EUR" # Currency of the most recently folded transaction, a display hint only
    total_cost: Decimal = Decimal("0") # EUR cost basis of the shares still held
    total_original_cost: Decimal = Decimal("0") # Same cost basis in the native currency
    transactions: List[Transaction] = field(default_factory=list) # In fold order

    @property
    def average_cost_eur(self) -> Decimal:
        return safe_divide(self.total_cost, self.shares)

    @property
    def average_original_cost(self) -> Decimal:
        return safe_divide(self.total_original_cost, self.shares)


@dataclass
class Quote:
    """Live quote for one position key, as delivered by the quote collaborator."""
    price: Decimal
    change: Optional[Decimal] = None
    change_percent: Optional[Decimal] = None
    currency: Optional[str] = None
    source: Optional[str] = None
    updated_at: Optional[datetime] = None
