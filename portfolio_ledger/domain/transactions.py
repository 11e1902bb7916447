# portfolio_ledger/domain/transactions.py
from dataclasses import dataclass, KW_ONLY
from datetime import date
from decimal import Decimal
from typing import Optional

from .enums import TransactionType
from portfolio_ledger.utils.position_keys import create_position_key


@dataclass
class Transaction:
    # Positional, non-default arguments
    transaction_type: TransactionType
    company: str
    shares: Decimal
    price: Decimal # Per-share price in `currency`
    trade_date: date

    _: KW_ONLY
    transaction_id: Optional[int] = None # Assigned by the store, monotonically increasing; tie-breaker for same-day trades
    symbol: str = ""
    currency: str = "EUR" # ISO code or the synthetic "GBp" for British pence
    exchange_rate: Decimal = Decimal("1") # Multiplier from `currency` to EUR at trade time; already /100 for GBp
    commission: Decimal = Decimal("0")
    total_cost: Decimal = Decimal("0") # EUR-normalized cash effect, computed at creation time and trusted as given

    # Pass-through metadata, not used by the engine
    target_price: Optional[Decimal] = None
    stop_loss_price: Optional[Decimal] = None
    external_symbol_1: Optional[str] = None
    external_symbol_2: Optional[str] = None
    external_symbol_3: Optional[str] = None

    def __post_init__(self):
        # Structural checks only. Numeric sanity (NaN, negative shares) is the caller's
        # responsibility and propagates through the engine unchanged.
        if not isinstance(self.transaction_type, TransactionType):
            raise TypeError(f"Transaction.transaction_type must be a TransactionType, got {type(self.transaction_type)}")
        if not isinstance(self.trade_date, date):
            raise TypeError(f"Transaction.trade_date must be a date, got {type(self.trade_date)}")
        if self.symbol is None:
            self.symbol = ""

    @property
    def position_key(self) -> str:
        return create_position_key(self.company, self.symbol)

    @property
    def is_purchase(self) -> bool:
        return self.transaction_type == TransactionType.PURCHASE

    @property
    def is_sale(self) -> bool:
        return self.transaction_type == TransactionType.SALE
