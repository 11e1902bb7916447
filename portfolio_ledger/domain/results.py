from dataclasses import dataclass, KW_ONLY
from datetime import date
from decimal import Decimal
from typing import Optional

import logging

from portfolio_ledger.utils.type_utils import is_greater_than, safe_divide
from portfolio_ledger import config as global_config

logger = logging.getLogger(__name__)


@dataclass
class UnrealizedPnL:
    position_key: str
    current_value_native: Decimal
    current_value_eur: Decimal
    pnl_eur: Decimal
    pnl_percent: Decimal

    _: KW_ONLY
    quote_available: bool = True
    conversion_rate: Optional[Decimal] = None # Native -> EUR multiplier that was applied


@dataclass
class RealizedGain:
    """
    FIFO attribution of one sale. Independent of the running weighted average
    kept on live positions, so the two cost figures differ by construction.
    """
    company: str
    sale_date: date
    shares_sold: Decimal

    cost_basis_native: Decimal # Consumed lots at their own purchase price, without commission
    cost_basis_eur: Decimal # Consumed lots at their own total_cost/shares
    purchase_commission: Decimal # Pro-rata share of the consumed lots' commissions
    purchase_exchange_rate: Decimal # Shares-weighted rate of the consumed lots (1 for EUR lots)
    purchase_currency: str

    sale_price: Decimal
    sale_currency: str
    sale_commission: Decimal
    sale_exchange_rate: Decimal
    sale_proceeds_native: Decimal
    net_sale_proceeds_eur: Decimal

    gain_native: Decimal
    gain_eur: Decimal

    _: KW_ONLY
    originating_transaction_id: Optional[int] = None
    symbol: str = ""
    average_purchase_date: Optional[date] = None
    matched_shares: Decimal = Decimal("0")
    unmatched_shares: Decimal = Decimal("0")

    withholding_rate: Decimal = global_config.WITHHOLDING_RATE
    withholding_rate_applied: Optional[Decimal] = None
    retention_eur: Optional[Decimal] = None
    net_gain_eur: Optional[Decimal] = None

    def __post_init__(self):
        if not isinstance(self.sale_date, date):
            raise TypeError(f"RealizedGain.sale_date must be a date, got {type(self.sale_date)}")

        # Report-formatting rule: deduct only from positive gains. Never fed back into positions.
        self.withholding_rate_applied = self.withholding_rate if is_greater_than(self.gain_eur, Decimal("0")) else Decimal("0")
        self.retention_eur = self.gain_eur * self.withholding_rate_applied
        self.net_gain_eur = self.gain_eur - self.retention_eur

    @property
    def gain_percent(self) -> Decimal:
        """Gain relative to the EUR cost basis."""
        return safe_divide(self.gain_eur, self.cost_basis_eur) * Decimal("100")

    @property
    def gain_native_percent(self) -> Decimal:
        """Gain relative to the native-currency cost basis (export column)."""
        return safe_divide(self.gain_native, self.cost_basis_native) * Decimal("100")

    @property
    def cost_basis_native_with_commission(self) -> Decimal:
        return self.cost_basis_native + self.purchase_commission

    @property
    def cost_basis_native_in_eur(self) -> Decimal:
        """Native cost basis converted at the consumed lots' weighted purchase rate."""
        return self.cost_basis_native * self.purchase_exchange_rate


@dataclass
class PortfolioSummary:
    total_value_eur: Decimal
    total_cost_eur: Decimal
    total_pnl_eur: Decimal
    total_pnl_percent: Decimal
    positions_count: int
    operations_count: int
    total_shares: Decimal
    positions_without_quote: int = 0
