import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_FLOOR
from typing import Dict, Iterable, List, Optional, Tuple

from portfolio_ledger.domain.enums import CurrencyClass
from portfolio_ledger.domain.results import RealizedGain
from portfolio_ledger.domain.transactions import Transaction
from portfolio_ledger.utils.currency_converter import classify_currency
from portfolio_ledger.utils.sorting_utils import get_transaction_sort_key, sort_transactions
from portfolio_ledger.utils.type_utils import NAN, ZERO, is_nan, is_at_most, is_greater_than, safe_divide
from portfolio_ledger import config as global_config

logger = logging.getLogger(__name__)

ONE = Decimal("1")


@dataclass
class FifoLot:
    purchase: Transaction
    remaining_shares: Decimal


@dataclass
class ConsumedLotDetail:
    purchase: Transaction
    consumed_shares: Decimal

    @property
    def unit_cost_eur(self) -> Decimal:
        # Each lot carries its own EUR cost, independent of any running average
        return safe_divide(self.purchase.total_cost, self.purchase.shares)


def _nan_safe_min(a: Decimal, b: Decimal) -> Decimal:
    if is_nan(a) or is_nan(b):
        return NAN
    return min(a, b)


def _rate_or_one(rate: Optional[Decimal]) -> Decimal:
    if rate is None or is_nan(rate) or rate == ZERO:
        return ONE
    return rate


class FifoLotPool:
    """
    Purchase lots of one company, consumed oldest first.

    Lots are keyed by company only, so listings of the same company under
    different symbols share a single pool.
    """

    def __init__(self, company: str, purchases: Iterable[Transaction]):
        self.company = company
        self.lots: List[FifoLot] = [
            FifoLot(purchase=purchase, remaining_shares=purchase.shares)
            for purchase in sort_transactions(purchases)
        ]

    def consume(self, quantity: Decimal) -> Tuple[List[ConsumedLotDetail], Decimal]:
        """
        Consumes `quantity` shares from the oldest lots. Returns the consumed slices
        and the quantity no lot could cover (0 when fully matched).
        """
        remaining = quantity
        consumed: List[ConsumedLotDetail] = []

        for lot in self.lots:
            if is_at_most(remaining, ZERO):
                break
            if is_at_most(lot.remaining_shares, ZERO):
                continue

            shares_to_use = _nan_safe_min(remaining, lot.remaining_shares)
            consumed.append(ConsumedLotDetail(purchase=lot.purchase, consumed_shares=shares_to_use))
            lot.remaining_shares -= shares_to_use
            remaining -= shares_to_use

        return consumed, remaining


def _purchases_for_company(company: str, transactions: Iterable[Transaction]) -> List[Transaction]:
    return [tx for tx in transactions if tx.is_purchase and tx.company == company]


def _build_pool_for_sale(sale: Transaction,
                         transactions: List[Transaction],
                         account_for_prior_sales: bool) -> FifoLotPool:
    purchases = _purchases_for_company(sale.company, transactions)
    if not account_for_prior_sales:
        return FifoLotPool(sale.company, purchases)

    sale_key = get_transaction_sort_key(sale)
    eligible_purchases = [p for p in purchases if p.trade_date <= sale.trade_date]
    pool = FifoLotPool(sale.company, eligible_purchases)

    prior_sales = sort_transactions(
        tx for tx in transactions
        if tx.is_sale and tx.company == sale.company and tx is not sale
        and get_transaction_sort_key(tx) < sale_key
    )
    for prior_sale in prior_sales:
        _, uncovered = pool.consume(prior_sale.shares)
        if is_greater_than(uncovered, ZERO):
            logger.debug(f"Prior sale of {prior_sale.shares} '{sale.company}' on {prior_sale.trade_date} left {uncovered} shares unmatched.")
    return pool


def _average_purchase_date(consumed: List[ConsumedLotDetail]) -> Optional[date]:
    """Shares-weighted mean of the consumed lots' trade dates, truncated to a day."""
    total_shares = sum((c.consumed_shares for c in consumed), ZERO)
    if not is_greater_than(total_shares, ZERO):
        return None
    weighted_ordinal = sum((Decimal(c.purchase.trade_date.toordinal()) * c.consumed_shares for c in consumed), ZERO)
    average_ordinal = (weighted_ordinal / total_shares).to_integral_value(rounding=ROUND_FLOOR)
    return date.fromordinal(int(average_ordinal))


def _dominant_purchase_currency(consumed: List[ConsumedLotDetail]) -> str:
    """The currency carrying the most consumed shares; on a tie the later lot's currency wins."""
    shares_by_currency: Dict[str, Decimal] = {}
    for c in consumed:
        currency = c.purchase.currency or global_config.REPORTING_CURRENCY
        shares_by_currency[currency] = shares_by_currency.get(currency, ZERO) + c.consumed_shares

    dominant = global_config.REPORTING_CURRENCY
    dominant_shares: Optional[Decimal] = None
    for currency, shares in shares_by_currency.items():
        if is_nan(shares):
            continue
        if dominant_shares is None or shares >= dominant_shares:
            dominant, dominant_shares = currency, shares
    return dominant


def realized_gain(sale: Transaction,
                  transactions: Iterable[Transaction],
                  account_for_prior_sales: bool = False,
                  withholding_rate: Optional[Decimal] = None) -> RealizedGain:
    """
    FIFO attribution of one sale against the purchase lots of the same company.

    By default every sale walks the purchases from the oldest one, ignoring earlier
    sales and the sale date. With `account_for_prior_sales`, earlier sales consume
    lots first and only purchases dated on or before the sale are eligible.

    This figure intentionally differs from the weighted average cost the position
    builder keeps for the remaining holding.
    """
    if not sale.is_sale:
        raise ValueError(f"realized_gain expects a sale transaction, got {sale.transaction_type}")

    all_transactions = list(transactions)
    pool = _build_pool_for_sale(sale, all_transactions, account_for_prior_sales)
    consumed, unmatched = pool.consume(sale.shares)

    if is_greater_than(unmatched, ZERO):
        logger.warning(
            f"Sale of {sale.shares} '{sale.company}' on {sale.trade_date} (id {sale.transaction_id}): "
            f"{unmatched} shares could not be matched against any purchase lot."
        )

    cost_basis_eur = ZERO
    cost_basis_native = ZERO
    purchase_commission = ZERO
    matched_shares = ZERO
    rate_weighted = ZERO

    for c in consumed:
        lot_purchase = c.purchase
        cost_basis_eur += c.consumed_shares * c.unit_cost_eur
        cost_basis_native += c.consumed_shares * lot_purchase.price
        purchase_commission += safe_divide(lot_purchase.commission, lot_purchase.shares) * c.consumed_shares
        matched_shares += c.consumed_shares
        lot_rate = ONE if classify_currency(lot_purchase.currency) == CurrencyClass.REPORTING else lot_purchase.exchange_rate
        rate_weighted += lot_rate * c.consumed_shares

    purchase_currency = _dominant_purchase_currency(consumed)
    if classify_currency(purchase_currency) == CurrencyClass.REPORTING:
        purchase_exchange_rate = ONE
    else:
        purchase_exchange_rate = _rate_or_one(safe_divide(rate_weighted, matched_shares))

    if classify_currency(sale.currency) == CurrencyClass.REPORTING:
        sale_exchange_rate = ONE
    else:
        sale_exchange_rate = _rate_or_one(sale.exchange_rate)

    sale_commission = sale.commission or ZERO
    sale_proceeds_native = sale.shares * sale.price
    net_sale_proceeds_eur = (sale_proceeds_native - sale_commission) * sale_exchange_rate

    result = RealizedGain(
        company=sale.company,
        sale_date=sale.trade_date,
        shares_sold=sale.shares,
        cost_basis_native=cost_basis_native,
        cost_basis_eur=cost_basis_eur,
        purchase_commission=purchase_commission,
        purchase_exchange_rate=purchase_exchange_rate,
        purchase_currency=purchase_currency,
        sale_price=sale.price,
        sale_currency=sale.currency or global_config.REPORTING_CURRENCY,
        sale_commission=sale_commission,
        sale_exchange_rate=sale_exchange_rate,
        sale_proceeds_native=sale_proceeds_native,
        net_sale_proceeds_eur=net_sale_proceeds_eur,
        gain_native=sale_proceeds_native - cost_basis_native,
        gain_eur=net_sale_proceeds_eur - cost_basis_eur,
        originating_transaction_id=sale.transaction_id,
        symbol=sale.symbol,
        average_purchase_date=_average_purchase_date(consumed),
        matched_shares=matched_shares,
        unmatched_shares=unmatched if is_greater_than(unmatched, ZERO) else ZERO,
        withholding_rate=global_config.WITHHOLDING_RATE if withholding_rate is None else withholding_rate,
    )
    logger.debug(
        f"Realized gain for sale {sale.transaction_id} of '{sale.company}': cost basis EUR {cost_basis_eur}, "
        f"net proceeds EUR {net_sale_proceeds_eur}, gain EUR {result.gain_eur}."
    )
    return result


def realized_gains(transactions: Iterable[Transaction],
                   account_for_prior_sales: bool = False,
                   withholding_rate: Optional[Decimal] = None) -> List[RealizedGain]:
    """One realized gain per sale, in chronological order of the sales."""
    all_transactions = list(transactions)
    return [
        realized_gain(sale, all_transactions, account_for_prior_sales, withholding_rate)
        for sale in sort_transactions(all_transactions)
        if sale.is_sale
    ]
