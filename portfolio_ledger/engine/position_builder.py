import logging
from decimal import Decimal
from typing import Dict, Iterable, Optional

from portfolio_ledger.domain.positions import Position
from portfolio_ledger.domain.transactions import Transaction
from portfolio_ledger.utils.sorting_utils import sort_transactions
from portfolio_ledger.utils.type_utils import is_nan, is_greater_than, safe_divide
from portfolio_ledger import config as global_config

logger = logging.getLogger(__name__)


def _commission_in_native_currency(transaction: Transaction) -> Decimal:
    # Commission is booked in EUR terms; a zero or missing rate counts as 1
    rate = transaction.exchange_rate or Decimal("1")
    return (transaction.commission or Decimal("0")) / rate


def _apply_purchase(position: Position, transaction: Transaction) -> None:
    position.shares += transaction.shares
    position.total_cost += transaction.total_cost
    position.total_original_cost += transaction.price * transaction.shares + _commission_in_native_currency(transaction)


def _apply_sale(position: Position, transaction: Transaction) -> None:
    # Averages are taken over the holding before the sale reduces it
    avg_cost = safe_divide(position.total_cost, position.shares)
    avg_original_cost = safe_divide(position.total_original_cost, position.shares)

    if not is_nan(position.shares) and not is_nan(transaction.shares) and transaction.shares > position.shares:
        logger.warning(
            f"Position '{position.key}': sale of {transaction.shares} on {transaction.trade_date} exceeds "
            f"held shares {position.shares}. The position goes negative; admitting the sale is the caller's decision."
        )

    position.shares -= transaction.shares
    position.total_cost -= avg_cost * transaction.shares
    position.total_original_cost -= avg_original_cost * transaction.shares


def build_positions(transactions: Iterable[Transaction]) -> Dict[str, Position]:
    """
    Folds the transaction log into live positions using running weighted-average cost.

    The input may be in any order: it is sorted by (trade_date, transaction_id) first,
    since the average cost depends on the fold order. Every key that ever appeared is
    returned, including closed or oversold positions. Non-numeric values are not
    rejected and propagate as NaN into the affected position.
    """
    positions: Dict[str, Position] = {}

    for transaction in sort_transactions(transactions):
        key = transaction.position_key
        position = positions.get(key)
        if position is None:
            position = Position(key=key, company=transaction.company, symbol=transaction.symbol or "")
            positions[key] = position

        if transaction.currency:
            position.currency = transaction.currency

        if transaction.is_purchase:
            _apply_purchase(position, transaction)
        elif transaction.is_sale:
            _apply_sale(position, transaction)
        position.transactions.append(transaction)

    for key, position in positions.items():
        if is_nan(position.shares) or is_nan(position.total_cost):
            logger.warning(f"Position '{key}' has non-numeric totals (shares={position.shares}, total_cost={position.total_cost}).")

    logger.debug(f"Built {len(positions)} positions.")
    return positions


def is_active(position: Position, epsilon: Optional[Decimal] = None) -> bool:
    threshold = global_config.CLOSED_POSITION_EPSILON if epsilon is None else epsilon
    return is_greater_than(position.shares, threshold)


def active_positions(transactions: Iterable[Transaction], epsilon: Optional[Decimal] = None) -> Dict[str, Position]:
    """Positions still holding more than `epsilon` shares. NaN positions are left out."""
    return {
        key: position
        for key, position in build_positions(transactions).items()
        if is_active(position, epsilon)
    }
