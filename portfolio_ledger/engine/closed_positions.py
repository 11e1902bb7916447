import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from portfolio_ledger.domain.transactions import Transaction
from portfolio_ledger.engine.position_builder import build_positions, is_active
from portfolio_ledger.engine.realized_pnl import realized_gain
from portfolio_ledger.utils.sorting_utils import sort_transactions
from portfolio_ledger.utils.type_utils import ZERO, is_at_most
from portfolio_ledger import config as global_config

logger = logging.getLogger(__name__)


def _epsilon(epsilon: Optional[Decimal]) -> Decimal:
    return global_config.CLOSED_POSITION_EPSILON if epsilon is None else epsilon


def closed_position_keys(transactions: Iterable[Transaction], epsilon: Optional[Decimal] = None) -> List[str]:
    threshold = _epsilon(epsilon)
    return [
        key for key, position in build_positions(transactions).items()
        if is_at_most(position.shares, threshold)
    ]


def closed_transactions(transactions: Iterable[Transaction], epsilon: Optional[Decimal] = None) -> List[Transaction]:
    """
    Every transaction whose position currently holds `epsilon` shares or fewer, in input order.

    Oversold positions (negative shares) count as closed. A position that was closed
    and has since been reopened is active, so none of its transactions are returned.
    """
    all_transactions = list(transactions)
    closed_keys = set(closed_position_keys(all_transactions, epsilon))
    return [tx for tx in all_transactions if tx.position_key in closed_keys]


def current_cycle_transactions(transactions: Iterable[Transaction],
                               position_key: str,
                               epsilon: Optional[Decimal] = None) -> List[Transaction]:
    """
    Transactions of one position after the last point where its running share count
    touched zero. These are the ones that still make up the open holding; the list is
    empty when the position is not active.
    """
    threshold = _epsilon(epsilon)
    position_transactions = sort_transactions(tx for tx in transactions if tx.position_key == position_key)

    positions = build_positions(position_transactions)
    position = positions.get(position_key)
    if position is None or not is_active(position, threshold):
        return []

    last_zero_index = -1
    running_shares = ZERO
    for index, tx in enumerate(position_transactions):
        if tx.is_purchase:
            running_shares += tx.shares
        elif tx.is_sale:
            running_shares -= tx.shares
        if is_at_most(abs(running_shares), threshold):
            last_zero_index = index

    return position_transactions[last_zero_index + 1:]


def historical_profit_loss(transactions: Iterable[Transaction],
                           account_for_prior_sales: bool = False,
                           epsilon: Optional[Decimal] = None) -> Decimal:
    """
    Sum of the EUR realized gains of the sales on closed positions.
    Lots are matched against the whole log, not only the closed transactions.
    """
    all_transactions = list(transactions)
    total = ZERO
    sales = [tx for tx in closed_transactions(all_transactions, epsilon) if tx.is_sale]
    for sale in sales:
        total += realized_gain(sale, all_transactions, account_for_prior_sales).gain_eur
    logger.info(f"Historical P&L over {len(sales)} closed sales: {total} EUR")
    return total
