import logging
from datetime import date
from typing import Iterable, List, Tuple

from portfolio_ledger.domain.transactions import Transaction

logger = logging.getLogger(__name__)


def get_transaction_sort_key(transaction: Transaction) -> Tuple[date, int]:
    """
    Deterministic fold order: trade date first, then the store-assigned id.
    The store assigns ids sequentially, so on the same day a lower id is the older trade.
    A missing id sorts as 0, ahead of every stored transaction of that day.
    """
    return (transaction.trade_date, transaction.transaction_id or 0)


def sort_transactions(transactions: Iterable[Transaction]) -> List[Transaction]:
    """Returns a new chronologically sorted list; the input is never reordered in place."""
    return sorted(transactions, key=get_transaction_sort_key)
