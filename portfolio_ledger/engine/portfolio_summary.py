import logging
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from portfolio_ledger.domain.positions import Quote
from portfolio_ledger.domain.results import PortfolioSummary
from portfolio_ledger.domain.transactions import Transaction
from portfolio_ledger.engine.position_builder import active_positions
from portfolio_ledger.engine.unrealized_pnl import evaluate
from portfolio_ledger.utils.type_utils import ZERO, is_greater_than, safe_divide

logger = logging.getLogger(__name__)


def portfolio_summary(transactions: Iterable[Transaction],
                      quotes: Mapping[str, Quote],
                      eur_per_usd: Optional[Decimal],
                      epsilon: Optional[Decimal] = None) -> PortfolioSummary:
    """
    Aggregates the active positions. A position without a quote contributes its
    cost basis to the total value, so a missing price never understates the portfolio.
    """
    all_transactions = list(transactions)
    active = active_positions(all_transactions, epsilon)

    total_value_eur = ZERO
    total_cost_eur = ZERO
    total_shares = ZERO
    positions_without_quote = 0

    for key, position in active.items():
        result = evaluate(position, quotes.get(key), eur_per_usd)
        if not result.quote_available:
            positions_without_quote += 1
        total_value_eur += result.current_value_eur
        total_cost_eur += position.total_cost
        total_shares += position.shares

    total_pnl_eur = total_value_eur - total_cost_eur
    total_pnl_percent = safe_divide(total_pnl_eur, total_cost_eur) * Decimal("100") if is_greater_than(total_cost_eur, ZERO) else ZERO

    operations_count = sum(1 for tx in all_transactions if tx.position_key in active)

    if positions_without_quote:
        logger.info(f"{positions_without_quote} of {len(active)} active positions valued at cost basis (no quote).")

    return PortfolioSummary(
        total_value_eur=total_value_eur,
        total_cost_eur=total_cost_eur,
        total_pnl_eur=total_pnl_eur,
        total_pnl_percent=total_pnl_percent,
        positions_count=len(active),
        operations_count=operations_count,
        total_shares=total_shares,
        positions_without_quote=positions_without_quote,
    )
