# portfolio_ledger/pipeline_runner.py
import logging
from decimal import Decimal
from typing import Dict, List, Optional

from portfolio_ledger import config

from portfolio_ledger.domain.positions import Position, Quote
from portfolio_ledger.domain.results import PortfolioSummary, RealizedGain, UnrealizedPnL
from portfolio_ledger.domain.transactions import Transaction

from portfolio_ledger.parsers.transactions_parser import parse_transactions_file
from portfolio_ledger.parsers.quotes_parser import parse_quotes_json
from portfolio_ledger.engine.position_builder import build_positions, is_active
from portfolio_ledger.engine.unrealized_pnl import evaluate_positions
from portfolio_ledger.engine.realized_pnl import realized_gains
from portfolio_ledger.engine.closed_positions import closed_transactions, historical_profit_loss
from portfolio_ledger.engine.portfolio_summary import portfolio_summary

logger = logging.getLogger(__name__)


class ProcessingOutput:
    """
    Encapsulates the results of one portfolio run over a snapshot of transactions and quotes.
    """
    def __init__(self,
                 transactions: List[Transaction],
                 positions: Dict[str, Position],
                 active_positions: Dict[str, Position],
                 unrealized: Dict[str, UnrealizedPnL],
                 realized_gains: List[RealizedGain],
                 closed_transactions: List[Transaction],
                 historical_pnl: Decimal,
                 summary: PortfolioSummary,
                 eur_per_usd: Decimal):
        self.transactions = transactions
        self.positions = positions
        self.active_positions = active_positions
        self.unrealized = unrealized
        self.realized_gains = realized_gains
        self.closed_transactions = closed_transactions
        self.historical_pnl = historical_pnl
        self.summary = summary
        self.eur_per_usd = eur_per_usd


def resolve_eur_per_usd(eur_per_usd: Optional[Decimal]) -> Decimal:
    """Caller-side fallback policy for a missing live EUR/USD rate."""
    if eur_per_usd is None:
        logger.warning(f"No live EUR per USD rate supplied. Falling back to {config.DEFAULT_EUR_PER_USD}.")
        return config.DEFAULT_EUR_PER_USD
    return eur_per_usd


def run_portfolio_pipeline(
    transactions_file_path: Optional[str] = None,
    quotes_file_path: Optional[str] = None,
    eur_per_usd: Optional[Decimal] = None,
    account_for_prior_sales: bool = False,
    transactions: Optional[List[Transaction]] = None, # In-memory snapshot, bypasses file parsing
    quotes: Optional[Dict[str, Quote]] = None,
) -> ProcessingOutput:
    """
    Loads the snapshot, then runs both accounting paths: weighted-average positions with
    unrealized P&L, and FIFO realized gains with the closed-position history.
    """
    try:
        if transactions is None:
            if not transactions_file_path:
                raise ValueError("Either a transactions file path or an in-memory transaction list is required.")
            logger.info(f"Parsing transactions from {transactions_file_path}...")
            transactions = parse_transactions_file(transactions_file_path)
        if quotes is None:
            quotes = parse_quotes_json(quotes_file_path) if quotes_file_path else {}
    except ValueError as e:
        logger.error(f"Input error: {e}")
        raise
    except Exception as e:
        logger.error(f"Unexpected error while loading inputs: {e}", exc_info=True)
        raise

    rate = resolve_eur_per_usd(eur_per_usd)

    try:
        logger.info(f"Processing {len(transactions)} transactions and {len(quotes)} quotes...")
        positions = build_positions(transactions)
        active = {key: p for key, p in positions.items() if is_active(p)}
        unrealized = evaluate_positions(active, quotes, rate)

        gains = realized_gains(transactions, account_for_prior_sales=account_for_prior_sales)
        closed = closed_transactions(transactions)
        historical_pnl = historical_profit_loss(transactions, account_for_prior_sales=account_for_prior_sales)
        summary = portfolio_summary(transactions, quotes, rate)
    except Exception as e:
        logger.error(f"Error during portfolio calculations: {e}", exc_info=True)
        raise

    logger.info(f"Pipeline finished: {len(active)} open positions, {len(gains)} realized sales, "
                f"{len(closed)} closed operations.")
    return ProcessingOutput(
        transactions=transactions,
        positions=positions,
        active_positions=active,
        unrealized=unrealized,
        realized_gains=gains,
        closed_transactions=closed,
        historical_pnl=historical_pnl,
        summary=summary,
        eur_per_usd=rate,
    )
