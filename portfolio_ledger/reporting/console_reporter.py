# portfolio_ledger/reporting/console_reporter.py
import logging
from decimal import Decimal
from typing import Dict, List, Optional

from portfolio_ledger.domain.positions import Position
from portfolio_ledger.domain.results import PortfolioSummary, RealizedGain, UnrealizedPnL
from portfolio_ledger.domain.transactions import Transaction
from portfolio_ledger.reporting.reporting_utils import format_amount_for_display, format_date_dmy
from portfolio_ledger import config


logger = logging.getLogger(__name__)


def _fmt(value: Optional[Decimal], precision_type: str = "total") -> str:
    return format_amount_for_display(value, precision_type)


def _print_open_positions(active_positions: Dict[str, Position], unrealized: Dict[str, UnrealizedPnL]):
    print("\nOpen positions")
    if not active_positions:
        print("  (none)")
        return
    for key, position in active_positions.items():
        pnl = unrealized.get(key)
        label = position.company if not position.symbol else f"{position.company} ({position.symbol})"
        print(f"  {label}: {_fmt(position.shares, 'quantity')} shares, {position.currency}")
        print(f"    Cost basis: {_fmt(position.total_cost)} {config.REPORTING_CURRENCY} "
              f"(avg {_fmt(position.average_cost_eur, 'price')}), "
              f"native {_fmt(position.total_original_cost)} {position.currency} "
              f"(avg {_fmt(position.average_original_cost, 'price')})")
        if pnl is None:
            continue
        if pnl.quote_available:
            print(f"    Value: {_fmt(pnl.current_value_eur)} {config.REPORTING_CURRENCY}, "
                  f"P&L: {_fmt(pnl.pnl_eur)} {config.REPORTING_CURRENCY} ({_fmt(pnl.pnl_percent)}%)")
        else:
            print(f"    Value: {_fmt(pnl.current_value_eur)} {config.REPORTING_CURRENCY} (no quote, valued at cost basis)")


def _print_closed_history(closed_transactions: List[Transaction], realized_gains: List[RealizedGain]):
    print("\nClosed positions history")
    if not closed_transactions:
        print("  (none)")
        return
    gains_by_sale_id = {g.originating_transaction_id: g for g in realized_gains if g.originating_transaction_id is not None}
    for tx in closed_transactions:
        line = (f"  {format_date_dmy(tx.trade_date)} {tx.transaction_type.value:<8} {tx.company:<30} "
                f"{_fmt(tx.shares, 'quantity'):>10} @ {_fmt(tx.price, 'price')} {tx.currency}")
        gain = gains_by_sale_id.get(tx.transaction_id) if tx.is_sale else None
        if gain is not None:
            line += f"  gain {_fmt(gain.gain_eur)} {config.REPORTING_CURRENCY}"
        print(line)


def generate_console_portfolio_report(
    active_positions: Dict[str, Position],
    unrealized: Dict[str, UnrealizedPnL],
    closed_transactions: List[Transaction],
    realized_gains: List[RealizedGain],
    historical_pnl: Decimal,
    summary: PortfolioSummary,
    eur_per_usd: Optional[Decimal] = None,
):
    logger.info("Generating console portfolio report...")
    print(f"\n--- Portfolio Report (amounts in {config.REPORTING_CURRENCY}) ---")
    if eur_per_usd is not None:
        print(f"EUR per USD used for valuation: {_fmt(eur_per_usd, 'price')}")

    _print_open_positions(active_positions, unrealized)
    _print_closed_history(closed_transactions, realized_gains)

    print("\nSummary")
    print(f"  Positions: {summary.positions_count}, operations: {summary.operations_count}, "
          f"shares: {_fmt(summary.total_shares, 'quantity')}")
    print(f"  Total value: {_fmt(summary.total_value_eur)}")
    print(f"  Total cost: {_fmt(summary.total_cost_eur)}")
    print(f"  Unrealized P&L: {_fmt(summary.total_pnl_eur)} ({_fmt(summary.total_pnl_percent)}%)")
    if summary.positions_without_quote:
        print(f"  Positions valued at cost basis (no quote): {summary.positions_without_quote}")
    print(f"  Historical realized P&L (closed positions): {_fmt(historical_pnl)}")

    if realized_gains:
        total_gain = sum((g.gain_eur for g in realized_gains), Decimal("0"))
        total_retention = sum((g.retention_eur or Decimal("0") for g in realized_gains), Decimal("0"))
        print(f"  Realized P&L, all sales: {_fmt(total_gain)}, retention {_fmt(total_retention)}, "
              f"net {_fmt(total_gain - total_retention)}")
    print("--- End of Report ---")
