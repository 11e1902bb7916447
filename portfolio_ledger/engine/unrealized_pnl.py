import logging
from decimal import Decimal
from typing import Dict, Mapping, Optional

from portfolio_ledger.domain.positions import Position, Quote
from portfolio_ledger.domain.results import UnrealizedPnL
from portfolio_ledger.utils.currency_converter import convert_to_eur, weighted_purchase_rate
from portfolio_ledger.utils.type_utils import is_greater_than, safe_divide

logger = logging.getLogger(__name__)


def evaluate(position: Position,
             quote: Optional[Quote],
             eur_per_usd: Optional[Decimal],
             purchase_rate: Optional[Decimal] = None) -> UnrealizedPnL:
    """
    Values one position against a live quote.

    Without a quote (or with a quote that has no price) the position is assumed to
    trade at its cost basis: the EUR value equals `total_cost` and the P&L is zero,
    flagged through `quote_available=False`.

    `purchase_rate` defaults to the shares-weighted purchase rate of the position's
    own transactions; it is only used for currencies other than EUR and USD.
    """
    if purchase_rate is None:
        purchase_rate = weighted_purchase_rate(position.transactions)

    if quote is None or quote.price is None:
        logger.debug(f"No quote for position '{position.key}', valuing at cost basis {position.total_cost}.")
        return UnrealizedPnL(
            position_key=position.key,
            current_value_native=position.total_original_cost,
            current_value_eur=position.total_cost,
            pnl_eur=Decimal("0"),
            pnl_percent=Decimal("0"),
            quote_available=False,
            conversion_rate=None,
        )

    current_value_native = position.shares * quote.price
    current_value_eur = convert_to_eur(current_value_native, position.currency, eur_per_usd, purchase_rate)
    pnl_eur = current_value_eur - position.total_cost

    if is_greater_than(position.total_cost, Decimal("0")):
        pnl_percent = safe_divide(pnl_eur, position.total_cost) * Decimal("100")
    else:
        pnl_percent = Decimal("0")

    return UnrealizedPnL(
        position_key=position.key,
        current_value_native=current_value_native,
        current_value_eur=current_value_eur,
        pnl_eur=pnl_eur,
        pnl_percent=pnl_percent,
        quote_available=True,
        conversion_rate=convert_to_eur(Decimal("1"), position.currency, eur_per_usd, purchase_rate),
    )


def evaluate_positions(positions: Mapping[str, Position],
                       quotes: Mapping[str, Quote],
                       eur_per_usd: Optional[Decimal]) -> Dict[str, UnrealizedPnL]:
    return {
        key: evaluate(position, quotes.get(key), eur_per_usd)
        for key, position in positions.items()
    }
