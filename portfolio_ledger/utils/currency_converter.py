import logging
from decimal import Decimal
from typing import Iterable, Optional

from portfolio_ledger.domain.enums import CurrencyClass
from portfolio_ledger.domain.transactions import Transaction
from portfolio_ledger.utils.type_utils import NAN, is_nan, is_greater_than
from portfolio_ledger import config

logger = logging.getLogger(__name__)

ONE = Decimal("1")


def classify_currency(currency: Optional[str]) -> CurrencyClass:
    """
    Currency codes are compared case-sensitively: "GBp" (pence) and "GBP" (pounds)
    are different currencies. A missing currency is treated as EUR.
    """
    code = (currency or config.REPORTING_CURRENCY).strip()
    if code == config.REPORTING_CURRENCY:
        return CurrencyClass.REPORTING
    if code == "USD":
        return CurrencyClass.LIVE_RATE
    return CurrencyClass.PURCHASE_RATE


def weighted_purchase_rate(transactions: Iterable[Transaction], position_key: Optional[str] = None) -> Decimal:
    """
    Shares-weighted average of the purchase-time exchange rates of the given
    transactions. Sales do not contribute a rate. GBp purchases already carry the
    pence-adjusted rate (GBP->EUR / 100), which is kept verbatim.

    Falls back to 1 when the purchases carry no positive share total
    or when there is no purchase at all.

    With `position_key`, only transactions of that position are weighted.
    """
    purchases = [
        tx for tx in transactions
        if tx.is_purchase and (position_key is None or tx.position_key == position_key)
    ]
    if not purchases:
        return ONE

    total_shares = Decimal("0")
    total_rate_weighted = Decimal("0")
    for purchase in purchases:
        rate = purchase.exchange_rate or ONE
        total_shares += purchase.shares
        total_rate_weighted += purchase.shares * rate

    if is_nan(total_shares) or is_nan(total_rate_weighted):
        logger.warning(f"Weighted purchase rate is NaN for {purchases[0].position_key}: non-numeric shares or rate in purchases.")
        return NAN

    if is_greater_than(total_shares, Decimal("0")):
        return total_rate_weighted / total_shares

    return ONE


def convert_to_eur(native_value: Decimal,
                   currency: Optional[str],
                   eur_per_usd: Optional[Decimal],
                   purchase_rate: Optional[Decimal] = None) -> Decimal:
    """
    Converts a native-currency value into EUR.

    EUR is returned unchanged. USD uses the live EUR-per-USD rate, which the caller
    must supply (including any fallback policy). Every other currency, GBp included,
    uses the shares-weighted purchase-time rate, since no live cross rate is assumed.
    """
    currency_class = classify_currency(currency)

    if currency_class == CurrencyClass.REPORTING:
        return native_value

    if currency_class == CurrencyClass.LIVE_RATE:
        if eur_per_usd is None:
            raise ValueError("A live EUR-per-USD rate is required to convert USD values; the caller must supply a fallback.")
        return native_value * eur_per_usd

    rate = purchase_rate if purchase_rate is not None else ONE
    return native_value * rate
