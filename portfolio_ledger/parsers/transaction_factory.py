# portfolio_ledger/parsers/transaction_factory.py
import logging
from decimal import Decimal
from typing import Optional

from portfolio_ledger.domain.transactions import Transaction
from portfolio_ledger.parsers.raw_models import RawTransactionRecord
from portfolio_ledger import config as global_config

logger = logging.getLogger(__name__)


def normalize_currency(currency: Optional[str], symbol: Optional[str] = None, isin: Optional[str] = None) -> str:
    """
    Some brokers label London-listed (".L") pence-quoted securities as "GBP".
    Those are relabelled to the synthetic pence code "GBp" so their prices are not
    read as pounds.
    """
    code = (currency or global_config.REPORTING_CURRENCY).strip()
    ticker = (symbol or "").strip()
    isin_code = (isin or "").strip()
    if code == "GBP" and ticker.endswith(".L") and isin_code.startswith("GB"):
        logger.debug(f"Relabelling currency of '{ticker}' ({isin_code}) from GBP to {global_config.PENCE_CURRENCY_CODE}.")
        return global_config.PENCE_CURRENCY_CODE
    return code


def ingestion_exchange_rate(currency: str, rate_to_eur: Optional[Decimal]) -> Decimal:
    """
    The exchange rate stored on a new transaction, as a multiplier from `currency` to EUR.

    EUR is always 1. For GBp, `rate_to_eur` is the GBP->EUR rate and is divided by 100
    (1 GBp = 0.01 GBP). Any other currency stores `rate_to_eur` as given.
    """
    if currency == global_config.REPORTING_CURRENCY:
        return Decimal("1")
    if rate_to_eur is None:
        raise ValueError(f"An exchange rate to EUR is required for currency '{currency}'.")
    if currency == global_config.PENCE_CURRENCY_CODE:
        return rate_to_eur / global_config.PENCE_PER_POUND
    return rate_to_eur


def compute_total_cost(shares: Decimal, price: Decimal, exchange_rate: Decimal,
                       commission: Decimal, currency: str) -> Decimal:
    """EUR cash effect of a trade, as the store computes it at creation time."""
    if currency == global_config.REPORTING_CURRENCY:
        return shares * price + commission
    return shares * price * exchange_rate + commission


def transaction_from_record(record: RawTransactionRecord,
                            rate_to_eur: Optional[Decimal] = None) -> Transaction:
    """
    Builds a Transaction from a validated store record.

    The record's own `exchangeRate` wins; `rate_to_eur` (GBP->EUR for pence listings)
    is only consulted when the record carries none. A record relabelled from GBP to
    GBp carries a pound rate, which gets the same pence adjustment. A stored
    `totalCost` is trusted as given and only computed when missing.
    """
    currency = normalize_currency(record.currency, record.symbol, record.isin)
    relabelled_to_pence = record.currency != currency and currency == global_config.PENCE_CURRENCY_CODE

    if record.exchange_rate is not None:
        if currency == global_config.REPORTING_CURRENCY:
            exchange_rate = Decimal("1")
        elif relabelled_to_pence:
            exchange_rate = ingestion_exchange_rate(currency, record.exchange_rate)
        else:
            exchange_rate = record.exchange_rate
    elif currency == global_config.REPORTING_CURRENCY:
        exchange_rate = Decimal("1")
    elif rate_to_eur is not None:
        exchange_rate = ingestion_exchange_rate(currency, rate_to_eur)
    else:
        logger.warning(
            f"Transaction {record.transaction_id} ({record.company}) in {currency} has no exchange rate. Using 1."
        )
        exchange_rate = Decimal("1")

    commission = record.commission if record.commission is not None else Decimal("0")

    total_cost = record.total_cost
    if total_cost is None:
        total_cost = compute_total_cost(record.shares, record.price, exchange_rate, commission, currency)

    return Transaction(
        record.transaction_type,
        record.company,
        record.shares,
        record.price,
        record.trade_date,
        transaction_id=record.transaction_id,
        symbol=record.symbol or "",
        currency=currency,
        exchange_rate=exchange_rate,
        commission=commission,
        total_cost=total_cost,
        target_price=record.target_price,
        stop_loss_price=record.stop_loss_price,
        external_symbol_1=record.external_symbol_1,
        external_symbol_2=record.external_symbol_2,
        external_symbol_3=record.external_symbol_3,
    )
