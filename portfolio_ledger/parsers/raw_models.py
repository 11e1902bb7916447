# portfolio_ledger/parsers/raw_models.py
from typing import Optional, Any
from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_validator

from portfolio_ledger.domain.enums import TransactionType
from portfolio_ledger.utils.type_utils import NAN, safe_decimal, parse_date
from portfolio_ledger import config as global_config


def _parse_numeric(v: Any) -> Optional[Decimal]:
    if v is None or str(v).strip() == "":
        return None
    parsed = safe_decimal(v)
    if parsed is None or not parsed.is_finite():
        if global_config.STRICT_NUMERIC_VALIDATION:
            raise ValueError(f"'{v}' is not a finite number")
        # Permissive mode: let the value reach the engine as NaN
        return NAN
    return parsed


class RawBaseRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, str_strip_whitespace=True)


class RawTransactionRecord(RawBaseRecord):
    # Field aliases follow the transaction store's camelCase JSON shape
    transaction_id: Optional[int] = Field(None, alias="id")
    transaction_type: TransactionType = Field(alias="type")
    company: str = Field(alias="company")
    symbol: Optional[str] = Field(None, alias="symbol")
    isin: Optional[str] = Field(None, alias="isin") # Only used to detect pence listings
    shares: Decimal = Field(alias="shares", allow_inf_nan=True)
    price: Decimal = Field(alias="price", allow_inf_nan=True)
    currency: str = Field("EUR", alias="currency")
    exchange_rate: Optional[Decimal] = Field(None, alias="exchangeRate", allow_inf_nan=True)
    commission: Optional[Decimal] = Field(None, alias="commission", allow_inf_nan=True)
    trade_date: date = Field(alias="date")
    total_cost: Optional[Decimal] = Field(None, alias="totalCost", allow_inf_nan=True) # Recomputed only when absent
    target_price: Optional[Decimal] = Field(None, alias="targetPrice", allow_inf_nan=True)
    stop_loss_price: Optional[Decimal] = Field(None, alias="stopLossPrice", allow_inf_nan=True)
    external_symbol_1: Optional[str] = Field(None, alias="externalSymbol1")
    external_symbol_2: Optional[str] = Field(None, alias="externalSymbol2")
    external_symbol_3: Optional[str] = Field(None, alias="externalSymbol3")

    @field_validator('shares', 'price', 'exchange_rate', 'commission', 'total_cost',
                     'target_price', 'stop_loss_price', mode='before')
    @classmethod
    def parse_decimal_fields(cls, v: Any) -> Optional[Decimal]:
        return _parse_numeric(v)

    @field_validator('transaction_type', mode='before')
    @classmethod
    def parse_transaction_type(cls, v: Any) -> TransactionType:
        if isinstance(v, TransactionType):
            return v
        return TransactionType.from_raw(v)

    @field_validator('trade_date', mode='before')
    @classmethod
    def parse_trade_date(cls, v: Any) -> date:
        parsed = parse_date(v)
        if parsed is None:
            raise ValueError(f"'{v}' is not a recognizable date")
        return parsed

    @field_validator('transaction_id', mode='before')
    @classmethod
    def parse_transaction_id(cls, v: Any) -> Optional[Any]:
        if v is None or str(v).strip() == "":
            return None
        return v

    @field_validator('currency', mode='before')
    @classmethod
    def default_currency(cls, v: Any) -> str:
        # Currency codes keep their case: "GBp" and "GBP" are different currencies
        if v is None or str(v).strip() == "":
            return global_config.REPORTING_CURRENCY
        return str(v).strip()


class RawQuoteRecord(RawBaseRecord):
    price: Optional[Decimal] = Field(None, alias="price")
    change: Optional[Decimal] = Field(None, alias="change")
    change_percent: Optional[Decimal] = Field(None, alias="changePercent")
    currency: Optional[str] = Field(None, alias="currency")
    source: Optional[str] = Field(None, alias="source")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator('price', 'change', 'change_percent', mode='before')
    @classmethod
    def parse_decimal_fields(cls, v: Any) -> Optional[Decimal]:
        # An unparsable quote is treated as a missing quote
        if v is None or str(v).strip() == "":
            return None
        parsed = safe_decimal(v)
        return parsed if parsed is not None and parsed.is_finite() else None

    @field_validator('updated_at', mode='before')
    @classmethod
    def parse_updated_at(cls, v: Any) -> Optional[Any]:
        if v is None or str(v).strip() == "":
            return None
        return v
