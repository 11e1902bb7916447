"""
Test Group: Transaction Ingestion

- Store records are validated by the raw pydantic models
- GBP-labelled London listings are relabelled to pence at ingestion
- Exchange rates and total costs are fixed at creation time
"""

from decimal import Decimal
from datetime import date

import pytest
from pydantic import ValidationError

from portfolio_ledger import config as global_config
from portfolio_ledger.domain.enums import TransactionType
from portfolio_ledger.parsers.raw_models import RawTransactionRecord, RawQuoteRecord
from portfolio_ledger.parsers.transaction_factory import (
    compute_total_cost,
    ingestion_exchange_rate,
    normalize_currency,
    transaction_from_record,
)


def _record(**overrides) -> RawTransactionRecord:
    row = {
        "id": "1",
        "type": "purchase",
        "company": "ACME",
        "symbol": "",
        "shares": "10",
        "price": "100",
        "currency": "EUR",
        "date": "2024-03-01",
    }
    row.update(overrides)
    return RawTransactionRecord(**row)


class TestRawTransactionRecord:
    def test_aliases_and_types(self):
        record = _record(exchangeRate="1", commission="2.5", totalCost="1002.5")

        assert record.transaction_id == 1
        assert record.transaction_type == TransactionType.PURCHASE
        assert record.shares == Decimal("10")
        assert record.commission == Decimal("2.5")
        assert record.total_cost == Decimal("1002.5")
        assert record.trade_date == date(2024, 3, 1)

    @pytest.mark.parametrize("raw, expected", [
        ("purchase", TransactionType.PURCHASE),
        ("BUY", TransactionType.PURCHASE),
        ("sale", TransactionType.SALE),
        ("Sell", TransactionType.SALE),
    ])
    def test_transaction_type_codes(self, raw, expected):
        assert _record(type=raw).transaction_type == expected

    def test_unknown_type_is_rejected(self):
        with pytest.raises(ValidationError):
            _record(type="dividend")

    @pytest.mark.parametrize("raw_date", ["2024-03-01", "2024-03-01T00:00:00.000Z", "01/03/2024", "01.03.2024"])
    def test_date_formats(self, raw_date):
        assert _record(date=raw_date).trade_date == date(2024, 3, 1)

    def test_missing_date_is_rejected(self):
        with pytest.raises(ValidationError):
            _record(date="")

    def test_decimal_comma_is_accepted(self):
        assert _record(price="12,5").price == Decimal("12.5")

    def test_empty_currency_defaults_to_eur(self):
        assert _record(currency="").currency == "EUR"

    def test_currency_case_is_preserved(self):
        assert _record(currency="GBp").currency == "GBp"

    def test_empty_id_becomes_none(self):
        assert _record(id="").transaction_id is None

    def test_extra_fields_are_ignored(self):
        assert _record(notes="bought on a whim").company == "ACME"


class TestNumericValidation:
    @pytest.mark.parametrize("field", ["shares", "price", "exchangeRate"])
    def test_non_numeric_is_rejected_in_strict_mode(self, field):
        with pytest.raises(ValidationError):
            _record(**{field: "abc"})

    def test_nan_literal_is_rejected_in_strict_mode(self):
        with pytest.raises(ValidationError):
            _record(shares="NaN")

    def test_permissive_mode_lets_nan_through(self, monkeypatch):
        monkeypatch.setattr(global_config, "STRICT_NUMERIC_VALIDATION", False)
        record = _record(shares="abc")

        assert record.shares.is_nan()


class TestRawQuoteRecord:
    def test_fields(self):
        record = RawQuoteRecord(price="12.5", changePercent="-1.2", currency="USD", updatedAt="2024-03-01T10:00:00Z")

        assert record.price == Decimal("12.5")
        assert record.change_percent == Decimal("-1.2")
        assert record.updated_at.year == 2024

    def test_unparsable_price_is_missing(self):
        assert RawQuoteRecord(price="n/a").price is None


class TestNormalizeCurrency:
    def test_london_gbp_listing_becomes_pence(self):
        assert normalize_currency("GBP", "TSCO.L", "GB0008847096") == "GBp"

    @pytest.mark.parametrize("currency, symbol, isin", [
        ("GBP", "TSCO", "GB0008847096"),
        ("GBP", "TSCO.L", "IE00B4L5Y983"),
        ("GBP", "TSCO.L", None),
        ("USD", "TSCO.L", "GB0008847096"),
    ])
    def test_other_combinations_are_untouched(self, currency, symbol, isin):
        assert normalize_currency(currency, symbol, isin) == currency

    def test_missing_currency_is_eur(self):
        assert normalize_currency(None) == "EUR"


class TestIngestionExchangeRate:
    def test_eur_is_one(self):
        assert ingestion_exchange_rate("EUR", Decimal("5")) == Decimal("1")

    def test_pence_rate_is_divided_by_one_hundred(self):
        assert ingestion_exchange_rate("GBp", Decimal("1.17")) == Decimal("0.0117")

    def test_other_currency_kept_as_given(self):
        assert ingestion_exchange_rate("USD", Decimal("0.92")) == Decimal("0.92")

    def test_missing_rate_is_rejected(self):
        with pytest.raises(ValueError):
            ingestion_exchange_rate("USD", None)


class TestTransactionFromRecord:
    def test_pence_purchase_cost_in_euro(self):
        # 100 shares at 250p with GBP->EUR 1.17: 250 GBP, 292.50 EUR
        record = _record(symbol="TSCO.L", isin="GB0008847096", currency="GBP", shares="100", price="250")
        tx = transaction_from_record(record, rate_to_eur=Decimal("1.17"))

        assert tx.currency == "GBp"
        assert tx.exchange_rate == Decimal("0.0117")
        assert tx.total_cost == Decimal("292.5000")

    def test_relabelled_pence_record_rate_is_adjusted(self):
        # The GBP label came with a pound rate: 250 GBP at 1.17 is 292.50 EUR
        record = _record(symbol="TSCO.L", isin="GB0008847096", currency="GBP",
                         shares="100", price="250", exchangeRate="1.17")
        tx = transaction_from_record(record, rate_to_eur=Decimal("9"))

        assert tx.currency == "GBp"
        assert tx.exchange_rate == Decimal("0.0117")
        assert tx.total_cost == Decimal("292.50")

    def test_pence_labelled_record_rate_is_kept(self):
        record = _record(symbol="TSCO.L", isin="GB0008847096", currency="GBp",
                         shares="100", price="250", exchangeRate="0.0117")
        tx = transaction_from_record(record)

        assert tx.exchange_rate == Decimal("0.0117")
        assert tx.total_cost == Decimal("292.50")

    def test_gbp_record_without_relabel_keeps_pound_rate(self):
        record = _record(symbol="TSCO", currency="GBP", shares="10", price="2.5", exchangeRate="1.17")
        tx = transaction_from_record(record)

        assert tx.currency == "GBP"
        assert tx.exchange_rate == Decimal("1.17")

    def test_record_rate_wins_over_ingestion_rate(self):
        record = _record(currency="USD", exchangeRate="0.9")
        tx = transaction_from_record(record, rate_to_eur=Decimal("0.5"))

        assert tx.exchange_rate == Decimal("0.9")
        assert tx.total_cost == Decimal("900.0")

    def test_eur_rate_is_forced_to_one(self):
        tx = transaction_from_record(_record(exchangeRate="1.3", commission="2"))

        assert tx.exchange_rate == Decimal("1")
        assert tx.total_cost == Decimal("1002")

    def test_stored_total_cost_is_trusted(self):
        tx = transaction_from_record(_record(totalCost="555"))
        assert tx.total_cost == Decimal("555")

    def test_missing_rate_falls_back_to_one(self, caplog):
        tx = transaction_from_record(_record(currency="CHF"))

        assert tx.exchange_rate == Decimal("1")
        assert "has no exchange rate" in caplog.text

    def test_commission_added_in_euro(self):
        assert compute_total_cost(Decimal("10"), Decimal("10"), Decimal("0.5"), Decimal("3"), "USD") == Decimal("53.0")
