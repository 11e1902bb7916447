from enum import Enum


class TransactionType(Enum):
    PURCHASE = "purchase"
    SALE = "sale"

    @classmethod
    def from_raw(cls, value: str) -> "TransactionType":
        """Accepts the store's lowercase codes as well as enum names ("purchase", "PURCHASE", "buy")."""
        normalized = str(value).strip().lower()
        if normalized in ("purchase", "buy", "compra"):
            return cls.PURCHASE
        if normalized in ("sale", "sell", "venta"):
            return cls.SALE
        raise ValueError(f"Unknown transaction type '{value}'")


class CurrencyClass(Enum):
    """How a native-currency value is brought into the reporting currency."""
    REPORTING = "reporting"      # EUR, identity
    LIVE_RATE = "live_rate"      # USD, live EUR-per-USD rate supplied by the caller
    PURCHASE_RATE = "purchase_rate"  # everything else, shares-weighted purchase-time rate
