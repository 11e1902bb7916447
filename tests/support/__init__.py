"""
Test Support Module

Shared test infrastructure:
- Transaction factories
- CSV creators
"""

from tests.support.factories import BASE_DATE, day, make_purchase, make_sale
from tests.support.csv_creators import TRANSACTIONS_CSV_HEADER, create_transactions_csv_string, write_file

__all__ = [
    "BASE_DATE",
    "day",
    "make_purchase",
    "make_sale",
    "TRANSACTIONS_CSV_HEADER",
    "create_transactions_csv_string",
    "write_file",
]
