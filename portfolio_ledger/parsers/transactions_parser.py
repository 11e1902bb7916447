# portfolio_ledger/parsers/transactions_parser.py
import csv
import json
import logging
from typing import Any, Dict, Iterable, List, Optional
from decimal import Decimal
from pydantic import ValidationError

from .raw_models import RawTransactionRecord
from .transaction_factory import transaction_from_record
from portfolio_ledger.domain.transactions import Transaction

logger = logging.getLogger(__name__)


def transactions_from_rows(rows: Iterable[Dict[str, Any]],
                           source: str = "<memory>",
                           first_row_number: int = 1,
                           rate_to_eur: Optional[Decimal] = None) -> List[Transaction]:
    """
    Validates store rows one by one. A row that fails validation is logged and
    skipped, so one bad record never hides the rest of the log.
    """
    transactions: List[Transaction] = []
    for i, row_dict in enumerate(rows):
        row_number = i + first_row_number
        try:
            record = RawTransactionRecord(**row_dict)
            transactions.append(transaction_from_record(record, rate_to_eur))
        except ValidationError as e:
            logger.error(f"Validation error in {source} row {row_number}: {row_dict}. Error: {e.errors()}")
        except (ValueError, TypeError) as e:
            logger.error(f"Could not build transaction from {source} row {row_number}: {row_dict}. Error: {e}")
    logger.info(f"Loaded {len(transactions)} transactions from {source}.")
    return transactions


def parse_transactions_csv(file_path: str, encoding: str = 'utf-8-sig', delimiter: str = ',') -> List[Transaction]:
    """Reads a transaction export whose header row uses the store's field names (id, type, company, ...)."""
    try:
        with open(file_path, mode='r', encoding=encoding, newline='') as csvfile:
            reader = csv.DictReader(csvfile, delimiter=delimiter)
            # Header is line 1, so the first data row is line 2
            return transactions_from_rows(reader, source=file_path, first_row_number=2)
    except FileNotFoundError:
        logger.error(f"Transactions file not found: {file_path}")
    except (OSError, csv.Error) as e:
        logger.error(f"Error reading transactions file {file_path}: {e}")
    return []


def parse_transactions_json(file_path: str, encoding: str = 'utf-8') -> List[Transaction]:
    """Accepts either a JSON array of transactions or an object with a "transactions" array."""
    try:
        with open(file_path, mode='r', encoding=encoding) as jsonfile:
            payload = json.load(jsonfile, parse_float=Decimal)
    except FileNotFoundError:
        logger.error(f"Transactions file not found: {file_path}")
        return []
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error reading transactions file {file_path}: {e}")
        return []

    if isinstance(payload, dict):
        payload = payload.get("transactions", [])
    if not isinstance(payload, list):
        logger.error(f"Transactions file {file_path} does not contain a list of transactions.")
        return []

    rows = [row for row in payload if isinstance(row, dict)]
    if len(rows) != len(payload):
        logger.warning(f"Skipped {len(payload) - len(rows)} non-object entries in {file_path}.")
    return transactions_from_rows(rows, source=file_path)


def parse_transactions_file(file_path: str) -> List[Transaction]:
    if file_path.lower().endswith(".json"):
        return parse_transactions_json(file_path)
    return parse_transactions_csv(file_path)
