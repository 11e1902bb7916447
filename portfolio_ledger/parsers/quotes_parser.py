# portfolio_ledger/parsers/quotes_parser.py
import json
import logging
from decimal import Decimal
from typing import Any, Dict, Mapping

from pydantic import ValidationError

from .raw_models import RawQuoteRecord
from portfolio_ledger.domain.positions import Quote

logger = logging.getLogger(__name__)


def quotes_from_mapping(payload: Mapping[str, Any], source: str = "<memory>") -> Dict[str, Quote]:
    """
    Quotes keyed by position key. Entries without a usable price are dropped, so the
    affected positions fall back to their cost basis during valuation.
    """
    quotes: Dict[str, Quote] = {}
    for position_key, entry in payload.items():
        if not isinstance(entry, dict):
            # A bare number is accepted as the price
            entry = {"price": entry}
        try:
            record = RawQuoteRecord(**entry)
        except ValidationError as e:
            logger.warning(f"Invalid quote for '{position_key}' in {source}: {e.errors()}")
            continue
        if record.price is None:
            logger.warning(f"Quote for '{position_key}' in {source} has no usable price; ignoring it.")
            continue
        quotes[position_key] = Quote(
            price=record.price,
            change=record.change,
            change_percent=record.change_percent,
            currency=record.currency,
            source=record.source,
            updated_at=record.updated_at,
        )
    return quotes


def parse_quotes_json(file_path: str, encoding: str = 'utf-8') -> Dict[str, Quote]:
    try:
        with open(file_path, mode='r', encoding=encoding) as jsonfile:
            payload = json.load(jsonfile, parse_float=Decimal)
    except FileNotFoundError:
        logger.warning(f"Quotes file not found: {file_path}. All positions will be valued at cost basis.")
        return {}
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error reading quotes file {file_path}: {e}")
        return {}

    if not isinstance(payload, dict):
        logger.error(f"Quotes file {file_path} must contain an object keyed by position key.")
        return {}

    quotes = quotes_from_mapping(payload, source=file_path)
    logger.info(f"Loaded {len(quotes)} quotes from {file_path}.")
    return quotes
