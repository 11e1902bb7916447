# portfolio_ledger/cli.py
import argparse
from decimal import Decimal, InvalidOperation

from portfolio_ledger import config # For default paths and settings


def _decimal_argument(value: str) -> Decimal:
    try:
        parsed = Decimal(value.replace(',', '.'))
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"'{value}' is not a number")
    if not parsed.is_finite() or parsed <= 0:
        raise argparse.ArgumentTypeError(f"'{value}' must be a positive number")
    return parsed


def parse_arguments(argv=None):
    """Parses command line arguments for the application."""
    parser = argparse.ArgumentParser(description="Portfolio position accounting and multi-currency valuation")

    # File paths
    parser.add_argument("--transactions", default=config.TRANSACTIONS_FILE_PATH, help="Path to the transactions CSV or JSON export.")
    parser.add_argument("--quotes", default=config.QUOTES_FILE_PATH, help="Path to the live quotes JSON file, keyed by position key.")

    # Valuation inputs
    parser.add_argument("--eur-per-usd", type=_decimal_argument, default=None,
                        help=f"Live EUR per 1 USD. Falls back to {config.DEFAULT_EUR_PER_USD} when omitted.")
    parser.add_argument("--fifo-prior-sales", action="store_true",
                        help="Let earlier sales consume FIFO lots before each sale, and ignore purchases after the sale date.")

    # Reporting options
    parser.add_argument("--report-positions", action="store_true", help="Print open positions, closed history and the portfolio summary.")
    parser.add_argument("--export-realized-csv", type=str, metavar="PATH", nargs="?", const=config.REALIZED_GAINS_CSV_PATH, default=None,
                        help=f"Write the realized gains CSV. Defaults to {config.REALIZED_GAINS_CSV_PATH} when no path is given.")
    parser.add_argument("--pdf-output-file", type=str, default=None, help="Filename for the PDF report.")

    return parser.parse_args(argv)
