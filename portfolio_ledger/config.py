# portfolio_ledger/config.py

from decimal import Decimal

# Default input/output locations for the command line runner
TRANSACTIONS_FILE_PATH = "data/transactions.csv"
QUOTES_FILE_PATH = "data/quotes.json"
REALIZED_GAINS_CSV_PATH = "reports/realized_gains.csv"

# Reporting currency of every EUR-normalized figure
REPORTING_CURRENCY = "EUR"

# Caller-side fallback when no live EUR/USD rate is available.
# The currency normalizer never reads this value, it always takes the rate as a parameter.
DEFAULT_EUR_PER_USD: Decimal = Decimal("0.92")

# Synthetic currency code for British pence (1 GBp = 0.01 GBP)
PENCE_CURRENCY_CODE = "GBp"
PENCE_PER_POUND: Decimal = Decimal("100")

# Shares at or below this value count as a closed position
CLOSED_POSITION_EPSILON: Decimal = Decimal("1e-6")

# Withholding-style deduction applied to positive realized gains in reports
WITHHOLDING_RATE: Decimal = Decimal("0.19")

# Reject non-numeric shares/price/rates at ingestion instead of letting NaN reach the engine
STRICT_NUMERIC_VALIDATION: bool = True

# Numerical Precision
INTERNAL_CALCULATION_PRECISION = 28
DECIMAL_ROUNDING_MODE = "ROUND_HALF_UP"

# Output/Reporting Precisions (display only, never used in intermediate calculations)
OUTPUT_PRECISION_AMOUNTS: Decimal = Decimal("0.01")
OUTPUT_PRECISION_PER_SHARE: Decimal = Decimal("0.000001")
PRECISION_QUANTITY: Decimal = Decimal("0.00000001")

# CSV export layout
CSV_FIELD_SEPARATOR = ";"
CSV_MAX_DECIMALS = 3
CSV_MAX_RATE_DECIMALS = 12

# Owner shown on generated PDF reports
PORTFOLIO_OWNER_NAME = "Portfolio Owner"  # Placeholder - Please update
