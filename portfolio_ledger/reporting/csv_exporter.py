# portfolio_ledger/reporting/csv_exporter.py
import logging
import os
from decimal import Decimal
from typing import Iterable, List

from portfolio_ledger.domain.results import RealizedGain
from portfolio_ledger.reporting.reporting_utils import (
    format_number_for_csv, format_exchange_rate, format_percent_for_csv, format_date_dmy,
)
from portfolio_ledger import config

logger = logging.getLogger(__name__)

UTF8_BOM = '\ufeff'

# Column layout expected by the spreadsheet that consumes the export
REALIZED_GAINS_CSV_HEADER: List[str] = [
    'Empresa',
    'Fecha Com',
    'Fecha Ven',
    'Títulos',
    'Precio com',
    'Precio $ com',
    'Comision com',
    'Precio en € com',
    'Accion ven',
    'Precio Ven',
    'Comision ven',
    'Precio en € ven',
    'Ganancias',
    'Precio $ ven',
    'Ganancia en €',
    'Porcentaje',
    'Rentenciones',
    'Retencion',
    '% Retencion',
    'Ganancia real',
]


def _format_shares(shares: Decimal) -> str:
    text = f"{shares:f}"
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return text


def realized_gain_to_row(gain: RealizedGain) -> List[str]:
    return [
        gain.company,
        format_date_dmy(gain.average_purchase_date),
        format_date_dmy(gain.sale_date),
        _format_shares(gain.shares_sold),
        format_number_for_csv(gain.cost_basis_native_with_commission),
        format_exchange_rate(gain.purchase_exchange_rate),
        format_number_for_csv(gain.purchase_commission),
        format_number_for_csv(gain.cost_basis_native_in_eur),
        format_number_for_csv(gain.sale_price),
        format_number_for_csv(gain.sale_proceeds_native),
        format_number_for_csv(gain.sale_commission),
        format_number_for_csv(gain.net_sale_proceeds_eur),
        format_number_for_csv(gain.gain_native),
        format_exchange_rate(gain.sale_exchange_rate),
        format_number_for_csv(gain.gain_eur),
        format_percent_for_csv(gain.gain_native_percent),
        'NO', # Retention already applied at source
        format_number_for_csv(gain.retention_eur),
        format_percent_for_csv(gain.withholding_rate_applied * Decimal("100")),
        format_number_for_csv(gain.net_gain_eur),
    ]


def escape_csv_cell(cell: object) -> str:
    """
    Doubles embedded quotes and wraps the cell in quotes when it contains the field
    separator, a comma, a quote or a line break. Decimal-comma numbers ("45,161%")
    are therefore quoted as well.
    """
    text = str(cell).replace('"', '""')
    if any(ch in text for ch in (config.CSV_FIELD_SEPARATOR, ',', '"', '\n', '\r')):
        return f'"{text}"'
    return text


def _csv_line(cells: Iterable[object]) -> str:
    return config.CSV_FIELD_SEPARATOR.join(escape_csv_cell(cell) for cell in cells)


def generate_realized_gains_csv(realized_gains: Iterable[RealizedGain]) -> str:
    """
    One row per sale, ';'-separated, prefixed with a UTF-8 BOM so spreadsheet
    applications pick up the encoding. Returns an empty string when there is no sale.
    """
    gains = list(realized_gains)
    if not gains:
        logger.warning("No sales to export; realized gains CSV not generated.")
        return ""

    lines = [_csv_line(REALIZED_GAINS_CSV_HEADER)]
    lines.extend(_csv_line(realized_gain_to_row(gain)) for gain in gains)
    return UTF8_BOM + '\n'.join(lines) + '\n'


def write_realized_gains_csv(realized_gains: Iterable[RealizedGain], output_file_path: str) -> bool:
    content = generate_realized_gains_csv(realized_gains)
    if not content:
        return False

    directory = os.path.dirname(output_file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(output_file_path, mode='w', encoding='utf-8', newline='') as csvfile:
        csvfile.write(content)
    logger.info(f"Realized gains CSV written to {output_file_path}")
    return True
