# portfolio_ledger/main.py
import logging
import sys
from decimal import getcontext

# Configuration and CLI
from portfolio_ledger import config
from portfolio_ledger.cli import parse_arguments

# Core pipeline runner
from portfolio_ledger.pipeline_runner import run_portfolio_pipeline, ProcessingOutput

# Reporting
from portfolio_ledger.reporting.console_reporter import generate_console_portfolio_report
from portfolio_ledger.reporting.csv_exporter import write_realized_gains_csv
from portfolio_ledger.reporting.pdf_generator import PdfReportGenerator

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def setup_decimal_context():
    """Sets the global decimal precision and rounding mode."""
    getcontext().prec = config.INTERNAL_CALCULATION_PRECISION
    valid_rounding_modes = ["ROUND_CEILING", "ROUND_DOWN", "ROUND_FLOOR", "ROUND_HALF_DOWN",
                            "ROUND_HALF_EVEN", "ROUND_HALF_UP", "ROUND_UP", "ROUND_05UP"]
    rounding_mode_to_set = config.DECIMAL_ROUNDING_MODE
    if rounding_mode_to_set not in valid_rounding_modes:
        logger.warning(f"Invalid DECIMAL_ROUNDING_MODE '{rounding_mode_to_set}' in config. Using ROUND_HALF_UP as fallback.")
        rounding_mode_to_set = "ROUND_HALF_UP"

    getcontext().rounding = rounding_mode_to_set
    logger.info(f"Global decimal precision set to {getcontext().prec}, rounding mode to {getcontext().rounding}.")


def main_application(argv=None):
    """
    Main application entry point.
    Parses arguments, runs processing, and generates reports.
    """
    args = parse_arguments(argv)
    setup_decimal_context()

    logger.info("Starting portfolio ledger...")

    try:
        processing_results: ProcessingOutput = run_portfolio_pipeline(
            transactions_file_path=args.transactions,
            quotes_file_path=args.quotes,
            eur_per_usd=args.eur_per_usd,
            account_for_prior_sales=args.fifo_prior_sales,
        )
    except Exception as e:
        logger.critical(f"Portfolio pipeline failed: {e}. Exiting.", exc_info=True)
        sys.exit(1)

    if args.report_positions:
        generate_console_portfolio_report(
            active_positions=processing_results.active_positions,
            unrealized=processing_results.unrealized,
            closed_transactions=processing_results.closed_transactions,
            realized_gains=processing_results.realized_gains,
            historical_pnl=processing_results.historical_pnl,
            summary=processing_results.summary,
            eur_per_usd=processing_results.eur_per_usd,
        )

    if args.export_realized_csv:
        try:
            write_realized_gains_csv(processing_results.realized_gains, args.export_realized_csv)
        except OSError as e:
            logger.error(f"Could not write realized gains CSV '{args.export_realized_csv}': {e}", exc_info=True)

    if args.pdf_output_file:
        logger.info(f"Generating PDF report to {args.pdf_output_file}...")
        pdf_generator = PdfReportGenerator(
            summary=processing_results.summary,
            active_positions=processing_results.active_positions,
            unrealized=processing_results.unrealized,
            realized_gains=processing_results.realized_gains,
            historical_pnl=processing_results.historical_pnl,
            eur_per_usd=processing_results.eur_per_usd,
        )
        try:
            pdf_generator.generate_report(args.pdf_output_file)
        except Exception as e:
            logger.error(f"PDF report '{args.pdf_output_file}' could not be generated: {e}")

    logger.info("Processing finished.")
    unmatched = [g for g in processing_results.realized_gains if g.unmatched_shares]
    if unmatched:
        logger.warning(f"{len(unmatched)} sales had shares without a matching purchase lot. Review the transaction log.")


if __name__ == "__main__":
    main_application()
