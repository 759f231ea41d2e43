# gains_engine/main.py
import logging
import sys
from decimal import getcontext
from typing import List, Optional

# Configuration and CLI
import gains_engine.config as config
from gains_engine.cli import parse_arguments

from gains_engine.loaders import load_dataset_from_json
from gains_engine.pipeline_runner import ReportContext, ReportOutput, run_reporting_pipeline
from gains_engine.engine.tax_form import ControlSumMismatchError

# Reporting
from gains_engine.reporting.console_reporter import (
    generate_console_chart_report,
    generate_console_holdings_report,
    generate_console_lots_report,
    generate_console_summary_report,
    generate_console_tax_form_report,
)
from gains_engine.reporting.pdf_generator import AnexoJPdfGenerator

logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO), format=config.LOG_FORMAT)
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


def _print_summary_reports(output: ReportOutput, selected_year: str):
    print(f"\nAnos disponíveis: {', '.join(output.available_years)}")
    generate_console_summary_report(output.summary, selected_year)
    generate_console_holdings_report(output.holdings, output.holdings_totals)
    if output.holding_lots:
        generate_console_lots_report(output.holding_lots)

    print("\n--- Gráficos ---")
    generate_console_chart_report("L/P por produto", output.sales_charts.by_product)
    generate_console_chart_report("L/P por período", output.sales_charts.time_series)
    generate_console_chart_report("Dividendos por produto", output.dividend_charts.by_product)
    generate_console_chart_report("Dividendos por período", output.dividend_charts.time_series)
    generate_console_chart_report("Taxas por corretora", output.fee_charts.by_source)
    generate_console_chart_report("Taxas por categoria", output.fee_charts.by_category)
    generate_console_chart_report("Taxas por período", output.fee_charts.time_series)
    generate_console_chart_report("Alocação", output.allocation_chart)


def main_application(argv: Optional[List[str]] = None) -> int:
    """
    Main application entry point.
    Parses arguments, loads the export, runs the pipeline, and generates reports.
    """
    args = parse_arguments(argv)
    setup_decimal_context()

    logger.info("Starting portfolio gains reporting engine...")

    try:
        dataset = load_dataset_from_json(args.data)
    except FileNotFoundError:
        logger.critical(f"Portfolio export not found: {args.data}. Exiting.")
        return 1
    except ValueError as e:
        logger.critical(f"Could not read portfolio export: {e}. Exiting.")
        return 1

    context = ReportContext(
        selected_year=args.year,
        current_year=args.current_year,
        tax_year=args.tax_year,
        use_purchase_value=args.purchase_value,
    )

    try:
        output = run_reporting_pipeline(dataset, context, include_tax_form=args.report_tax_form)
    except ControlSumMismatchError as e:
        logger.critical(f"Anexo J control sums do not reconcile: {e}. Exiting.")
        return 1

    if args.report_summary:
        _print_summary_reports(output, args.year)

    if args.report_tax_form and output.anexo_j is not None:
        generate_console_tax_form_report(output.anexo_j)
        if output.anexo_j.is_empty:
            logger.warning(f"Anexo J for '{output.anexo_j.tax_year}' has no rows; skipping the PDF report.")
        else:
            pdf_output_file = args.pdf_output_file or f"anexo_j_{output.anexo_j.tax_year}.pdf"
            logger.info(f"Generating PDF report to {pdf_output_file}...")
            try:
                AnexoJPdfGenerator(output.anexo_j).generate_report(pdf_output_file)
            except (OSError, ValueError) as e:
                logger.critical(f"PDF report could not be written: {e}. Exiting.")
                return 1

    logger.info("Processing finished.")
    return 0


if __name__ == "__main__":
    sys.exit(main_application())
