# gains_engine/cli.py
import argparse
from datetime import date
from typing import List, Optional

import gains_engine.config as config # For default paths and settings


def parse_arguments(argv: Optional[List[str]] = None):
    """Parses command line arguments for the application."""
    parser = argparse.ArgumentParser(description="Portfolio gains and Anexo J reporting engine")

    parser.add_argument("--data", default=config.DATA_FILE_PATH, help="Path to the portfolio export (JSON) produced by the backend.")
    parser.add_argument("--year", default=config.ALL_YEARS_OPTION,
                        help=f"Period to report: '{config.ALL_YEARS_OPTION}' or a four-digit year.")
    parser.add_argument("--current-year", default=None,
                        help="Treat this year as the current calendar year (defaults to today's year).")
    parser.add_argument("--tax-year", default=None,
                        help="Year for the Anexo J pre-fill. Defaults to last year when it has data, else the newest year.")

    # Reporting options
    parser.add_argument("--report-summary", action="store_true", help="Print the gains summary, holdings and chart buckets for --year.")
    parser.add_argument("--report-tax-form", action="store_true", help="Print the Anexo J pre-fill. Also generates a PDF report.")
    parser.add_argument("--purchase-value", action="store_true", help="Weight the allocation chart by cost basis instead of market value.")
    parser.add_argument("--pdf-output-file", type=str, default=config.PDF_OUTPUT_FILE_PATH,
                        help="Filename for the PDF report. Defaults to anexo_j_<tax_year>.pdf if --report-tax-form is used.")

    args = parser.parse_args(argv)

    if args.current_year is None:
        args.current_year = str(date.today().year)

    if args.year != config.ALL_YEARS_OPTION and not (len(args.year) == 4 and args.year.isdigit()):
        parser.error(f"--year must be '{config.ALL_YEARS_OPTION}' or a four-digit year, got '{args.year}'.")

    if not (len(args.current_year) == 4 and args.current_year.isdigit()):
        parser.error(f"--current-year must be a four-digit year, got '{args.current_year}'.")

    if not args.report_summary and not args.report_tax_form:
        args.report_summary = True

    return args
