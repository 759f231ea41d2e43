# gains_engine/config.py

from decimal import Decimal

# Default input/output locations for the CLI
DATA_FILE_PATH = "data/portfolio_export.json"
PDF_OUTPUT_FILE_PATH = None  # Defaults to anexo_j_<year>.pdf when --report-tax-form is used

# Selector sentinels
ALL_YEARS_OPTION = "all"
NO_YEAR_SELECTED = ""

# Name of the dividend summary source; its top-level keys are years, not rows
DIVIDEND_SUMMARY_SOURCE = "DividendTaxResult"

MONTH_NAMES_CHART: list[str] = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

# Anexo J (Portuguese IRS) line numbering and income codes
ANEXO_J_DIVIDEND_FIRST_LINE = 801   # Quadro 8 A
ANEXO_J_STOCK_FIRST_LINE = 951      # Quadro 9.2 A
ANEXO_J_OPTION_FIRST_LINE = 991     # Quadro 9.2 B
ANEXO_J_DIVIDEND_CODE = "E11"
ANEXO_J_STOCK_CODE = "G01"
ANEXO_J_OPTION_CODE = "G30"
UNKNOWN_COUNTRY = "Unknown"

# Chart bucketing
TOP_N_PRODUCTS = 9
TOP_N_ALLOCATION = 7
OTHERS_LABEL = "Outros"
UNKNOWN_PRODUCT_LABEL = "Unknown"

# Numerical Precision
INTERNAL_CALCULATION_PRECISION = 28
DECIMAL_ROUNDING_MODE = "ROUND_HALF_UP"

# Output/Reporting Precisions (final display only, never intermediate calculations)
OUTPUT_PRECISION_AMOUNTS: Decimal = Decimal("0.01")
OUTPUT_PRECISION_PER_SHARE: Decimal = Decimal("0.000001")
PRECISION_QUANTITY: Decimal = Decimal("0.00000001")
OUTPUT_PRECISION_PERCENT: Decimal = Decimal("0.01")

# Values with an absolute size below this are shown with TINY_VALUE_FRACTION_DIGITS decimals
TINY_VALUE_THRESHOLD: Decimal = Decimal("0.01")
TINY_VALUE_FRACTION_DIGITS = 4
DEFAULT_FRACTION_DIGITS = 2
MAX_FRACTION_DIGITS = 20 # Larger requests are capped, never rejected

# Logging
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Report metadata (PDF title page)
TAXPAYER_NAME = "Contribuinte"  # Placeholder - Please update
TAXPAYER_NIF = "000000000"      # Placeholder - Please update
REPORT_VERSION = "v1.0"

# Dividend product chart keeps its own "others" label
DIVIDEND_OTHERS_LABEL = "Others"

# Fee categories as shown in reports; unknown categories are shown unchanged
FEE_CATEGORY_TRANSLATIONS: dict[str, str] = {
    "Trade Commission": "Comissões de transação",
    "Brokerage Fee": "Custo corretagem",
    "Interest": "Juros",
}
