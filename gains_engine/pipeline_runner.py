# gains_engine/pipeline_runner.py
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional

import gains_engine.config as config
from gains_engine.domain.records import PortfolioDataSet
from gains_engine.domain.results import (
    AnexoJReport, ChartBucket, EnrichedHolding, EnrichedLot, FeeCharts, HoldingsTotals, PeriodData,
    ProductCharts, SummaryMetrics,
)
from gains_engine.engine.aggregation import filter_period_data, normalize_sale_legs
from gains_engine.engine.charts import prepare_allocation_chart, prepare_dividend_charts, prepare_fee_charts, prepare_sales_charts
from gains_engine.engine.holdings import (
    calculate_holdings_totals, calculate_total_unrealized_pl, enrich_holding_lots, enrich_holdings,
    prepare_holdings_for_view,
)
from gains_engine.engine.summary import calculate_summary_metrics, get_available_years
from gains_engine.engine.tax_form import (
    AnexoJBuilder, ControlSumMismatchError, default_tax_year, get_tax_years, verify_control_sums,
)
from gains_engine.utils.date_utils import is_all_years

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportContext:
    """Everything time-dependent the pipeline needs, passed in instead of read from the clock."""
    selected_year: str = config.ALL_YEARS_OPTION
    current_year: str = field(default_factory=lambda: str(date.today().year))
    today: date = field(default_factory=date.today)
    tax_year: Optional[str] = None # Defaults to last year when it has data
    use_purchase_value: bool = False


@dataclass
class ReportOutput:
    available_years: List[str]
    period_data: PeriodData
    summary: SummaryMetrics
    unrealized_stock_pl: Decimal
    holdings: List[EnrichedHolding]
    holdings_totals: HoldingsTotals
    holding_lots: List[EnrichedLot]
    sales_charts: ProductCharts
    dividend_charts: ProductCharts
    fee_charts: FeeCharts
    allocation_chart: ChartBucket
    tax_years: List[str]
    anexo_j: Optional[AnexoJReport] = None


def run_reporting_pipeline(dataset: PortfolioDataSet, context: ReportContext, include_tax_form: bool = True) -> ReportOutput:
    """
    Runs every view over one dataset: period slice, summary, holdings, charts and,
    optionally, the Anexo J pre-fill with its control sums verified.
    Raises ControlSumMismatchError if the tax form does not reconcile with its input.
    """
    selected_year = context.selected_year
    logger.info(f"Running reporting pipeline for period '{selected_year}' (current year {context.current_year}).")

    available_years = get_available_years(dataset.stock_sales, dataset.option_sales,
                                          dataset.dividend_summary, dataset.holdings_by_year)
    if not is_all_years(selected_year) and selected_year not in available_years:
        logger.warning(f"Year {selected_year} has no data; views will be empty.")

    period_data = filter_period_data(dataset, selected_year, context.current_year)

    unrealized_stock_pl = calculate_total_unrealized_pl(dataset.current_holdings) if is_all_years(selected_year) else Decimal('0')
    summary = calculate_summary_metrics(period_data, dataset.transactions, selected_year, unrealized_stock_pl)

    base_holdings = prepare_holdings_for_view(
        selected_year, dataset.current_holdings, dataset.holdings_by_year,
        dataset.transactions, dataset.stock_sales, dataset.option_sales, context.current_year,
    )
    holdings = enrich_holdings(base_holdings)
    holdings_totals = calculate_holdings_totals(holdings)
    logger.info(f"Prepared {len(holdings)} holdings for '{selected_year}'.")

    holding_lots: List[EnrichedLot] = []
    if is_all_years(selected_year) or selected_year == context.current_year:
        holding_lots = enrich_holding_lots(dataset.current_holding_lots, today=context.today)

    sale_legs = normalize_sale_legs(period_data.stock_sales, period_data.option_sales)
    sales_charts = prepare_sales_charts(sale_legs, selected_year)
    dividend_charts = prepare_dividend_charts(period_data.dividend_transactions, selected_year)
    fee_charts = prepare_fee_charts(period_data.fees, selected_year)
    allocation_chart = prepare_allocation_chart(holdings, use_purchase_value=context.use_purchase_value)

    tax_years = get_tax_years(dataset.stock_sales, dataset.option_sales, dataset.dividend_summary)
    anexo_j = None
    if include_tax_form:
        tax_year = context.tax_year or default_tax_year(tax_years, context.current_year)
        anexo_j = AnexoJBuilder(dataset.stock_sales, dataset.option_sales, dataset.dividend_summary).build(tax_year)
        try:
            verify_control_sums(anexo_j, dataset.stock_sales, dataset.option_sales, dataset.dividend_summary)
        except ControlSumMismatchError as e:
            logger.error(f"Anexo J for {tax_year} failed reconciliation: {e}")
            raise

    logger.info("Reporting pipeline completed.")
    return ReportOutput(
        available_years=available_years,
        period_data=period_data,
        summary=summary,
        unrealized_stock_pl=unrealized_stock_pl,
        holdings=holdings,
        holdings_totals=holdings_totals,
        holding_lots=holding_lots,
        sales_charts=sales_charts,
        dividend_charts=dividend_charts,
        fee_charts=fee_charts,
        allocation_chart=allocation_chart,
        tax_years=tax_years,
        anexo_j=anexo_j,
    )
