# gains_engine/engine/summary.py
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

import gains_engine.config as config
from gains_engine.domain.enums import TransactionSubtype, TransactionType
from gains_engine.domain.records import DividendTaxSummary, HistoricalHoldingLot, OptionSaleRecord, StockSaleRecord, Transaction
from gains_engine.domain.results import PeriodData, SummaryMetrics, TradeExtreme
from gains_engine.engine.aggregation import normalize_sale_legs
from gains_engine.utils.date_utils import extract_years_from_data, filter_by_year, is_all_years

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


def _find_trade_extremes(period_data: PeriodData):
    best: Optional[TradeExtreme] = None
    worst: Optional[TradeExtreme] = None
    # Strict comparisons: on ties the first leg seen (stocks before options) wins
    for leg in normalize_sale_legs(period_data.stock_sales, period_data.option_sales):
        if best is None or leg.delta > best.value:
            best = TradeExtreme(name=leg.product_name, value=leg.delta)
        if worst is None or leg.delta < worst.value:
            worst = TradeExtreme(name=leg.product_name, value=leg.delta)
    return best, worst


def calculate_summary_metrics(period_data: PeriodData,
                              transactions: Optional[List[Transaction]],
                              selected_year: Optional[str],
                              unrealized_stock_pl: Decimal = ZERO) -> SummaryMetrics:
    """
    Headline figures for the selected period.

    Total P/L adds stock and option deltas, gross dividends (withholding rows excluded)
    and fees (already negative). Unrealized P/L of today's positions only counts in the
    'all years' view, as does the return on net deposits.
    """
    all_years = is_all_years(selected_year)

    stock_pl = sum((s.delta for s in period_data.stock_sales), ZERO)
    option_pl = sum((o.delta for o in period_data.option_sales), ZERO)
    dividend_pl = sum(
        (tx.amount_eur for tx in period_data.dividend_transactions
         if tx.transaction_subtype != TransactionSubtype.TAX.value),
        ZERO,
    )
    total_taxes_and_commissions = sum((f.amount_eur for f in period_data.fees), ZERO)

    total_pl = stock_pl + option_pl + dividend_pl + total_taxes_and_commissions
    if all_years:
        total_pl += unrealized_stock_pl

    capital_transactions = transactions or []
    if not all_years:
        capital_transactions = filter_by_year(capital_transactions, 'date', selected_year)
    total_deposits = sum(
        (tx.amount_eur for tx in capital_transactions if tx.transaction_type == TransactionType.CASH.value),
        ZERO,
    )

    return_percentage: Optional[Decimal] = None
    if all_years and total_deposits > 0:
        return_percentage = total_pl / total_deposits * Decimal('100')

    best_trade, worst_trade = _find_trade_extremes(period_data)

    logger.debug(f"Summary for '{selected_year}': total P/L {total_pl}, deposits {total_deposits}.")
    return SummaryMetrics(
        stock_pl=stock_pl,
        option_pl=option_pl,
        dividend_pl=dividend_pl,
        total_taxes_and_commissions=total_taxes_and_commissions,
        total_pl=total_pl,
        total_deposits=total_deposits,
        return_percentage=return_percentage,
        best_trade=best_trade,
        worst_trade=worst_trade,
    )


def get_available_years(stock_sales: Optional[Iterable[StockSaleRecord]],
                        option_sales: Optional[Iterable[OptionSaleRecord]],
                        dividend_summary: Optional[DividendTaxSummary],
                        holdings_by_year: Optional[Dict[str, List[HistoricalHoldingLot]]] = None) -> List[str]:
    """Years for the period selector: the 'all' sentinel followed by every year with data, newest first."""
    sources: Dict[str, Any] = {
        'stockSales': list(stock_sales or []),
        'optionSales': list(option_sales or []),
        config.DIVIDEND_SUMMARY_SOURCE: dividend_summary or {},
        'holdingsByYear': holdings_by_year or {},
    }
    accessors = {
        'stockSales': 'sale_date',
        'optionSales': 'close_date',
        config.DIVIDEND_SUMMARY_SOURCE: None,
        'holdingsByYear': None,
    }
    years = [y for y in extract_years_from_data(sources, accessors)
             if y not in (config.ALL_YEARS_OPTION, config.NO_YEAR_SELECTED)]
    return [config.ALL_YEARS_OPTION] + years
