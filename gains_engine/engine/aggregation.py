# gains_engine/engine/aggregation.py
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional

import gains_engine.config as config
from gains_engine.domain.enums import SaleKind, TransactionSubtype, TransactionType
from gains_engine.domain.records import OptionSaleRecord, PortfolioDataSet, StockSaleRecord, Transaction
from gains_engine.domain.results import IsinMetrics, PeriodData, SaleLeg
from gains_engine.utils.date_utils import filter_by_year, get_month_index, get_year_string, is_all_years
from gains_engine.utils.type_utils import get_field, safe_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


def normalize_stock_sale(sale: StockSaleRecord) -> SaleLeg:
    return SaleLeg(
        kind=SaleKind.STOCK,
        product_name=sale.product_name,
        isin=sale.isin,
        open_date=sale.buy_date,
        close_date=sale.sale_date,
        delta=sale.delta,
        commission=sale.commission,
        country_code=sale.country_code,
        open_amount_eur=sale.buy_amount_eur,
        close_amount_eur=sale.sale_amount_eur,
    )


def normalize_option_sale(sale: OptionSaleRecord) -> SaleLeg:
    return SaleLeg(
        kind=SaleKind.OPTION,
        product_name=sale.product_name,
        isin=sale.isin,
        open_date=sale.open_date,
        close_date=sale.close_date,
        delta=sale.delta,
        commission=sale.commission,
        country_code=sale.country_code,
        open_amount_eur=sale.open_amount_eur,
        close_amount_eur=sale.close_amount_eur,
    )


def normalize_sale_legs(stock_sales: Optional[Iterable[StockSaleRecord]],
                        option_sales: Optional[Iterable[OptionSaleRecord]]) -> List[SaleLeg]:
    """Stock legs first, then option legs. Order matters for best/worst trade ties."""
    legs = [normalize_stock_sale(s) for s in (stock_sales or [])]
    legs.extend(normalize_option_sale(o) for o in (option_sales or []))
    return legs


def _is_dividend_income(tx: Any) -> bool:
    return (get_field(tx, 'transaction_type') == TransactionType.DIVIDEND.value
            and get_field(tx, 'transaction_subtype') != TransactionSubtype.TAX.value)


def aggregate_by_isin(transactions: Optional[Iterable[Transaction]],
                      stock_sales: Optional[Iterable[StockSaleRecord]],
                      option_sales: Optional[Iterable[OptionSaleRecord]]) -> Dict[str, IsinMetrics]:
    """
    Folds sales and ledger rows into per-ISIN realized P/L, gross dividends and commissions.

    Realized P/L sums the broker-computed delta of every stock and option leg. Dividends
    sum the EUR amount of DIVIDEND rows that are not withholding (TAX) rows. Commissions
    sum the absolute commission of every sale leg and are always a positive magnitude.
    Records without an ISIN are skipped. The caller decides the period by what it passes in.
    """
    metrics: Dict[str, IsinMetrics] = defaultdict(IsinMetrics)
    skipped = 0

    for leg in normalize_sale_legs(stock_sales, option_sales):
        if not leg.isin:
            skipped += 1
            continue
        entry = metrics[leg.isin]
        entry.total_realized_stock_pl += leg.delta
        entry.total_commissions += abs(leg.commission)

    for tx in transactions or []:
        isin = get_field(tx, 'isin')
        if not isin:
            continue
        if _is_dividend_income(tx):
            metrics[isin].total_dividends += safe_decimal(get_field(tx, 'amount_eur'), default=ZERO)

    if skipped:
        logger.debug(f"Skipped {skipped} sale legs without ISIN during per-ISIN aggregation.")
    return dict(metrics)


def sum_by_key(items: Optional[Iterable[Any]],
               key_fn: Callable[[Any], Optional[Any]],
               value_fn: Callable[[Any], Any]) -> Dict[Any, Decimal]:
    """
    Generic keyed fold. Items whose key resolves to None, or whose value is missing,
    are left out. Insertion order follows the first occurrence of each key.
    """
    totals: Dict[Any, Decimal] = {}
    for item in items or []:
        key = key_fn(item)
        if key is None:
            continue
        value = safe_decimal(value_fn(item))
        if value is None:
            continue
        totals[key] = totals.get(key, ZERO) + value
    return totals


def aggregate_by_year(items: Optional[Iterable[Any]],
                      date_fn: Callable[[Any], Any],
                      value_fn: Callable[[Any], Any]) -> Dict[str, Decimal]:
    """Year string -> total, keys ascending."""
    totals = sum_by_key(items, lambda item: get_year_string(date_fn(item)), value_fn)
    return {year: totals[year] for year in sorted(totals)}


def aggregate_by_month(items: Optional[Iterable[Any]],
                       date_fn: Callable[[Any], Any],
                       value_fn: Callable[[Any], Any],
                       year: Optional[str] = None) -> List[Decimal]:
    """Twelve month slots (January first). With a year given, items of other years are ignored."""
    slots = [ZERO] * 12
    for item in items or []:
        date_value = date_fn(item)
        if year is not None and get_year_string(date_value) != year:
            continue
        month_index = get_month_index(date_value)
        value = safe_decimal(value_fn(item))
        if month_index is None or value is None:
            continue
        slots[month_index] += value
    return slots


def aggregate_by_country(items: Optional[Iterable[Any]],
                         value_fn: Callable[[Any], Any],
                         country_fn: Callable[[Any], Optional[str]] = lambda item: get_field(item, 'country_code')) -> Dict[str, Decimal]:
    """Country -> total, keys ascending. A missing country is grouped under UNKNOWN_COUNTRY."""
    totals = sum_by_key(items, lambda item: country_fn(item) or config.UNKNOWN_COUNTRY, value_fn)
    return {country: totals[country] for country in sorted(totals)}


def get_base_product_name(product_name: Any) -> str:
    """First word of the product name (usually the ticker), or 'Unknown'."""
    if not product_name or not isinstance(product_name, str):
        return config.UNKNOWN_PRODUCT_LABEL
    return product_name.split(' ')[0] or config.UNKNOWN_PRODUCT_LABEL


def aggregate_by_product(items: Optional[Iterable[Any]],
                         name_fn: Callable[[Any], Optional[str]],
                         value_fn: Callable[[Any], Any]) -> Dict[str, Decimal]:
    """Base product name -> total."""
    return sum_by_key(items, lambda item: get_base_product_name(name_fn(item)), value_fn)


def filter_period_data(dataset: PortfolioDataSet, selected_year: Optional[str], current_year: str) -> PeriodData:
    """
    Slices every period-scoped collection to the selected year. The 'all years' view
    keeps everything. Open option positions only exist "now", so they survive a year
    filter only when that year is the current one.
    """
    if is_all_years(selected_year):
        return PeriodData(
            stock_sales=list(dataset.stock_sales),
            option_sales=list(dataset.option_sales),
            dividend_transactions=list(dataset.dividend_transactions),
            fees=list(dataset.fees),
            option_holdings=list(dataset.option_holdings),
        )

    period = PeriodData(
        stock_sales=filter_by_year(dataset.stock_sales, 'sale_date', selected_year),
        option_sales=filter_by_year(dataset.option_sales, 'close_date', selected_year),
        dividend_transactions=filter_by_year(dataset.dividend_transactions, 'date', selected_year),
        fees=filter_by_year(dataset.fees, 'date', selected_year),
        option_holdings=list(dataset.option_holdings) if selected_year == current_year else [],
    )
    logger.debug(
        f"Period {selected_year}: {len(period.stock_sales)} stock sales, {len(period.option_sales)} option sales, "
        f"{len(period.dividend_transactions)} dividend rows, {len(period.fees)} fees, {len(period.option_holdings)} option holdings."
    )
    return period
