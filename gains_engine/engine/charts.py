# gains_engine/engine/charts.py
import logging
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import gains_engine.config as config
from gains_engine.domain.enums import TransactionSubtype, TransactionType
from gains_engine.domain.records import DividendTransaction, Fee
from gains_engine.domain.results import ChartBucket, FeeCharts, ProductCharts, SaleLeg
from gains_engine.engine.aggregation import (
    aggregate_by_month, aggregate_by_product, aggregate_by_year, get_base_product_name, sum_by_key,
)
from gains_engine.utils.date_utils import is_all_years

logger = logging.getLogger(__name__)

ZERO = Decimal('0')

Series = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]

__all__ = [
    'bucket_top_n', 'bucket_by_period', 'prepare_sales_charts', 'prepare_dividend_charts',
    'prepare_fee_charts', 'prepare_allocation_chart', 'get_base_product_name',
]


def bucket_top_n(series: Series,
                 top_n: int = config.TOP_N_PRODUCTS,
                 others_label: str = config.OTHERS_LABEL,
                 rank_by_abs: bool = True,
                 sort_ascending: bool = True) -> ChartBucket:
    """
    Keeps the top_n labels and folds the remainder into one others_label bucket.

    Repeated labels are summed first. Ranking is by absolute value (so large losses
    stay visible) unless rank_by_abs is False. The "others" value is the exact sum of
    what was folded away. With sort_ascending the final buckets are ordered by value;
    otherwise they keep rank order with "others" last.
    """
    pairs = series.items() if isinstance(series, Mapping) else series
    totals = sum_by_key(pairs, lambda pair: pair[0], lambda pair: pair[1])

    ranked = sorted(totals.items(), key=lambda kv: abs(kv[1]) if rank_by_abs else kv[1], reverse=True)
    top = ranked[:top_n]
    rest = ranked[top_n:]

    items: List[Tuple[str, Decimal]] = list(top)
    if rest:
        items.append((others_label, sum((value for _, value in rest), ZERO)))
    if sort_ascending:
        items.sort(key=lambda kv: kv[1])

    return ChartBucket(labels=[label for label, _ in items], values=[value for _, value in items])


def bucket_by_period(items: Optional[Iterable[Any]],
                     date_fn: Callable[[Any], Any],
                     value_fn: Callable[[Any], Any],
                     selected_year: Optional[str],
                     month_labels: Sequence[str] = config.MONTH_NAMES_CHART) -> ChartBucket:
    """Per-year buckets (ascending) for the 'all years' view, twelve monthly slots for a single year."""
    if is_all_years(selected_year):
        yearly = aggregate_by_year(items, date_fn, value_fn)
        return ChartBucket(labels=list(yearly.keys()), values=list(yearly.values()))
    monthly = aggregate_by_month(items, date_fn, value_fn, year=selected_year)
    return ChartBucket(labels=list(month_labels), values=monthly)


def prepare_sales_charts(sale_legs: Optional[List[SaleLeg]], selected_year: Optional[str]) -> ProductCharts:
    """Realized P/L by base product (top 9 + others) and over time."""
    if not sale_legs:
        return ProductCharts(by_product=ChartBucket(), time_series=ChartBucket())

    by_product = aggregate_by_product(sale_legs, lambda leg: leg.product_name, lambda leg: leg.delta)
    return ProductCharts(
        by_product=bucket_top_n(by_product),
        time_series=bucket_by_period(sale_legs, lambda leg: leg.close_date, lambda leg: leg.delta, selected_year),
    )


def prepare_dividend_charts(dividend_transactions: Optional[List[DividendTransaction]],
                            selected_year: Optional[str]) -> ProductCharts:
    """Gross dividends (withholding rows excluded) by base product and over time."""
    relevant = [
        tx for tx in (dividend_transactions or [])
        if tx.transaction_type == TransactionType.DIVIDEND.value and tx.transaction_subtype != TransactionSubtype.TAX.value
    ]
    if not relevant:
        return ProductCharts(by_product=ChartBucket(), time_series=ChartBucket())

    by_product = aggregate_by_product(relevant, lambda tx: tx.product_name, lambda tx: tx.amount_eur)
    return ProductCharts(
        by_product=bucket_top_n(by_product, others_label=config.DIVIDEND_OTHERS_LABEL, rank_by_abs=False),
        time_series=bucket_by_period(relevant, lambda tx: tx.date, lambda tx: tx.amount_eur, selected_year),
    )


def _fee_category(fee: Fee) -> str:
    category = fee.category or config.UNKNOWN_PRODUCT_LABEL
    return config.FEE_CATEGORY_TRANSLATIONS.get(category, category)


def prepare_fee_charts(fees: Optional[List[Fee]], selected_year: Optional[str]) -> FeeCharts:
    """Fee magnitudes by broker, by category and over time."""
    if not fees:
        return FeeCharts(by_source=ChartBucket(), by_category=ChartBucket(), time_series=ChartBucket())

    def magnitude(fee: Fee) -> Decimal:
        return abs(fee.amount_eur)

    by_source = sum_by_key(fees, lambda fee: fee.source or config.UNKNOWN_PRODUCT_LABEL, magnitude)
    by_category = sum_by_key(fees, _fee_category, magnitude)
    return FeeCharts(
        by_source=ChartBucket(labels=list(by_source.keys()), values=list(by_source.values())),
        by_category=ChartBucket(labels=list(by_category.keys()), values=list(by_category.values())),
        time_series=bucket_by_period(fees, lambda fee: fee.date, magnitude, selected_year),
    )


def prepare_allocation_chart(holdings: Optional[List[Any]],
                             top_n: int = config.TOP_N_ALLOCATION,
                             use_purchase_value: bool = False) -> ChartBucket:
    """
    Portfolio weight per holding, largest first, the tail folded into one bucket.
    Past-year snapshots have no market value, so they are weighted by cost basis,
    as is any view asked for purchase values.
    """
    if not holdings:
        return ChartBucket()

    weigh_by_cost = use_purchase_value or holdings[0].is_historical
    series: Dict[str, Decimal] = {}
    for h in holdings:
        label = h.product_name or h.isin or config.UNKNOWN_PRODUCT_LABEL
        value = abs(h.total_cost_basis_eur) if weigh_by_cost else h.market_value_eur
        series[label] = series.get(label, ZERO) + value

    return bucket_top_n(series, top_n=top_n, rank_by_abs=False, sort_ascending=False)
