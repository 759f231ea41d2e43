# gains_engine/engine/holdings.py
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from gains_engine.domain.records import CurrentHolding, HistoricalHoldingLot, OptionSaleRecord, StockSaleRecord, Transaction
from gains_engine.domain.results import BaseHolding, EnrichedHolding, EnrichedLot, HoldingsTotals, IsinMetrics
from gains_engine.engine.aggregation import aggregate_by_isin
from gains_engine.utils.date_utils import calculate_days_held, filter_by_year, is_all_years
from gains_engine.utils.format_utils import calculate_annualized_return

logger = logging.getLogger(__name__)

ZERO = Decimal('0')
HUNDRED = Decimal('100')


def _group_lots_by_isin(lots: Iterable[HistoricalHoldingLot]) -> List[BaseHolding]:
    quantities: Dict[str, Decimal] = {}
    costs: Dict[str, Decimal] = {}
    names: Dict[str, Optional[str]] = {}
    for lot in lots:
        # A lot without ISIN is still a position; it groups under the empty key
        key = lot.isin or ''
        if key not in names:
            names[key] = lot.product_name
            quantities[key] = ZERO
            costs[key] = ZERO
        quantities[key] += lot.quantity
        costs[key] += abs(lot.buy_amount_eur)

    return [
        BaseHolding(isin=key or None, product_name=names[key], quantity=quantities[key],
                    total_cost_basis_eur=costs[key], is_historical=True)
        for key in names
    ]


def prepare_holdings_for_view(selected_year: Optional[str],
                              current_holdings: Optional[List[CurrentHolding]],
                              holdings_by_year: Optional[Dict[str, List[HistoricalHoldingLot]]],
                              transactions: Optional[List[Transaction]],
                              stock_sales: Optional[List[StockSaleRecord]],
                              option_sales: Optional[List[OptionSaleRecord]],
                              current_year: str) -> List[BaseHolding]:
    """
    Picks the holdings to show for a period and attaches their per-ISIN metrics.

    The 'all years' view and the current calendar year show today's positions with
    lifetime metrics. A past year shows that year's end snapshot, its lots summed per
    ISIN, with metrics computed over that year's transactions and sales only.
    """
    is_current_view = is_all_years(selected_year) or selected_year == current_year

    if is_current_view:
        base_holdings = [
            BaseHolding(
                isin=h.isin,
                product_name=h.product_name,
                quantity=h.quantity,
                total_cost_basis_eur=abs(h.total_cost_basis_eur),
                market_value_eur=h.market_value_eur,
                current_price_eur=h.current_price_eur,
                is_historical=False,
            )
            for h in (current_holdings or [])
        ]
        metrics_by_isin = aggregate_by_isin(transactions, stock_sales, option_sales)
    elif holdings_by_year and holdings_by_year.get(selected_year):
        base_holdings = _group_lots_by_isin(holdings_by_year[selected_year])
        metrics_by_isin = aggregate_by_isin(
            filter_by_year(transactions, 'date', selected_year),
            filter_by_year(stock_sales, 'sale_date', selected_year),
            filter_by_year(option_sales, 'close_date', selected_year),
        )
    else:
        logger.info(f"No holdings snapshot for year {selected_year}.")
        return []

    return [
        BaseHolding(
            isin=h.isin,
            product_name=h.product_name,
            quantity=h.quantity,
            total_cost_basis_eur=h.total_cost_basis_eur,
            market_value_eur=h.market_value_eur,
            current_price_eur=h.current_price_eur,
            is_historical=h.is_historical,
            metrics=metrics_by_isin.get(h.isin) or IsinMetrics(),
        )
        for h in base_holdings
    ]


def enrich_holding(holding: BaseHolding, metrics: Optional[IsinMetrics] = None) -> EnrichedHolding:
    """Derives cost per share, realized gains, unrealized P/L and total profit for one holding."""
    m = metrics if metrics is not None else holding.metrics
    cost = holding.total_cost_basis_eur

    cost_per_share = cost / holding.quantity if holding.quantity > 0 else ZERO
    realized_gains = m.total_dividends + m.total_realized_stock_pl - abs(m.total_commissions)

    # A closed year's snapshot has no market value to compare against
    unrealized_pl: Optional[Decimal] = None
    if not holding.is_historical:
        unrealized_pl = holding.market_value_eur - cost

    unrealized_pl_percentage: Optional[Decimal] = None
    if unrealized_pl is not None and cost > 0:
        unrealized_pl_percentage = unrealized_pl / cost * HUNDRED

    total_profit_amount = (unrealized_pl if unrealized_pl is not None else ZERO) + realized_gains
    total_profit_percentage = total_profit_amount / cost * HUNDRED if cost > 0 else ZERO

    return EnrichedHolding(
        isin=holding.isin,
        product_name=holding.product_name,
        quantity=holding.quantity,
        total_cost_basis_eur=cost,
        market_value_eur=holding.market_value_eur,
        is_historical=holding.is_historical,
        total_realized_stock_pl=m.total_realized_stock_pl,
        total_dividends=m.total_dividends,
        total_commissions=m.total_commissions,
        cost_per_share=cost_per_share,
        realized_gains=realized_gains,
        unrealized_pl=unrealized_pl,
        unrealized_pl_percentage=unrealized_pl_percentage,
        total_profit_amount=total_profit_amount,
        total_profit_percentage=total_profit_percentage,
        current_price_eur=holding.current_price_eur,
    )


def enrich_holdings(holdings: Optional[Iterable[BaseHolding]],
                    metrics_by_isin: Optional[Dict[str, IsinMetrics]] = None) -> List[EnrichedHolding]:
    """
    Enriches every holding. Without an explicit metrics map each holding uses the metrics
    attached by prepare_holdings_for_view; with one, holdings missing from it get zeros.
    """
    enriched = []
    for holding in holdings or []:
        if metrics_by_isin is None:
            enriched.append(enrich_holding(holding))
        else:
            enriched.append(enrich_holding(holding, metrics_by_isin.get(holding.isin) or IsinMetrics()))
    return enriched


def calculate_holdings_totals(enriched: Iterable[EnrichedHolding]) -> HoldingsTotals:
    rows = list(enriched)

    cost = sum((r.total_cost_basis_eur for r in rows), ZERO)
    total_profit_amount = sum((r.total_profit_amount for r in rows), ZERO)

    unrealized_rows = [r.unrealized_pl for r in rows if r.unrealized_pl is not None]
    unrealized_pl = sum(unrealized_rows, ZERO) if unrealized_rows else None

    return HoldingsTotals(
        total_cost_basis_eur=cost,
        market_value_eur=sum((r.market_value_eur for r in rows), ZERO),
        total_dividends=sum((r.total_dividends for r in rows), ZERO),
        total_commissions=sum((r.total_commissions for r in rows), ZERO),
        total_realized_stock_pl=sum((r.total_realized_stock_pl for r in rows), ZERO),
        realized_gains=sum((r.realized_gains for r in rows), ZERO),
        unrealized_pl=unrealized_pl,
        total_profit_amount=total_profit_amount,
        total_profit_percentage=total_profit_amount / cost * HUNDRED if cost > 0 else ZERO,
    )


def enrich_holding_lots(lots: Optional[Iterable[HistoricalHoldingLot]], today: Optional[date] = None) -> List[EnrichedLot]:
    """Per-lot view of open positions: days held, per-share and total unrealized P/L, simple and annualized return."""
    enriched = []
    for lot in lots or []:
        if lot is None:
            continue
        quantity = lot.quantity or ZERO
        current_price = lot.current_price_eur or ZERO
        buy_amount = abs(lot.buy_amount_eur)
        buy_price_per_share = buy_amount / quantity if quantity > 0 else ZERO

        market_value = quantity * current_price
        unrealized_pl_total = market_value - buy_amount
        days_held = calculate_days_held(lot.buy_date, today=today)

        enriched.append(EnrichedLot(
            isin=lot.isin,
            product_name=lot.product_name,
            buy_date=lot.buy_date,
            quantity=quantity,
            days_held=days_held,
            buy_amount_eur=buy_amount,
            buy_price_per_share_eur=buy_price_per_share,
            current_price_eur=current_price,
            market_value_eur=market_value,
            unrealized_pl_total=unrealized_pl_total,
            unrealized_pl_per_share=current_price - buy_price_per_share,
            return_percentage=unrealized_pl_total / buy_amount * HUNDRED if buy_amount > 0 else ZERO,
            annualized_return=calculate_annualized_return(unrealized_pl_total, buy_amount, days_held),
        ))
    return enriched


def calculate_total_unrealized_pl(current_holdings: Optional[Iterable[CurrentHolding]]) -> Decimal:
    """Sum of market value minus the (positive) cost basis over today's positions."""
    market_value = ZERO
    cost_basis = ZERO
    for h in current_holdings or []:
        market_value += h.market_value_eur
        cost_basis += abs(h.total_cost_basis_eur)
    return market_value - cost_basis
