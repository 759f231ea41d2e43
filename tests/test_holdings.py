"""
Test Group: Holdings View

Current positions use lifetime metrics and market values; a past year's snapshot
sums its lots per ISIN, uses that year's metrics and has no unrealized P/L.
Also covers enrichment defaults, portfolio totals and the per-lot view.
"""

from decimal import Decimal

from gains_engine import config
from gains_engine.domain.results import BaseHolding, IsinMetrics
from gains_engine.engine.holdings import (
    calculate_holdings_totals, calculate_total_unrealized_pl, enrich_holding, enrich_holding_lots, enrich_holdings,
    prepare_holdings_for_view,
)
from tests.support import D, current_holding, dividend_ledger_row, holding_lot, stock_sale


def _current_view(selected_year=config.ALL_YEARS_OPTION):
    return prepare_holdings_for_view(
        selected_year=selected_year,
        current_holdings=[current_holding()],
        holdings_by_year={},
        transactions=[dividend_ledger_row(amount_eur="10")],
        stock_sales=[stock_sale()],
        option_sales=[],
        current_year="2024",
    )


class TestPrepareHoldingsForView:

    def test_all_years_uses_current_positions_with_lifetime_metrics(self):
        holdings = _current_view()
        assert len(holdings) == 1
        h = holdings[0]
        assert not h.is_historical
        assert h.total_cost_basis_eur == D(1000)
        assert h.market_value_eur == D(1200)
        assert h.metrics.total_realized_stock_pl == D(480)
        assert h.metrics.total_dividends == D(10)
        assert h.metrics.total_commissions == D(20)

    def test_current_year_behaves_like_all_years(self):
        assert _current_view("2024") == _current_view()

    def test_past_year_sums_snapshot_lots(self):
        holdings = prepare_holdings_for_view(
            selected_year="2022",
            current_holdings=[current_holding()],
            holdings_by_year={"2022": [
                holding_lot(quantity="5", buy_amount="-500", year="2022"),
                holding_lot(quantity="5", buy_amount="-600", year="2022"),
                holding_lot(isin="IE0000000002", product_name="FUND ACC", quantity="1", buy_amount="-50", year="2022"),
            ]},
            transactions=[dividend_ledger_row(date="2022-04-01", amount_eur="7"), dividend_ledger_row(amount_eur="99")],
            stock_sales=[stock_sale(sale_date="2022-09-01", delta="100", commission="-2"), stock_sale()],
            option_sales=[],
            current_year="2024",
        )
        assert [h.isin for h in holdings] == ["US0000000001", "IE0000000002"]
        acme = holdings[0]
        assert acme.is_historical
        assert acme.quantity == D(10)
        assert acme.total_cost_basis_eur == D(1100)
        assert acme.market_value_eur == D(0)
        assert acme.metrics.total_realized_stock_pl == D(100)
        assert acme.metrics.total_dividends == D(7)
        assert acme.metrics.total_commissions == D(2)
        assert holdings[1].metrics == IsinMetrics()

    def test_past_year_without_snapshot_is_empty(self):
        holdings = prepare_holdings_for_view("2021", [current_holding()], {"2022": [holding_lot()]}, [], [], [], "2024")
        assert holdings == []


class TestEnrichHolding:

    def test_current_holding(self):
        enriched = enrich_holdings(_current_view())[0]
        assert enriched.cost_per_share == D(100)
        assert enriched.realized_gains == D(470)  # 10 + 480 - 20
        assert enriched.unrealized_pl == D(200)
        assert enriched.unrealized_pl_percentage == D(20)
        assert enriched.total_profit_amount == D(670)
        assert enriched.total_profit_percentage == D(67)

    def test_historical_holding_has_no_unrealized_pl(self):
        holding = BaseHolding(isin="X", product_name="X CORP", quantity=D(10), total_cost_basis_eur=D(500),
                              is_historical=True, metrics=IsinMetrics(total_realized_stock_pl=D(50)))
        enriched = enrich_holding(holding)
        assert enriched.unrealized_pl is None
        assert enriched.unrealized_pl_percentage is None
        assert enriched.total_profit_amount == D(50)
        assert enriched.total_profit_percentage == D(10)

    def test_missing_metrics_default_to_zero(self):
        holding = BaseHolding(isin="X", product_name="X CORP", quantity=D(0), total_cost_basis_eur=D(0),
                              market_value_eur=D(5))
        enriched = enrich_holdings([holding], metrics_by_isin={})[0]
        assert enriched.total_realized_stock_pl == D(0)
        assert enriched.total_dividends == D(0)
        assert enriched.total_commissions == D(0)
        assert enriched.cost_per_share == D(0)
        assert enriched.unrealized_pl_percentage is None
        assert enriched.total_profit_amount == D(5)
        assert enriched.total_profit_percentage == D(0)


class TestHoldingsTotals:

    def test_sums_rows(self):
        rows = enrich_holdings(_current_view() + _current_view())
        totals = calculate_holdings_totals(rows)
        assert totals.total_cost_basis_eur == D(2000)
        assert totals.market_value_eur == D(2400)
        assert totals.unrealized_pl == D(400)
        assert totals.total_profit_amount == D(1340)
        assert totals.total_profit_percentage == D(67)

    def test_historical_rows_have_no_unrealized_total(self):
        holding = BaseHolding(isin="X", product_name="X", quantity=D(1), total_cost_basis_eur=D(10), is_historical=True)
        totals = calculate_holdings_totals(enrich_holdings([holding]))
        assert totals.unrealized_pl is None

    def test_empty(self):
        totals = calculate_holdings_totals([])
        assert totals.total_cost_basis_eur == D(0)
        assert totals.total_profit_percentage == D(0)
        assert totals.unrealized_pl is None


class TestHoldingLots:

    def test_lot_figures(self, today):
        lot = enrich_holding_lots([holding_lot(price="120")], today=today)[0]
        assert lot.days_held == 181
        assert lot.buy_amount_eur == D(1000)
        assert lot.buy_price_per_share_eur == D(100)
        assert lot.market_value_eur == D(1200)
        assert lot.unrealized_pl_total == D(200)
        assert lot.unrealized_pl_per_share == D(20)
        assert lot.return_percentage == D(20)
        expected = D(200) / D(1000) * (Decimal(365) / Decimal(181)) * Decimal(100)
        assert lot.annualized_return == expected

    def test_lot_without_buy_date(self, today):
        lot = enrich_holding_lots([holding_lot(buy_date=None, price="120")], today=today)[0]
        assert lot.days_held == 'N/A'
        assert lot.annualized_return == 'N/A'

    def test_lot_without_price_loses_its_cost(self, today):
        lot = enrich_holding_lots([holding_lot()], today=today)[0]
        assert lot.current_price_eur == D(0)
        assert lot.unrealized_pl_total == D(-1000)
        assert lot.return_percentage == D(-100)

    def test_total_unrealized_pl(self):
        holdings = [current_holding(), current_holding(cost="-500", market_value="450")]
        assert calculate_total_unrealized_pl(holdings) == D(150)
        assert calculate_total_unrealized_pl(None) == D(0)
