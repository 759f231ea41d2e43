# tests/conftest.py
import json
import os
import tempfile
from datetime import date
from decimal import getcontext

import pytest

from gains_engine import config as app_config
from gains_engine.main import setup_decimal_context


@pytest.fixture(scope="session", autouse=True)
def set_decimal_precision_session_wide():
    """Same decimal context as the CLI, for every test in the session."""
    setup_decimal_context()
    assert getcontext().prec == app_config.INTERNAL_CALCULATION_PRECISION


@pytest.fixture
def today():
    """A fixed 'today' so days-held figures do not drift."""
    return date(2024, 6, 30)


@pytest.fixture
def temp_data_dir():
    """Temporary directory for exports and PDF output; removed after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def write_export(temp_data_dir):
    """Writes a payload dict as a JSON export and returns its path."""
    def _write(payload, filename="portfolio_export.json"):
        path = os.path.join(temp_data_dir, filename)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f)
        return path
    return _write


@pytest.fixture
def export_payload():
    """A small backend export covering every collection, keyed as the backend sends it."""
    return {
        "transactions": [
            {"date": "2023-01-02", "transaction_type": "CASH", "transaction_subtype": "DEPOSIT", "amount_eur": 2000},
            {"date": "2023-01-01", "transaction_type": "STOCK", "isin": "US0000000001", "amount_eur": -1000,
             "commission": "-2"},
            {"date": "2023-04-01", "transaction_type": "DIVIDEND", "isin": "US0000000001", "amount_eur": "10"},
            {"date": "2023-04-01", "transaction_type": "DIVIDEND", "transaction_subtype": "TAX",
             "isin": "US0000000001", "amount_eur": "-1.5"},
        ],
        "StockSaleDetails": [
            {"ISIN": "US0000000001", "ProductName": "ACME CORP", "SaleDate": "15-03-2023", "BuyDate": "01-01-2023",
             "Quantity": 10, "SaleAmountEUR": 1500, "BuyAmountEUR": -1000, "Delta": 480, "Commission": -20,
             "country_code": "US"},
        ],
        "optionSales": [
            {"product_name": "ACME C100 JUN23", "isin": "OPT0000001", "open_date": "2023-01-10",
             "close_date": "2023-05-20", "quantity": 1, "open_amount_eur": -100, "close_amount_eur": 150,
             "delta": 50, "country_code": "US"},
        ],
        "DividendTaxResult": {"2023": {"US": {"gross_amt": 10, "taxed_amt": -1.5}}},
        "dividendTransactions": [
            {"date": "2023-04-01", "product_name": "ACME CORP", "isin": "US0000000001", "amount_eur": "10"},
            {"date": "2023-04-01", "product_name": "ACME CORP", "isin": "US0000000001", "amount_eur": "-1.5",
             "transaction_subtype": "TAX"},
        ],
        "fees": [
            {"date": "2023-06-01", "amount_eur": -5, "category": "Brokerage Fee", "source": "degiro"},
            {"date": "2023-07-01", "amount_eur": -3, "category": "Trade Commission", "source": "ibkr"},
        ],
        "currentHoldings": [
            {"isin": "US0000000001", "product_name": "ACME CORP", "quantity": 10, "total_cost_basis_eur": -1000,
             "market_value_eur": 1200, "current_price_eur": 120},
        ],
        "holdingsByYear": {
            "2022": [{"isin": "US0000000001", "product_name": "ACME CORP", "buy_date": "2022-02-01",
                      "quantity": 5, "buy_amount_eur": -450}],
        },
        "currentHoldingLots": [
            {"isin": "US0000000001", "product_name": "ACME CORP", "buy_date": "2024-01-01", "quantity": 10,
             "buy_amount_eur": -1000, "current_price_eur": 120},
        ],
        "optionHoldings": [
            {"product_name": "ACME P90 DEC24", "open_date": "2024-02-01", "quantity": 1, "open_amount_eur": -80},
        ],
    }
