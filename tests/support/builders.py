# tests/support/builders.py
"""Small factories for input records. Amounts accept str/int/Decimal like the backend JSON does."""
from decimal import Decimal
from typing import Any, Dict, List, Optional

from gains_engine.domain.records import (
    CurrentHolding, DividendCountryFigures, DividendTaxSummary, DividendTransaction, Fee, HistoricalHoldingLot,
    OptionHolding, OptionSaleRecord, PortfolioDataSet, StockSaleRecord, Transaction,
)


def stock_sale(isin: Optional[str] = "US0000000001", product_name: str = "ACME CORP",
               sale_date: Optional[str] = "15-03-2023", buy_date: Optional[str] = "01-01-2023",
               sale_amount: Any = "1500", buy_amount: Any = "-1000", delta: Any = "480",
               commission: Any = "-20", quantity: Any = "10", country_code: Optional[str] = "US") -> StockSaleRecord:
    # Built through the aliases, as the backend sends them
    return StockSaleRecord.model_validate({
        "ISIN": isin, "ProductName": product_name, "SaleDate": sale_date, "BuyDate": buy_date,
        "Quantity": quantity, "SaleAmountEUR": sale_amount, "BuyAmountEUR": buy_amount,
        "Delta": delta, "Commission": commission, "country_code": country_code,
    })


def option_sale(isin: Optional[str] = "OPT0000001", product_name: str = "ACME C100 JUN23",
                open_date: Optional[str] = "2023-01-10", close_date: Optional[str] = "2023-05-20",
                delta: Any = "50", commission: Any = "0", open_amount: Any = "-100", close_amount: Any = "150",
                quantity: Any = "1", country_code: Optional[str] = "US") -> OptionSaleRecord:
    return OptionSaleRecord(
        isin=isin, product_name=product_name, open_date=open_date, close_date=close_date,
        delta=delta, commission=commission, open_amount_eur=open_amount, close_amount_eur=close_amount,
        quantity=quantity, country_code=country_code,
    )


def transaction(date: Optional[str] = "2023-01-01", transaction_type: str = "STOCK", amount_eur: Any = "0",
                isin: Optional[str] = None, transaction_subtype: Optional[str] = None, commission: Any = None,
                product_name: Optional[str] = None, source: str = "degiro") -> Transaction:
    return Transaction(
        date=date, transaction_type=transaction_type, amount_eur=amount_eur, isin=isin,
        transaction_subtype=transaction_subtype, commission=commission, product_name=product_name, source=source,
    )


def deposit(date: str, amount_eur: Any) -> Transaction:
    return transaction(date=date, transaction_type="CASH", amount_eur=amount_eur, transaction_subtype="DEPOSIT")


def dividend_tx(date: str = "2023-04-01", amount_eur: Any = "10", isin: Optional[str] = "US0000000001",
                product_name: str = "ACME CORP", transaction_subtype: Optional[str] = None) -> DividendTransaction:
    return DividendTransaction(date=date, amount_eur=amount_eur, isin=isin, product_name=product_name,
                               transaction_subtype=transaction_subtype)


def dividend_ledger_row(date: str = "2023-04-01", amount_eur: Any = "10", isin: Optional[str] = "US0000000001",
                        transaction_subtype: Optional[str] = None) -> Transaction:
    return transaction(date=date, transaction_type="DIVIDEND", amount_eur=amount_eur, isin=isin,
                       transaction_subtype=transaction_subtype)


def fee(date: str = "2023-06-01", amount_eur: Any = "-5", category: str = "Brokerage Fee",
        source: str = "degiro", description: str = "") -> Fee:
    return Fee(date=date, amount_eur=amount_eur, category=category, source=source, description=description)


def current_holding(isin: str = "US0000000001", product_name: str = "ACME CORP", quantity: Any = "10",
                    cost: Any = "-1000", market_value: Any = "1200", price: Any = "120") -> CurrentHolding:
    return CurrentHolding(isin=isin, product_name=product_name, quantity=quantity,
                          total_cost_basis_eur=cost, market_value_eur=market_value, current_price_eur=price)


def holding_lot(isin: str = "US0000000001", product_name: str = "ACME CORP", buy_date: Optional[str] = "2024-01-01",
                quantity: Any = "10", buy_amount: Any = "-1000", price: Any = None, year: Optional[str] = None) -> HistoricalHoldingLot:
    return HistoricalHoldingLot(isin=isin, product_name=product_name, buy_date=buy_date, quantity=quantity,
                                buy_amount_eur=buy_amount, current_price_eur=price, year=year)


def option_holding(product_name: str = "ACME P90 DEC24", open_date: str = "2024-02-01") -> OptionHolding:
    return OptionHolding(product_name=product_name, open_date=open_date, quantity="1", open_amount_eur="-80")


def dividend_summary(data: Dict[str, Dict[str, Dict[str, Any]]]) -> DividendTaxSummary:
    """{'2023': {'US': {'gross_amt': 100, 'taxed_amt': -15}}} -> validated summary."""
    return {
        year: {country: DividendCountryFigures.model_validate(figures) for country, figures in countries.items()}
        for year, countries in data.items()
    }


def dataset(**collections: List[Any]) -> PortfolioDataSet:
    return PortfolioDataSet(**collections)


def D(value: Any) -> Decimal:
    return Decimal(str(value))
