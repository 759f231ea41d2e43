# gains_engine/domain/records.py
"""
Input records as returned by the portfolio backend.

The backend has already parsed the broker exports, converted every amount to EUR and
FIFO-matched the sales. Field aliases follow the backend's JSON keys (which mix
PascalCase and snake_case); attributes are always snake_case.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gains_engine.utils.type_utils import safe_decimal


def _parse_optional_decimal(v: Any) -> Optional[Decimal]:
    return safe_decimal(v, default=None if v is None or str(v).strip() == "" else Decimal("0"))


def _parse_required_decimal(v: Any) -> Decimal:
    return safe_decimal(v, default=Decimal("0"))


def _clean_optional_string(v: Any) -> Optional[str]:
    if v is None or str(v).strip() == "":
        return None
    return str(v).strip()


class RawBaseRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore', frozen=True)


class Transaction(RawBaseRecord):
    date: Optional[str] = None
    source: Optional[str] = None
    product_name: Optional[str] = None
    isin: Optional[str] = None # CASH rows carry no ISIN
    transaction_type: Optional[str] = None
    transaction_subtype: Optional[str] = None
    buy_sell: Optional[str] = None
    quantity: Optional[Decimal] = None
    price: Optional[Decimal] = None
    commission: Optional[Decimal] = None
    currency: Optional[str] = None
    exchange_rate: Optional[Decimal] = None
    amount: Optional[Decimal] = None
    amount_eur: Decimal = Decimal("0")

    @field_validator('quantity', 'price', 'commission', 'exchange_rate', 'amount', mode='before')
    @classmethod
    def parse_decimal_fields(cls, v: Any) -> Optional[Decimal]:
        return _parse_optional_decimal(v)

    @field_validator('amount_eur', mode='before')
    @classmethod
    def parse_amount_eur(cls, v: Any) -> Decimal:
        return _parse_required_decimal(v)

    @field_validator('date', 'isin', 'transaction_type', 'transaction_subtype', 'buy_sell', mode='before')
    @classmethod
    def validate_strings(cls, v: Any) -> Optional[str]:
        return _clean_optional_string(v)


class StockSaleRecord(RawBaseRecord):
    """One FIFO-matched closed stock lot. Delta is authoritative and never recomputed."""
    isin: Optional[str] = Field(None, alias="ISIN")
    product_name: Optional[str] = Field(None, alias="ProductName")
    buy_date: Optional[str] = Field(None, alias="BuyDate")
    sale_date: Optional[str] = Field(None, alias="SaleDate")
    quantity: Decimal = Field(Decimal("0"), alias="Quantity")
    buy_amount_eur: Decimal = Field(Decimal("0"), alias="BuyAmountEUR") # Negative = cost
    sale_amount_eur: Decimal = Field(Decimal("0"), alias="SaleAmountEUR")
    delta: Decimal = Field(Decimal("0"), alias="Delta")
    commission: Decimal = Field(Decimal("0"), alias="Commission")
    country_code: Optional[str] = None

    @field_validator('quantity', 'buy_amount_eur', 'sale_amount_eur', 'delta', 'commission', mode='before')
    @classmethod
    def parse_decimal_fields(cls, v: Any) -> Decimal:
        return _parse_required_decimal(v)

    @field_validator('isin', 'buy_date', 'sale_date', 'country_code', mode='before')
    @classmethod
    def validate_strings(cls, v: Any) -> Optional[str]:
        return _clean_optional_string(v)


class OptionSaleRecord(RawBaseRecord):
    product_name: Optional[str] = None
    isin: Optional[str] = None
    open_date: Optional[str] = None
    close_date: Optional[str] = None
    quantity: Decimal = Decimal("0")
    open_amount_eur: Decimal = Decimal("0")
    close_amount_eur: Decimal = Decimal("0")
    delta: Decimal = Decimal("0")
    commission: Decimal = Decimal("0")
    country_code: Optional[str] = None

    @field_validator('quantity', 'open_amount_eur', 'close_amount_eur', 'delta', 'commission', mode='before')
    @classmethod
    def parse_decimal_fields(cls, v: Any) -> Decimal:
        return _parse_required_decimal(v)

    @field_validator('isin', 'open_date', 'close_date', 'country_code', mode='before')
    @classmethod
    def validate_strings(cls, v: Any) -> Optional[str]:
        return _clean_optional_string(v)


class DividendTransaction(RawBaseRecord):
    date: Optional[str] = None
    product_name: Optional[str] = None
    isin: Optional[str] = None
    amount_eur: Decimal = Decimal("0")
    transaction_type: Optional[str] = "DIVIDEND"
    transaction_subtype: Optional[str] = None # 'TAX' marks withholding rows

    @field_validator('amount_eur', mode='before')
    @classmethod
    def parse_amount_eur(cls, v: Any) -> Decimal:
        return _parse_required_decimal(v)

    @field_validator('date', 'isin', 'transaction_subtype', mode='before')
    @classmethod
    def validate_strings(cls, v: Any) -> Optional[str]:
        return _clean_optional_string(v)


class Fee(RawBaseRecord):
    date: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    amount_eur: Decimal = Decimal("0") # Already negative
    source: Optional[str] = None

    @field_validator('amount_eur', mode='before')
    @classmethod
    def parse_amount_eur(cls, v: Any) -> Decimal:
        return _parse_required_decimal(v)

    @field_validator('date', mode='before')
    @classmethod
    def validate_strings(cls, v: Any) -> Optional[str]:
        return _clean_optional_string(v)


class CurrentHolding(RawBaseRecord):
    isin: Optional[str] = None
    product_name: Optional[str] = None
    quantity: Decimal = Decimal("0")
    total_cost_basis_eur: Decimal = Decimal("0") # Stored negative
    market_value_eur: Decimal = Decimal("0")
    current_price_eur: Optional[Decimal] = None

    @field_validator('quantity', 'total_cost_basis_eur', 'market_value_eur', mode='before')
    @classmethod
    def parse_decimal_fields(cls, v: Any) -> Decimal:
        return _parse_required_decimal(v)

    @field_validator('current_price_eur', mode='before')
    @classmethod
    def parse_optional_price(cls, v: Any) -> Optional[Decimal]:
        return _parse_optional_decimal(v)


class HistoricalHoldingLot(RawBaseRecord):
    """An open lot, either from a per-year snapshot or from the current detailed holdings."""
    year: Optional[str] = None
    isin: Optional[str] = None
    product_name: Optional[str] = None
    buy_date: Optional[str] = None
    quantity: Decimal = Decimal("0")
    buy_amount_eur: Decimal = Decimal("0") # Stored negative
    current_price_eur: Optional[Decimal] = None

    @field_validator('quantity', 'buy_amount_eur', mode='before')
    @classmethod
    def parse_decimal_fields(cls, v: Any) -> Decimal:
        return _parse_required_decimal(v)

    @field_validator('current_price_eur', mode='before')
    @classmethod
    def parse_optional_price(cls, v: Any) -> Optional[Decimal]:
        return _parse_optional_decimal(v)

    @field_validator('year', 'buy_date', mode='before')
    @classmethod
    def validate_strings(cls, v: Any) -> Optional[str]:
        return _clean_optional_string(v)


class OptionHolding(RawBaseRecord):
    product_name: Optional[str] = None
    isin: Optional[str] = None
    open_date: Optional[str] = None
    quantity: Decimal = Decimal("0")
    open_amount_eur: Decimal = Decimal("0")

    @field_validator('quantity', 'open_amount_eur', mode='before')
    @classmethod
    def parse_decimal_fields(cls, v: Any) -> Decimal:
        return _parse_required_decimal(v)


class DividendCountryFigures(RawBaseRecord):
    gross_amt: Decimal = Decimal("0")
    taxed_amt: Decimal = Decimal("0") # Withholding, sign varies by broker

    @field_validator('gross_amt', 'taxed_amt', mode='before')
    @classmethod
    def parse_decimal_fields(cls, v: Any) -> Decimal:
        return _parse_required_decimal(v)


# year -> country -> figures
DividendTaxSummary = Dict[str, Dict[str, DividendCountryFigures]]


@dataclass(frozen=True)
class PortfolioDataSet:
    """Everything the backend returns for one portfolio, validated and read-only."""
    transactions: List[Transaction] = field(default_factory=list)
    stock_sales: List[StockSaleRecord] = field(default_factory=list)
    option_sales: List[OptionSaleRecord] = field(default_factory=list)
    dividend_summary: DividendTaxSummary = field(default_factory=dict)
    dividend_transactions: List[DividendTransaction] = field(default_factory=list)
    fees: List[Fee] = field(default_factory=list)
    current_holdings: List[CurrentHolding] = field(default_factory=list)
    holdings_by_year: Dict[str, List[HistoricalHoldingLot]] = field(default_factory=dict)
    current_holding_lots: List[HistoricalHoldingLot] = field(default_factory=list)
    option_holdings: List[OptionHolding] = field(default_factory=list)
