# gains_engine/domain/results.py
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Union

from .enums import SaleKind
from .records import DividendTransaction, Fee, OptionHolding, OptionSaleRecord, StockSaleRecord

import gains_engine.config as config

ZERO = Decimal('0')


@dataclass(frozen=True)
class SaleLeg:
    """A stock or option sale normalized to one shape before any folding."""
    kind: SaleKind
    product_name: Optional[str]
    isin: Optional[str]
    open_date: Optional[str]
    close_date: Optional[str]
    delta: Decimal
    commission: Decimal = ZERO
    country_code: Optional[str] = None
    open_amount_eur: Decimal = ZERO
    close_amount_eur: Decimal = ZERO


@dataclass
class IsinMetrics:
    total_realized_stock_pl: Decimal = ZERO
    total_dividends: Decimal = ZERO
    total_commissions: Decimal = ZERO # Positive magnitude; consumers negate for display


@dataclass(frozen=True)
class PeriodData:
    stock_sales: List[StockSaleRecord] = field(default_factory=list)
    option_sales: List[OptionSaleRecord] = field(default_factory=list)
    dividend_transactions: List[DividendTransaction] = field(default_factory=list)
    fees: List[Fee] = field(default_factory=list)
    option_holdings: List[OptionHolding] = field(default_factory=list)


@dataclass(frozen=True)
class BaseHolding:
    """A holding before enrichment: a current position or a past year's lots summed by ISIN."""
    isin: Optional[str]
    product_name: Optional[str]
    quantity: Decimal
    total_cost_basis_eur: Decimal # Always positive here
    market_value_eur: Decimal = ZERO
    current_price_eur: Optional[Decimal] = None
    is_historical: bool = False
    metrics: IsinMetrics = field(default_factory=IsinMetrics)


@dataclass(frozen=True)
class EnrichedHolding:
    isin: Optional[str]
    product_name: Optional[str]
    quantity: Decimal
    total_cost_basis_eur: Decimal
    market_value_eur: Decimal
    is_historical: bool

    total_realized_stock_pl: Decimal
    total_dividends: Decimal
    total_commissions: Decimal

    cost_per_share: Decimal
    realized_gains: Decimal
    unrealized_pl: Optional[Decimal] # None for historical holdings, shown as N/A
    unrealized_pl_percentage: Optional[Decimal]
    total_profit_amount: Decimal
    total_profit_percentage: Decimal
    current_price_eur: Optional[Decimal] = None


@dataclass(frozen=True)
class HoldingsTotals:
    total_cost_basis_eur: Decimal
    market_value_eur: Decimal
    total_dividends: Decimal
    total_commissions: Decimal
    total_realized_stock_pl: Decimal
    realized_gains: Decimal
    unrealized_pl: Optional[Decimal]
    total_profit_amount: Decimal
    total_profit_percentage: Decimal


@dataclass(frozen=True)
class EnrichedLot:
    isin: Optional[str]
    product_name: Optional[str]
    buy_date: Optional[str]
    quantity: Decimal
    days_held: Union[int, str]
    buy_amount_eur: Decimal # Positive
    buy_price_per_share_eur: Decimal
    current_price_eur: Decimal
    market_value_eur: Decimal
    unrealized_pl_total: Decimal
    unrealized_pl_per_share: Decimal
    return_percentage: Decimal
    annualized_return: Union[Decimal, str]


@dataclass(frozen=True)
class TradeExtreme:
    name: Optional[str]
    value: Decimal


@dataclass(frozen=True)
class SummaryMetrics:
    stock_pl: Decimal
    option_pl: Decimal
    dividend_pl: Decimal
    total_taxes_and_commissions: Decimal
    total_pl: Decimal
    total_deposits: Decimal
    return_percentage: Optional[Decimal]
    best_trade: Optional[TradeExtreme]
    worst_trade: Optional[TradeExtreme]


# --- Anexo J rows ---

@dataclass(frozen=True)
class DividendTaxRow:
    """Quadro 8 A: foreign dividends and the tax withheld at source."""
    linha: int
    pais_fonte: str
    rendimento_bruto: Decimal
    imposto_fonte: Decimal
    codigo: str = config.ANEXO_J_DIVIDEND_CODE
    imposto_retido: Decimal = ZERO
    nif_entidade: str = ''
    retencao_fonte: Decimal = ZERO


@dataclass(frozen=True)
class StockTaxRow:
    """Quadro 9.2 A: one row per (country, sale date, buy date)."""
    linha: int
    pais_fonte: str
    data_realizacao: str
    data_aquisicao: str
    valor_realizacao: Decimal
    valor_aquisicao: Decimal # Positive
    despesas_encargos: Decimal # Signed as supplied by the broker
    codigo: str = config.ANEXO_J_STOCK_CODE
    ano_realizacao: Optional[int] = None
    mes_realizacao: str = ''
    dia_realizacao: str = ''
    ano_aquisicao: Optional[int] = None
    mes_aquisicao: str = ''
    dia_aquisicao: str = ''
    imposto_pago_estrangeiro: Decimal = ZERO
    pais_contraparte: str = ''
    isins: tuple = ()


@dataclass(frozen=True)
class OptionTaxRow:
    """Quadro 9.2 B: derivatives net income per source country."""
    linha: int
    pais_fonte: str
    rendimento_liquido: Decimal
    codigo: str = config.ANEXO_J_OPTION_CODE
    imposto_pago: Decimal = ZERO
    pais_contraparte: str = ''


@dataclass(frozen=True)
class DividendControlTotals:
    rendimento_bruto: Decimal = ZERO
    imposto_fonte: Decimal = ZERO
    imposto_retido: Decimal = ZERO
    retencao_fonte: Decimal = ZERO


@dataclass(frozen=True)
class StockControlTotals:
    realizacao: Decimal = ZERO
    aquisicao: Decimal = ZERO
    despesas: Decimal = ZERO
    imposto: Decimal = ZERO


@dataclass(frozen=True)
class OptionControlTotals:
    rendimento_liquido: Decimal = ZERO
    imposto: Decimal = ZERO


@dataclass(frozen=True)
class AnexoJReport:
    tax_year: str
    dividend_rows: List[DividendTaxRow]
    stock_rows: List[StockTaxRow]
    option_rows: List[OptionTaxRow]
    dividend_totals: DividendControlTotals
    stock_totals: StockControlTotals
    option_totals: OptionControlTotals

    @property
    def is_empty(self) -> bool:
        return not (self.dividend_rows or self.stock_rows or self.option_rows)


# --- Charts ---

@dataclass(frozen=True)
class ChartBucket:
    labels: List[str] = field(default_factory=list)
    values: List[Decimal] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Decimal]:
        return dict(zip(self.labels, self.values))


@dataclass(frozen=True)
class ProductCharts:
    by_product: ChartBucket # Top-N products plus an "others" bucket
    time_series: ChartBucket


@dataclass(frozen=True)
class FeeCharts:
    by_source: ChartBucket
    by_category: ChartBucket
    time_series: ChartBucket
