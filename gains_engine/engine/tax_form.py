# gains_engine/engine/tax_form.py
"""
Anexo J (Portuguese IRS, foreign income) pre-fill.

Quadro 8 A lists foreign dividends per source country (code E11, lines from 801).
Quadro 9.2 A lists stock disposals merged per (country, sale date, buy date) (code G01,
lines from 951). Quadro 9.2 B lists derivative net income per country (code G30, lines
from 991). Every section carries control sums re-added from its own rows; they must
match the sums taken directly over the year's raw records.
"""
import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal, Context
from typing import Dict, Iterable, List, Optional, Tuple

import gains_engine.config as global_config
from gains_engine.domain.records import DividendTaxSummary, OptionSaleRecord, StockSaleRecord
from gains_engine.domain.results import (
    AnexoJReport, DividendControlTotals, DividendTaxRow, OptionControlTotals, OptionTaxRow,
    StockControlTotals, StockTaxRow,
)
from gains_engine.utils.date_utils import (
    extract_years_from_data, filter_by_year, get_day, get_month, get_year, is_all_years, parse_date,
)

logger = logging.getLogger(__name__)


class ControlSumMismatchError(ValueError):
    """Raised when a section's row totals do not reconcile with its raw input."""
    def __init__(self, section: str, field_name: str, expected: Decimal, actual: Decimal):
        self.section = section
        self.field_name = field_name
        self.expected = expected
        self.actual = actual
        super().__init__(f"Anexo J {section}: control sum '{field_name}' is {actual}, expected {expected}.")


def calculate_dividend_totals(rows: Iterable[DividendTaxRow]) -> DividendControlTotals:
    rendimento_bruto = imposto_fonte = imposto_retido = retencao_fonte = Decimal('0')
    for row in rows:
        rendimento_bruto += row.rendimento_bruto
        imposto_fonte += row.imposto_fonte
        imposto_retido += row.imposto_retido
        retencao_fonte += row.retencao_fonte
    return DividendControlTotals(rendimento_bruto, imposto_fonte, imposto_retido, retencao_fonte)


def calculate_stock_totals(rows: Iterable[StockTaxRow]) -> StockControlTotals:
    realizacao = aquisicao = despesas = imposto = Decimal('0')
    for row in rows:
        realizacao += row.valor_realizacao
        aquisicao += abs(row.valor_aquisicao)
        despesas += row.despesas_encargos
        imposto += row.imposto_pago_estrangeiro
    return StockControlTotals(realizacao, aquisicao, despesas, imposto)


def calculate_option_totals(rows: Iterable[OptionTaxRow]) -> OptionControlTotals:
    rendimento_liquido = imposto = Decimal('0')
    for row in rows:
        rendimento_liquido += row.rendimento_liquido
        imposto += row.imposto_pago
    return OptionControlTotals(rendimento_liquido, imposto)


class AnexoJBuilder:
    def __init__(self,
                 stock_sales: Optional[List[StockSaleRecord]],
                 option_sales: Optional[List[OptionSaleRecord]],
                 dividend_summary: Optional[DividendTaxSummary]):
        self.stock_sales = list(stock_sales or [])
        self.option_sales = list(option_sales or [])
        self.dividend_summary = dividend_summary or {}

        self.ctx = Context(prec=global_config.INTERNAL_CALCULATION_PRECISION, rounding=global_config.DECIMAL_ROUNDING_MODE)

    def build_dividend_rows(self, tax_year: str) -> List[DividendTaxRow]:
        year_data = self.dividend_summary.get(tax_year) or {}
        rows = []
        for index, country in enumerate(sorted(year_data)):
            figures = year_data[country]
            rows.append(DividendTaxRow(
                linha=global_config.ANEXO_J_DIVIDEND_FIRST_LINE + index,
                pais_fonte=country,
                rendimento_bruto=self.ctx.create_decimal(figures.gross_amt),
                imposto_fonte=self.ctx.create_decimal(figures.taxed_amt).copy_abs(),
            ))
        return rows

    def build_stock_rows(self, tax_year: str) -> List[StockTaxRow]:
        realizacao: Dict[Tuple[str, str, str], Decimal] = defaultdict(lambda: self.ctx.create_decimal(Decimal('0')))
        aquisicao: Dict[Tuple[str, str, str], Decimal] = defaultdict(lambda: self.ctx.create_decimal(Decimal('0')))
        despesas: Dict[Tuple[str, str, str], Decimal] = defaultdict(lambda: self.ctx.create_decimal(Decimal('0')))
        isins: Dict[Tuple[str, str, str], List[str]] = defaultdict(list)

        for sale in filter_by_year(self.stock_sales, 'sale_date', tax_year):
            key = (sale.country_code or '', sale.sale_date or '', sale.buy_date or '')
            if not sale.buy_date:
                logger.warning(f"Stock sale of {sale.isin} on {sale.sale_date} has no buy date; acquisition date columns will be empty.")
            realizacao[key] = self.ctx.add(realizacao[key], sale.sale_amount_eur)
            aquisicao[key] = self.ctx.add(aquisicao[key], sale.buy_amount_eur.copy_abs())
            despesas[key] = self.ctx.add(despesas[key], sale.commission)
            if sale.isin and sale.isin not in isins[key]:
                isins[key].append(sale.isin)

        def sort_key(key: Tuple[str, str, str]):
            country, sale_date, buy_date = key
            return (country, parse_date(sale_date) or date.min, parse_date(buy_date) or date.min, sale_date, buy_date)

        rows = []
        for index, key in enumerate(sorted(realizacao, key=sort_key)):
            country, sale_date, buy_date = key
            rows.append(StockTaxRow(
                linha=global_config.ANEXO_J_STOCK_FIRST_LINE + index,
                pais_fonte=country,
                data_realizacao=sale_date,
                data_aquisicao=buy_date,
                valor_realizacao=realizacao[key],
                valor_aquisicao=aquisicao[key],
                despesas_encargos=despesas[key],
                ano_realizacao=get_year(sale_date),
                mes_realizacao=get_month(sale_date),
                dia_realizacao=get_day(sale_date),
                ano_aquisicao=get_year(buy_date),
                mes_aquisicao=get_month(buy_date),
                dia_aquisicao=get_day(buy_date),
                isins=tuple(isins[key]),
            ))
        return rows

    def build_option_rows(self, tax_year: str) -> List[OptionTaxRow]:
        net_income: Dict[str, Decimal] = defaultdict(lambda: self.ctx.create_decimal(Decimal('0')))
        for sale in filter_by_year(self.option_sales, 'close_date', tax_year):
            country = sale.country_code or global_config.UNKNOWN_COUNTRY
            net_income[country] = self.ctx.add(net_income[country], sale.delta)

        return [
            OptionTaxRow(
                linha=global_config.ANEXO_J_OPTION_FIRST_LINE + index,
                pais_fonte=country,
                rendimento_liquido=net_income[country],
            )
            for index, country in enumerate(sorted(net_income))
        ]

    def build(self, tax_year: Optional[str]) -> AnexoJReport:
        if is_all_years(tax_year):
            logger.warning("Anexo J needs a single tax year; returning an empty report.")
            dividend_rows, stock_rows, option_rows = [], [], []
            tax_year = global_config.NO_YEAR_SELECTED
        else:
            dividend_rows = self.build_dividend_rows(tax_year)
            stock_rows = self.build_stock_rows(tax_year)
            option_rows = self.build_option_rows(tax_year)

        logger.info(f"Anexo J {tax_year or '-'}: {len(dividend_rows)} dividend rows, "
                    f"{len(stock_rows)} stock rows, {len(option_rows)} option rows.")
        return AnexoJReport(
            tax_year=tax_year,
            dividend_rows=dividend_rows,
            stock_rows=stock_rows,
            option_rows=option_rows,
            dividend_totals=calculate_dividend_totals(dividend_rows),
            stock_totals=calculate_stock_totals(stock_rows),
            option_totals=calculate_option_totals(option_rows),
        )


def _check(section: str, field_name: str, expected: Decimal, actual: Decimal) -> None:
    if expected != actual:
        logger.error(f"Control sum mismatch in {section}.{field_name}: rows give {actual}, input gives {expected}.")
        raise ControlSumMismatchError(section, field_name, expected, actual)


def verify_control_sums(report: AnexoJReport,
                        stock_sales: Optional[List[StockSaleRecord]],
                        option_sales: Optional[List[OptionSaleRecord]],
                        dividend_summary: Optional[DividendTaxSummary]) -> None:
    """
    Re-adds the year's raw records directly and compares them with the report's
    control totals. Raises ControlSumMismatchError on the first difference.
    """
    if is_all_years(report.tax_year):
        return
    year = report.tax_year
    zero = Decimal('0')

    year_stock_sales = filter_by_year(stock_sales, 'sale_date', year)
    _check("Quadro 9.2 A", "realizacao", sum((s.sale_amount_eur for s in year_stock_sales), zero), report.stock_totals.realizacao)
    _check("Quadro 9.2 A", "aquisicao", sum((abs(s.buy_amount_eur) for s in year_stock_sales), zero), report.stock_totals.aquisicao)
    _check("Quadro 9.2 A", "despesas", sum((s.commission for s in year_stock_sales), zero), report.stock_totals.despesas)

    year_option_sales = filter_by_year(option_sales, 'close_date', year)
    _check("Quadro 9.2 B", "rendimento_liquido", sum((o.delta for o in year_option_sales), zero), report.option_totals.rendimento_liquido)

    year_dividends = (dividend_summary or {}).get(year) or {}
    _check("Quadro 8 A", "rendimento_bruto", sum((f.gross_amt for f in year_dividends.values()), zero), report.dividend_totals.rendimento_bruto)
    _check("Quadro 8 A", "imposto_fonte", sum((abs(f.taxed_amt) for f in year_dividends.values()), zero), report.dividend_totals.imposto_fonte)

    logger.debug(f"Anexo J {year}: control sums reconcile with input.")


def get_tax_years(stock_sales: Optional[List[StockSaleRecord]],
                  option_sales: Optional[List[OptionSaleRecord]],
                  dividend_summary: Optional[DividendTaxSummary]) -> List[str]:
    """Years that have something to declare, newest first. No 'all' entry."""
    sources = {
        'stockSales': stock_sales or [],
        'optionSales': option_sales or [],
        global_config.DIVIDEND_SUMMARY_SOURCE: dividend_summary or {},
    }
    accessors = {'stockSales': 'sale_date', 'optionSales': 'close_date', global_config.DIVIDEND_SUMMARY_SOURCE: None}
    return [y for y in extract_years_from_data(sources, accessors)
            if y not in (global_config.ALL_YEARS_OPTION, global_config.NO_YEAR_SELECTED)]


def default_tax_year(tax_years: List[str], current_year: str) -> str:
    """Last year's return is the one usually being filed; otherwise the newest year with data."""
    current_year = str(current_year or "").strip()
    if not current_year.isdigit():
        logger.warning(f"Current year '{current_year}' is not a year; defaulting to the newest tax year.")
        return tax_years[0] if tax_years else global_config.NO_YEAR_SELECTED

    previous_year = str(int(current_year) - 1)
    if previous_year in tax_years:
        return previous_year
    return tax_years[0] if tax_years else global_config.NO_YEAR_SELECTED
