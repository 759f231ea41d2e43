# gains_engine/reporting/console_reporter.py
import logging
from typing import List, Optional

from gains_engine.domain.results import (
    AnexoJReport, ChartBucket, EnrichedHolding, EnrichedLot, HoldingsTotals, SummaryMetrics, TradeExtreme,
)
from gains_engine.reporting.reporting_utils import _q, _q_price, _q_qty, format_date_pt, format_optional_amount
from gains_engine.utils.date_utils import is_all_years
from gains_engine.utils.format_utils import format_currency, format_percentage

logger = logging.getLogger(__name__)

LINE_WIDTH = 110


def _trade_line(label: str, trade: Optional[TradeExtreme]) -> str:
    if trade is None:
        return f"  {label:<35} N/A"
    return f"  {label:<35} {str(trade.name or '-'):<30} {format_currency(trade.value):>20}"


def generate_console_summary_report(summary: SummaryMetrics, selected_year: str):
    period_label = "Todos os anos" if is_all_years(selected_year) else selected_year
    logger.info(f"Generating console summary for period '{period_label}'...")

    print(f"\n--- Resumo de Ganhos e Perdas ({period_label}, valores em EUR) ---")
    print(f"  {'L/P Ações':<35} {format_currency(summary.stock_pl):>20}")
    print(f"  {'L/P Opções':<35} {format_currency(summary.option_pl):>20}")
    print(f"  {'Dividendos (brutos)':<35} {format_currency(summary.dividend_pl):>20}")
    print(f"  {'Taxas e Comissões':<35} {format_currency(summary.total_taxes_and_commissions):>20}")
    print(f"  {'L/P Total':<35} {format_currency(summary.total_pl):>20}")
    print(f"  {'Depósitos líquidos':<35} {format_currency(summary.total_deposits):>20}")
    if summary.return_percentage is not None:
        print(f"  {'Retorno sobre depósitos':<35} {format_percentage(summary.return_percentage):>20}")
    print(_trade_line("Melhor operação", summary.best_trade))
    print(_trade_line("Pior operação", summary.worst_trade))


def generate_console_holdings_report(holdings: List[EnrichedHolding], totals: HoldingsTotals):
    print("\n--- Posições ---")
    print("  " + "-" * LINE_WIDTH)
    print(f"  {'Produto':<30} | {'Quantidade':>14} | {'Custo':>12} | {'Valor':>12} | {'L/P não real.':>13} | {'Ganhos real.':>12} | {'Lucro total':>12}")
    print("  " + "-" * LINE_WIDTH)
    if not holdings:
        print("  Sem posições para este período.")
    for h in holdings:
        name = (h.product_name or h.isin or '-')[:30]
        print(f"  {name:<30} | {str(_q_qty(h.quantity).normalize()):>14} | {str(_q(h.total_cost_basis_eur)):>12} | "
              f"{str(_q(h.market_value_eur)):>12} | {format_optional_amount(h.unrealized_pl):>13} | "
              f"{str(_q(h.realized_gains)):>12} | {str(_q(h.total_profit_amount)):>12}")
    print("  " + "-" * LINE_WIDTH)
    print(f"  {'TOTAL':<30} | {'':>14} | {str(_q(totals.total_cost_basis_eur)):>12} | {str(_q(totals.market_value_eur)):>12} | "
          f"{format_optional_amount(totals.unrealized_pl):>13} | {str(_q(totals.realized_gains)):>12} | {str(_q(totals.total_profit_amount)):>12}"
          f"  ({format_percentage(totals.total_profit_percentage)})")


def generate_console_chart_report(title: str, bucket: ChartBucket):
    print(f"\n  {title}")
    if not bucket.labels:
        print("    Sem dados.")
        return
    for label, value in zip(bucket.labels, bucket.values):
        print(f"    {label:<25} {format_currency(value):>20}")


def generate_console_tax_form_report(report: AnexoJReport):
    logger.info(f"Generating console Anexo J for tax year {report.tax_year}...")
    print(f"\n--- Anexo J - Rendimentos obtidos no estrangeiro ({report.tax_year}) ---")

    print("\nQuadro 8 A (Dividendos)")
    print(f"  {'Linha':<6} {'Código':<7} {'País':<8} {'Rend. Bruto':>14} {'Imp. Estrangeiro':>17} {'Imp. Retido':>12} {'Retenção':>10}")
    for row in report.dividend_rows:
        print(f"  {row.linha:<6} {row.codigo:<7} {row.pais_fonte:<8} {str(_q(row.rendimento_bruto)):>14} "
              f"{str(_q(row.imposto_fonte)):>17} {str(_q(row.imposto_retido)):>12} {str(_q(row.retencao_fonte)):>10}")
    if not report.dividend_rows:
        print("  Sem dados.")
    dt = report.dividend_totals
    print(f"  {'Soma de Controlo':<23} {str(_q(dt.rendimento_bruto)):>14} {str(_q(dt.imposto_fonte)):>17} "
          f"{str(_q(dt.imposto_retido)):>12} {str(_q(dt.retencao_fonte)):>10}")

    print("\nQuadro 9.2 A (Alienação de ações)")
    print(f"  {'Linha':<6} {'País':<6} {'Código':<7} {'Realização':<11} {'Valor':>12} {'Aquisição':<11} {'Valor':>12} {'Despesas':>10}")
    for row in report.stock_rows:
        print(f"  {row.linha:<6} {row.pais_fonte:<6} {row.codigo:<7} {row.data_realizacao:<11} {str(_q(row.valor_realizacao)):>12} "
              f"{row.data_aquisicao:<11} {str(_q(row.valor_aquisicao)):>12} {str(_q(row.despesas_encargos)):>10}")
    if not report.stock_rows:
        print("  Sem dados.")
    st = report.stock_totals
    print(f"  {'Soma de Controlo':<33} {str(_q(st.realizacao)):>12} {'':<11} {str(_q(st.aquisicao)):>12} {str(_q(st.despesas)):>10}")

    print("\nQuadro 9.2 B (Derivados)")
    print(f"  {'Linha':<6} {'Código':<7} {'País':<8} {'Rend. Líquido':>14} {'Imposto':>10}")
    for row in report.option_rows:
        print(f"  {row.linha:<6} {row.codigo:<7} {row.pais_fonte:<8} {str(_q(row.rendimento_liquido)):>14} {str(_q(row.imposto_pago)):>10}")
    if not report.option_rows:
        print("  Sem dados.")
    ot = report.option_totals
    print(f"  {'Soma de Controlo':<23} {str(_q(ot.rendimento_liquido)):>14} {str(_q(ot.imposto)):>10}")


def generate_console_lots_report(lots: List[EnrichedLot]):
    print("\n--- Lotes em carteira ---")
    if not lots:
        print("  Sem lotes abertos.")
        return
    print(f"  {'Produto':<25} {'Compra':<11} {'Dias':>6} {'Qtd.':>10} {'Preço compra':>14} {'Preço atual':>14} "
          f"{'L/P':>12} {'Retorno':>9} {'Anualizado':>11}")
    for lot in lots:
        name = (lot.product_name or lot.isin or '-')[:25]
        print(f"  {name:<25} {format_date_pt(lot.buy_date):<11} {str(lot.days_held):>6} {str(_q_qty(lot.quantity).normalize()):>10} "
              f"{str(_q_price(lot.buy_price_per_share_eur)):>14} {str(_q_price(lot.current_price_eur)):>14} "
              f"{str(_q(lot.unrealized_pl_total)):>12} {format_percentage(lot.return_percentage):>9} "
              f"{format_percentage(lot.annualized_return):>11}")
