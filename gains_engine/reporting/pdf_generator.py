# gains_engine/reporting/pdf_generator.py
import logging
from decimal import Decimal
from typing import List, Any, Optional
from datetime import date, datetime

from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, PageBreak
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import cm
from reportlab.lib.enums import TA_LEFT, TA_CENTER, TA_RIGHT, TA_JUSTIFY

from gains_engine.domain.results import AnexoJReport
from gains_engine.reporting.reporting_utils import _q, format_date_pt
from gains_engine.utils.date_utils import parse_date
import gains_engine.config as app_config

logger = logging.getLogger(__name__)


class AnexoJPdfGenerator:
    """Renders an Anexo J pre-fill (three quadros with their control sums) as a landscape PDF."""

    def __init__(self, report: AnexoJReport, report_version: str = app_config.REPORT_VERSION):
        self.report = report
        self.report_version = report_version

        self.styles = self._generate_styles()
        self.story: List[Any] = []

    def _generate_styles(self):
        styles = getSampleStyleSheet()

        styles.add(ParagraphStyle(name='H1', fontSize=16, leading=20, spaceAfter=10, alignment=TA_CENTER, fontName='Helvetica-Bold'))
        styles.add(ParagraphStyle(name='H2', fontSize=13, leading=17, spaceAfter=8, spaceBefore=12, fontName='Helvetica-Bold'))

        body_text_style = styles['BodyText']
        body_text_style.fontSize = 10
        body_text_style.leading = 12
        body_text_style.spaceAfter = 6
        body_text_style.fontName = 'Helvetica'

        styles.add(ParagraphStyle(name='Disclaimer', fontSize=8, leading=10, spaceAfter=12, alignment=TA_JUSTIFY, fontName='Helvetica'))
        styles.add(ParagraphStyle(name='TableHeader', alignment=TA_CENTER, fontSize=7, fontName='Helvetica-Bold', textColor=colors.black))
        styles.add(ParagraphStyle(name='TableCell', alignment=TA_LEFT, fontSize=7, fontName='Helvetica', textColor=colors.black))
        styles.add(ParagraphStyle(name='TableCellRight', alignment=TA_RIGHT, fontSize=7, fontName='Helvetica', textColor=colors.black))
        styles.add(ParagraphStyle(name='TableTotal', alignment=TA_RIGHT, fontSize=7, fontName='Helvetica-Bold', textColor=colors.black))

        return styles

    @staticmethod
    def _format_amount(value: Optional[Decimal]) -> str:
        # The form is filled with a decimal comma
        if value is None:
            return ""
        return str(_q(value)).replace('.', ',')

    def _create_styled_table(self, data: List[List[Any]], col_widths: Optional[List[float]] = None,
                             has_total_row: bool = False, repeat_rows: int = 1) -> Table:
        styled_data = []
        last_index = len(data) - 1
        for i, row_content in enumerate(data):
            styled_row = []
            for cell_content in row_content:
                if i < repeat_rows:
                    styled_row.append(Paragraph(str(cell_content), self.styles['TableHeader']))
                elif isinstance(cell_content, Decimal):
                    style = 'TableTotal' if has_total_row and i == last_index else 'TableCellRight'
                    styled_row.append(Paragraph(self._format_amount(cell_content), self.styles[style]))
                elif isinstance(cell_content, int):
                    styled_row.append(Paragraph(str(cell_content), self.styles['TableCellRight']))
                else:
                    styled_row.append(Paragraph("" if cell_content is None else str(cell_content), self.styles['TableCell']))
            styled_data.append(styled_row)

        tbl = Table(styled_data, colWidths=col_widths, repeatRows=repeat_rows)
        ts_cmds = [
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('LEFTPADDING', (0, 0), (-1, -1), 3),
            ('RIGHTPADDING', (0, 0), (-1, -1), 3),
            ('TOPPADDING', (0, 0), (-1, -1), 2),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 2),
            ('BACKGROUND', (0, 0), (-1, repeat_rows - 1), colors.lightgrey),
        ]
        if has_total_row:
            ts_cmds.append(('BACKGROUND', (0, -1), (-1, -1), colors.whitesmoke))
        tbl.setStyle(TableStyle(ts_cmds))
        return tbl

    def _add_title_page(self):
        self.story.append(Paragraph(f"IRS {self.report.tax_year} - Anexo J (Rendimentos obtidos no estrangeiro)", self.styles['H1']))
        self.story.append(Spacer(1, 1 * cm))
        self.story.append(Paragraph(f"Ano dos rendimentos: {self.report.tax_year}", self.styles['BodyText']))
        self.story.append(Paragraph(f"Sujeito passivo: {app_config.TAXPAYER_NAME}", self.styles['BodyText']))
        self.story.append(Paragraph(f"NIF: {app_config.TAXPAYER_NIF}", self.styles['BodyText']))
        self.story.append(Paragraph(f"Data de emissão: {datetime.now().strftime('%d/%m/%Y')}", self.styles['BodyText']))
        self.story.append(Paragraph(f"Versão: {self.report_version}", self.styles['BodyText']))
        self.story.append(Spacer(1, 0.5 * cm))
        disclaimer_text = ("Este relatório foi gerado automaticamente a partir dos dados da corretora já convertidos para EUR. "
                           "Serve de apoio ao preenchimento da declaração e não constitui aconselhamento fiscal. "
                           "Confirme todos os valores antes de submeter.")
        self.story.append(Paragraph(disclaimer_text, self.styles['Disclaimer']))

    def _add_dividend_section(self):
        self.story.append(Paragraph("Quadro 8 A - Rendimentos de capitais (dividendos)", self.styles['H2']))
        if not self.report.dividend_rows:
            self.story.append(Paragraph("Sem dividendos para este ano.", self.styles['BodyText']))
            return
        data: List[List[Any]] = [["Nº Linha", "Código", "País da Fonte", "Rendimento Bruto", "Imposto pago no estrangeiro",
                                  "Imposto retido em Portugal", "NIF entidade", "Retenção na fonte"]]
        for row in self.report.dividend_rows:
            data.append([row.linha, row.codigo, row.pais_fonte, row.rendimento_bruto, row.imposto_fonte,
                         row.imposto_retido, row.nif_entidade, row.retencao_fonte])
        totals = self.report.dividend_totals
        data.append(["Soma de Controlo", "", "", totals.rendimento_bruto, totals.imposto_fonte,
                     totals.imposto_retido, "", totals.retencao_fonte])
        self.story.append(self._create_styled_table(data, has_total_row=True))

    def _add_stock_section(self):
        self.story.append(Paragraph("Quadro 9.2 A - Alienação onerosa de partes sociais e outros valores mobiliários", self.styles['H2']))
        if not self.report.stock_rows:
            self.story.append(Paragraph("Sem alienações de ações para este ano.", self.styles['BodyText']))
            return
        data: List[List[Any]] = [["Nº Linha", "País da Fonte", "Código", "Ano Realiz.", "Mês", "Dia", "Valor Realização",
                                  "Ano Aquis.", "Mês", "Dia", "Valor Aquisição", "Despesas e Encargos",
                                  "Imposto pago no estrangeiro", "País Contraparte"]]
        for row in self.report.stock_rows:
            data.append([row.linha, row.pais_fonte, row.codigo, row.ano_realizacao, row.mes_realizacao, row.dia_realizacao,
                         row.valor_realizacao, row.ano_aquisicao, row.mes_aquisicao, row.dia_aquisicao,
                         row.valor_aquisicao, row.despesas_encargos, row.imposto_pago_estrangeiro, row.pais_contraparte])
        totals = self.report.stock_totals
        data.append(["Soma de Controlo", "", "", "", "", "", totals.realizacao, "", "", "",
                     totals.aquisicao, totals.despesas, totals.imposto, ""])
        self.story.append(self._create_styled_table(data, has_total_row=True))

    def _add_option_section(self):
        self.story.append(Paragraph("Quadro 9.2 B - Outros rendimentos de incrementos patrimoniais (derivados)", self.styles['H2']))
        if not self.report.option_rows:
            self.story.append(Paragraph("Sem rendimentos de derivados para este ano.", self.styles['BodyText']))
            return
        data: List[List[Any]] = [["Nº Linha", "Código", "País da Fonte", "Rendimento Líquido",
                                  "Imposto pago no estrangeiro", "País Contraparte"]]
        for row in self.report.option_rows:
            data.append([row.linha, row.codigo, row.pais_fonte, row.rendimento_liquido, row.imposto_pago, row.pais_contraparte])
        totals = self.report.option_totals
        data.append(["Soma de Controlo", "", "", totals.rendimento_liquido, totals.imposto, ""])
        self.story.append(self._create_styled_table(data, has_total_row=True))

    def _add_stock_sale_dates_note(self):
        if not self.report.stock_rows:
            return
        sale_dates = sorted({r.data_realizacao for r in self.report.stock_rows}, key=lambda s: parse_date(s) or date.min)
        dates = ", ".join(format_date_pt(d) for d in sale_dates)
        self.story.append(Spacer(1, 0.3 * cm))
        self.story.append(Paragraph(f"Datas de realização incluídas: {dates}", self.styles['Disclaimer']))

    def generate_report(self, output_file_path: str):
        logger.info(f"A gerar relatório PDF: {output_file_path}")
        doc = SimpleDocTemplate(output_file_path, pagesize=landscape(A4),
                                leftMargin=1.5 * cm, rightMargin=1.5 * cm, topMargin=1.5 * cm, bottomMargin=1.5 * cm)

        self.story = []
        self._add_title_page()
        self.story.append(PageBreak())
        self._add_dividend_section()
        self._add_stock_section()
        self._add_stock_sale_dates_note()
        self._add_option_section()

        try:
            doc.build(self.story)
        except (OSError, ValueError) as e:
            logger.error(f"Erro ao criar o relatório PDF: {e}", exc_info=True)
            raise
        logger.info(f"Relatório PDF criado com sucesso: {output_file_path}")
