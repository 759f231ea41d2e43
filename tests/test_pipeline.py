"""
Test Group: End-to-End Reporting

Runs the full pipeline over a loaded export for the 'all years' view and for a
single year, renders the Anexo J PDF and drives the command line entry point.
"""

import os
from datetime import date

import pytest

from gains_engine import config
from gains_engine.cli import parse_arguments
from gains_engine.domain.results import StockControlTotals
from gains_engine.engine import tax_form
from gains_engine.engine.tax_form import ControlSumMismatchError
from gains_engine.loaders import build_dataset
from gains_engine.main import main_application
from gains_engine.pipeline_runner import ReportContext, run_reporting_pipeline
from gains_engine.reporting.pdf_generator import AnexoJPdfGenerator
from tests.support import D


def _context(selected_year=config.ALL_YEARS_OPTION, **kwargs):
    return ReportContext(selected_year=selected_year, current_year="2024", today=date(2024, 6, 30), **kwargs)


class TestRunReportingPipeline:

    def test_all_years(self, export_payload):
        output = run_reporting_pipeline(build_dataset(export_payload), _context())

        assert output.available_years == [config.ALL_YEARS_OPTION, "2023", "2022"]
        assert output.unrealized_stock_pl == D(200)
        # 480 + 50 + 10 - 8 + 200
        assert output.summary.total_pl == D(732)
        assert output.summary.total_deposits == D(2000)

        assert len(output.holdings) == 1
        holding = output.holdings[0]
        assert holding.realized_gains == D(470)  # 480 + 10 - 20; the option has its own ISIN
        assert holding.unrealized_pl == D(200)

        assert len(output.holding_lots) == 1
        assert output.holding_lots[0].days_held == 181
        assert output.period_data.option_holdings != []

        assert output.sales_charts.by_product.as_dict() == {"ACME": D(530)}
        assert output.fee_charts.by_category.as_dict() == {"Custo corretagem": D(5), "Comissões de transação": D(3)}
        assert output.allocation_chart.labels == ["ACME CORP"]

        assert output.tax_years == ["2023"]
        report = output.anexo_j
        assert report.tax_year == "2023"
        assert [r.linha for r in report.stock_rows] == [951]
        assert [r.linha for r in report.dividend_rows] == [801]
        assert [r.linha for r in report.option_rows] == [991]

    def test_past_year_uses_the_snapshot(self, export_payload):
        output = run_reporting_pipeline(build_dataset(export_payload), _context("2022"), include_tax_form=False)
        assert output.anexo_j is None
        assert output.summary.total_pl == D(0)
        assert output.holding_lots == []
        assert output.period_data.option_holdings == []
        assert len(output.holdings) == 1
        assert output.holdings[0].is_historical
        assert output.holdings[0].unrealized_pl is None
        assert output.holdings_totals.unrealized_pl is None
        assert output.allocation_chart.as_dict() == {"ACME CORP": D(450)}

    def test_single_year_never_adds_unrealized_pl(self, export_payload):
        output = run_reporting_pipeline(build_dataset(export_payload), _context("2023"))
        assert output.unrealized_stock_pl == D(0)
        assert output.summary.total_pl == D(532)
        assert output.holdings == []
        assert len(output.sales_charts.time_series.values) == 12

    def test_explicit_tax_year(self, export_payload):
        output = run_reporting_pipeline(build_dataset(export_payload), _context(tax_year="2022"))
        assert output.anexo_j.tax_year == "2022"
        assert output.anexo_j.is_empty

    def test_reconciliation_failure_propagates(self, export_payload, monkeypatch):
        monkeypatch.setattr(tax_form, "calculate_stock_totals", lambda rows: StockControlTotals(realizacao=D(1)))
        with pytest.raises(ControlSumMismatchError):
            run_reporting_pipeline(build_dataset(export_payload), _context())


class TestPdfReport:

    def test_writes_a_pdf(self, export_payload, temp_data_dir):
        report = run_reporting_pipeline(build_dataset(export_payload), _context()).anexo_j
        path = os.path.join(temp_data_dir, "anexo_j_2023.pdf")
        AnexoJPdfGenerator(report).generate_report(path)
        with open(path, "rb") as f:
            assert f.read(4) == b"%PDF"

    def test_empty_report_still_renders(self, temp_data_dir):
        report = tax_form.AnexoJBuilder([], [], {}).build("2023")
        path = os.path.join(temp_data_dir, "empty.pdf")
        AnexoJPdfGenerator(report, report_version="test").generate_report(path)
        assert os.path.getsize(path) > 0

    def test_unwritable_path_raises(self, export_payload, temp_data_dir):
        report = run_reporting_pipeline(build_dataset(export_payload), _context()).anexo_j
        with pytest.raises(OSError):
            AnexoJPdfGenerator(report).generate_report(os.path.join(temp_data_dir, "no", "such", "dir", "x.pdf"))


class TestCommandLine:

    def test_defaults(self):
        args = parse_arguments([])
        assert args.year == config.ALL_YEARS_OPTION
        assert args.report_summary
        assert not args.report_tax_form
        assert args.current_year == str(date.today().year)

    def test_invalid_year_is_rejected(self):
        with pytest.raises(SystemExit):
            parse_arguments(["--year", "23"])

    @pytest.mark.parametrize("current_year", ["abc", "24", "2024a"])
    def test_invalid_current_year_is_rejected(self, current_year, write_export):
        with pytest.raises(SystemExit):
            parse_arguments(["--current-year", current_year])
        with pytest.raises(SystemExit):
            main_application(["--data", write_export({}), "--report-tax-form", "--current-year", current_year])

    def test_missing_export_exits_with_error(self, temp_data_dir):
        assert main_application(["--data", os.path.join(temp_data_dir, "missing.json")]) == 1

    def test_summary_and_tax_form(self, write_export, export_payload, temp_data_dir, capsys):
        data_path = write_export(export_payload)
        pdf_path = os.path.join(temp_data_dir, "out.pdf")
        exit_code = main_application([
            "--data", data_path, "--current-year", "2024", "--report-summary", "--report-tax-form",
            "--pdf-output-file", pdf_path,
        ])
        assert exit_code == 0
        assert os.path.exists(pdf_path)
        out = capsys.readouterr().out
        assert "Resumo de Ganhos e Perdas" in out
        assert "Soma de Controlo" in out
        assert "951" in out

    def test_empty_tax_form_skips_the_pdf(self, write_export, temp_data_dir):
        pdf_path = os.path.join(temp_data_dir, "out.pdf")
        exit_code = main_application(["--data", write_export({}), "--report-tax-form", "--pdf-output-file", pdf_path])
        assert exit_code == 0
        assert not os.path.exists(pdf_path)
