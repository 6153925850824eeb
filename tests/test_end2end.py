"""
End-to-end integration tests for the Table Reconstruction Pipeline.
"""

import csv
import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from table_recon.utils.fragments import Fragment, FragmentDocument, Origin


def statement_document(path):
    """Two-page bank statement as the text layer would yield it."""
    page1 = [
        Fragment("Account Statement", 50, 760),
        Fragment("Date", 50, 720), Fragment("Description", 150, 720),
        Fragment("Amount", 400, 721), Fragment("Balance", 480, 720),
        Fragment("01/03", 52, 700), Fragment("Opening", 151, 700), Fragment("balance", 168, 700),
        Fragment("1,000.00", 482, 700),
        Fragment("02/03", 51, 680), Fragment("Coffee", 150, 680),
        Fragment("-3.50", 401, 679), Fragment("996.50", 481, 680),
    ]
    page2 = [
        Fragment("05/03", 50, 740), Fragment("Salary", 149, 740),
        Fragment("2,500.00", 399, 740), Fragment("3,496.50", 480, 741),
    ]
    return FragmentDocument(pages=[page1, page2], origin=Origin.NATIVE)


@pytest.fixture
def statement_pdf(tmp_path):
    path = tmp_path / "statement.pdf"
    path.write_bytes(b"%PDF-1.4\n")
    return path


class TestEndToEnd:
    """End-to-end integration tests."""

    def test_pipeline_to_exports(self, statement_pdf, tmp_path):
        """Text layer -> table -> every export format."""
        from table_recon.config import PipelineConfig
        from table_recon.utils.pipeline import DocumentPipeline, JobStatus
        from table_recon.utils.export import TableExporter, parse_formats

        pipeline = DocumentPipeline(
            config=PipelineConfig(),
            text_extractor=statement_document
        )
        job = pipeline.process(statement_pdf)

        assert job.status == JobStatus.COMPLETED
        table = job.result
        assert table.headers == ["Date", "Description", "Amount", "Balance"]
        assert table.rows[0] == {
            "Date": "01/03", "Description": "Opening balance",
            "Amount": "", "Balance": "1,000.00",
        }
        assert table.rows[-1]["Balance"] == "3,496.50"

        results = TableExporter(tmp_path / "out").export(
            table, job.name, parse_formats(["all"])
        )
        assert sorted(results) == ["csv", "json", "markdown", "xlsx"]
        assert all(p.exists() for p in results.values())

        with open(results["csv"], newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[0] == ["Date", "Description", "Amount", "Balance"]
        assert len(rows) == 4

    def test_cli_run(self, statement_pdf, tmp_path, monkeypatch, capsys):
        """The CLI writes one file per format and reports success."""
        from table_recon import cli
        from table_recon.utils import text_layer

        monkeypatch.setattr(text_layer, "extract_text_fragments", statement_document)

        out_dir = tmp_path / "cli_out"
        args = cli.setup_argparser().parse_args([
            "--input", str(statement_pdf),
            "--output", str(out_dir),
            "--format", "csv", "xlsx",
            "--workers", "1",
        ])

        assert cli.run_pipeline(args) == 0
        assert (out_dir / "statement_converted.csv").exists()
        assert (out_dir / "statement_converted.xlsx").exists()
        assert "3 rows x 4 columns [text layer]" in capsys.readouterr().out

    def test_cli_reports_failure(self, tmp_path, monkeypatch):
        """A document without a table makes the run fail."""
        from table_recon import cli
        from table_recon.utils import text_layer

        empty = tmp_path / "empty.pdf"
        empty.write_bytes(b"%PDF-1.4\n")

        def one_line(path):
            return FragmentDocument(
                pages=[[Fragment("Nothing tabular on this page at all, only a paragraph of prose.", 50, 700)]],
                origin=Origin.NATIVE
            )

        monkeypatch.setattr(text_layer, "extract_text_fragments", one_line)
        args = cli.setup_argparser().parse_args([
            "--input", str(empty), "--output", str(tmp_path / "out"), "-q",
        ])

        assert cli.run_pipeline(args) == 1
        assert not list((tmp_path / "out").iterdir())

    def test_cli_export_failure_is_per_document(self, tmp_path, monkeypatch):
        """A write error on one document still exports the others."""
        from table_recon import cli
        from table_recon.utils import text_layer
        from table_recon.utils.export import TableExporter

        first = tmp_path / "a_first.pdf"
        second = tmp_path / "b_second.pdf"
        for path in (first, second):
            path.write_bytes(b"%PDF-1.4\n")

        monkeypatch.setattr(text_layer, "extract_text_fragments", statement_document)
        original_export = TableExporter.export

        def flaky_export(self, table, source_name, formats):
            if source_name == "a_first.pdf":
                raise OSError("disk full")
            return original_export(self, table, source_name, formats)

        monkeypatch.setattr(TableExporter, "export", flaky_export)

        out_dir = tmp_path / "out"
        args = cli.setup_argparser().parse_args([
            "--input", str(first), str(second),
            "--output", str(out_dir), "--format", "csv", "-q",
        ])

        assert cli.run_pipeline(args) == 1
        assert not (out_dir / "a_first_converted.csv").exists()
        assert (out_dir / "b_second_converted.csv").exists()

    def test_cli_default_format_from_config(self, statement_pdf, tmp_path, monkeypatch):
        """Without --format the configured export formats are used."""
        from table_recon import cli
        from table_recon.utils import text_layer

        monkeypatch.setattr(text_layer, "extract_text_fragments", statement_document)

        out_dir = tmp_path / "out"
        args = cli.setup_argparser().parse_args([
            "--input", str(statement_pdf), "--output", str(out_dir), "-q",
        ])

        assert cli.run_pipeline(args) == 0
        assert [p.name for p in out_dir.iterdir()] == ["statement_converted.xlsx"]

    def test_build_config_overrides(self):
        """Command-line flags land in the pipeline config."""
        from table_recon import cli

        args = cli.setup_argparser().parse_args([
            "--input", "x.pdf", "--output", "out",
            "--lang", "ben", "--whitelist", "0123456789",
            "--strategy", "adjacency", "--disambiguate-headers",
            "--dpi", "200", "--force-ocr",
        ])
        config = cli.build_config(args)

        assert config.ocr.language == "ben"
        assert config.ocr.char_whitelist == "0123456789"
        assert config.ocr.dpi == 200
        assert config.reconstruction.strategy == "adjacency"
        assert config.reconstruction.disambiguate_headers is True
        assert config.force_ocr is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
