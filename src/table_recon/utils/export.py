"""
Export module for reconstructed tables.

Provides:
- CSV export
- XLSX export (pandas + openpyxl), one worksheet
- JSON export
- Markdown export
"""

import csv
import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Union, Iterable

from .io import save_json
from .tables import ExtractedTable

logger = logging.getLogger(__name__)

DEFAULT_SHEET_NAME = "Extracted Data"
DEFAULT_SUFFIX = "_converted"


class ExportFormat(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"
    JSON = "json"
    MARKDOWN = "markdown"

    @property
    def extension(self) -> str:
        return "md" if self is ExportFormat.MARKDOWN else self.value


def output_filename(source_name: str, fmt: ExportFormat, suffix: str = DEFAULT_SUFFIX) -> str:
    """'report.pdf' -> 'report_converted.xlsx'."""
    return f"{Path(source_name).stem}{suffix}.{fmt.extension}"


def _check_table(table: ExtractedTable):
    if table.is_empty:
        raise ValueError("Cannot export an empty table")


# ============================================================================
# Writers
# ============================================================================

def export_csv(table: ExtractedTable, output_path: Union[str, Path]) -> Path:
    """Write the header row and every record in header order."""
    _check_table(table)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8', newline='') as f:
        writer = csv.writer(f)
        for row in table.to_grid():
            writer.writerow(row)

    logger.info(f"Exported CSV to: {output_path}")
    return output_path


def export_xlsx(
    table: ExtractedTable,
    output_path: Union[str, Path],
    sheet_name: str = DEFAULT_SHEET_NAME
) -> Path:
    """Write a single worksheet; columns follow header order."""
    import pandas as pd

    _check_table(table)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Header row is written literally, repeated names included
    grid = table.to_grid()
    df = pd.DataFrame(grid[1:], columns=grid[0])
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)

    logger.info(f"Exported XLSX to: {output_path}")
    return output_path


def export_json(table: ExtractedTable, output_path: Union[str, Path]) -> Path:
    _check_table(table)
    path = save_json(table.to_dict(), output_path)
    logger.info(f"Exported JSON to: {path}")
    return path


def export_markdown(table: ExtractedTable, output_path: Union[str, Path]) -> Path:
    _check_table(table)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(table.to_markdown() + "\n")

    logger.info(f"Exported Markdown to: {output_path}")
    return output_path


# ============================================================================
# Table Exporter
# ============================================================================

class TableExporter:
    """Convenience class for exporting to multiple formats."""

    def __init__(
        self,
        output_dir: Union[str, Path],
        sheet_name: str = DEFAULT_SHEET_NAME,
        file_suffix: str = DEFAULT_SUFFIX
    ):
        self.output_dir = Path(output_dir)
        self.sheet_name = sheet_name
        self.file_suffix = file_suffix

    def export(
        self,
        table: ExtractedTable,
        source_name: str,
        formats: Iterable[Union[str, ExportFormat]]
    ) -> Dict[str, Path]:
        """
        Export a table to each requested format.

        Returns:
            Mapping of format name -> written file
        """
        results: Dict[str, Path] = {}
        for fmt in formats:
            fmt = ExportFormat(fmt)
            path = self.output_dir / output_filename(source_name, fmt, self.file_suffix)
            if fmt is ExportFormat.CSV:
                results[fmt.value] = export_csv(table, path)
            elif fmt is ExportFormat.XLSX:
                results[fmt.value] = export_xlsx(table, path, self.sheet_name)
            elif fmt is ExportFormat.JSON:
                results[fmt.value] = export_json(table, path)
            else:
                results[fmt.value] = export_markdown(table, path)
        return results


def parse_formats(names: List[str]) -> List[ExportFormat]:
    """Resolve CLI format names; 'all' expands to every format."""
    if "all" in names:
        return list(ExportFormat)
    return [ExportFormat(n) for n in names]
