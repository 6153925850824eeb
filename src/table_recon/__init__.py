"""
Table Reconstruction Pipeline
=============================

Rebuilds spreadsheet-style tables from positioned text fragments.
Works on native PDF text layers and, for scanned documents, on OCR output.

Main components:
- Column lane inference across the whole document
- Per-page row grouping by vertical proximity
- Lane projection, dead-column pruning and header selection
- PDF text-layer extraction and OCR fallback
- CSV / XLSX / JSON / Markdown export
"""

__version__ = "1.0.0"
__author__ = "Table Reconstruction Team"

from .utils.fragments import Fragment, FragmentDocument, Origin
from .utils.tables import ExtractedTable, TableReconstructor, reconstruct_table

__all__ = [
    "Fragment", "FragmentDocument", "Origin",
    "ExtractedTable", "TableReconstructor", "reconstruct_table",
]
