"""
Table reconstruction from positioned text fragments.

Provides:
- ExtractedTable result (headers + keyed row records)
- Column pruning and header selection
- TableReconstructor: lanes -> rows -> projection -> pruning -> header
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Sequence

from .fragments import FragmentDocument, Origin
from .lanes import infer_lanes, project_row, DEFAULT_X_CLUSTER_THRESHOLD
from .rows import group_page, merge_adjacent, default_tolerance

logger = logging.getLogger(__name__)

STRATEGY_LANES = "lanes"
STRATEGY_ADJACENCY = "adjacency"
STRATEGIES = (STRATEGY_LANES, STRATEGY_ADJACENCY)

HEADER_SCAN_ROWS = 5
NO_TABLE_MESSAGE = "No structured data found"

_LINE_BREAKS = re.compile(r"[\r\n]+")


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class ExtractedTable:
    """Result of table reconstruction."""
    headers: List[str] = field(default_factory=list)
    rows: List[Dict[str, str]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """An empty table means nothing was found, not a valid result."""
        return not self.rows

    @property
    def num_rows(self) -> int:
        return len(self.rows)

    @property
    def num_cols(self) -> int:
        return len(self.headers)

    def to_grid(self) -> List[List[str]]:
        """
        Header row followed by each record in header order.

        A repeated header name holds only its last column's value in the
        record, so earlier positions with that name are left blank.
        """
        last_index = {name: idx for idx, name in enumerate(self.headers)}
        grid = [list(self.headers)]
        for record in self.rows:
            grid.append([
                record.get(name, "") if last_index[name] == idx else ""
                for idx, name in enumerate(self.headers)
            ])
        return grid

    def to_markdown(self) -> str:
        """Build Markdown table representation."""
        if not self.headers:
            return ""

        lines = []
        lines.append("| " + " | ".join(self.headers) + " |")
        lines.append("| " + " | ".join("---" for _ in self.headers) + " |")
        for row in self.to_grid()[1:]:
            lines.append("| " + " | ".join(c.replace("|", "\\|") for c in row) + " |")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headers": list(self.headers),
            "rows": [dict(r) for r in self.rows],
        }


# ============================================================================
# Grid Post-processing
# ============================================================================

def prune_empty_columns(grid: Sequence[Sequence[str]]) -> List[List[str]]:
    """Drop every column index that is empty in every row."""
    if not grid:
        return []
    width = max(len(row) for row in grid)
    active = [
        idx for idx in range(width)
        if any(idx < len(row) and row[idx] != "" for row in grid)
    ]
    return [[row[idx] if idx < len(row) else "" for idx in active] for row in grid]


def select_header_index(grid: Sequence[Sequence[str]], scan_rows: int = HEADER_SCAN_ROWS) -> int:
    """
    Pick the header among the leading rows.

    The row with the most non-empty cells wins; on a tie the earliest
    row is kept.
    """
    header_index = 0
    best = 0
    for i in range(min(len(grid), scan_rows)):
        filled = sum(1 for cell in grid[i] if cell != "")
        if filled > best:
            best = filled
            header_index = i
    return header_index


def materialize_headers(header_row: Sequence[str], disambiguate: bool = False) -> List[str]:
    """
    Turn the header row into column names.

    Line breaks are flattened and blank names become "Column N"
    (1-based). Duplicates are left alone unless disambiguate is set, in
    which case repeats get a " (2)", " (3)", ... suffix.
    """
    headers = []
    for idx, value in enumerate(header_row):
        clean = _LINE_BREAKS.sub(" ", value).strip()
        headers.append(clean or f"Column {idx + 1}")

    if not disambiguate:
        return headers

    seen = set()
    unique = []
    for name in headers:
        candidate = name
        n = 1
        while candidate in seen:
            n += 1
            candidate = f"{name} ({n})"
        seen.add(candidate)
        unique.append(candidate)
    return unique


def build_records(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> List[Dict[str, str]]:
    """Key each row by header; a repeated header keeps the later column."""
    records = []
    for row in rows:
        record = {}
        for idx, header in enumerate(headers):
            record[header] = row[idx] if idx < len(row) else ""
        records.append(record)
    return records


# ============================================================================
# Table Reconstructor
# ============================================================================

class TableReconstructor:
    """
    Rebuilds one table from a document's fragments.

    Stateless between calls; every intermediate structure is local to
    reconstruct(), so a single instance can be shared across threads.
    """

    def __init__(
        self,
        x_cluster_threshold: float = DEFAULT_X_CLUSTER_THRESHOLD,
        native_y_tolerance: Optional[float] = None,
        ocr_y_tolerance: Optional[float] = None,
        header_scan_rows: int = HEADER_SCAN_ROWS,
        strategy: str = STRATEGY_LANES,
        adjacency_gap: float = 10.0,
        disambiguate_headers: bool = False
    ):
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown reconstruction strategy: {strategy}")

        self.x_cluster_threshold = x_cluster_threshold
        self.native_y_tolerance = native_y_tolerance
        self.ocr_y_tolerance = ocr_y_tolerance
        self.header_scan_rows = header_scan_rows
        self.strategy = strategy
        self.adjacency_gap = adjacency_gap
        self.disambiguate_headers = disambiguate_headers

    @classmethod
    def from_config(cls, config: Any) -> "TableReconstructor":
        """Build from a ReconstructionConfig."""
        return cls(
            x_cluster_threshold=config.x_cluster_threshold,
            native_y_tolerance=config.native_y_tolerance,
            ocr_y_tolerance=config.ocr_y_tolerance,
            header_scan_rows=config.header_scan_rows,
            strategy=config.strategy,
            adjacency_gap=config.adjacency_gap,
            disambiguate_headers=config.disambiguate_headers,
        )

    def _tolerance(self, origin: Origin) -> float:
        if origin == Origin.OCR and self.ocr_y_tolerance is not None:
            return self.ocr_y_tolerance
        if origin == Origin.NATIVE and self.native_y_tolerance is not None:
            return self.native_y_tolerance
        return default_tolerance(origin)

    def build_grid(self, document: FragmentDocument) -> List[List[str]]:
        """
        Project every page into fixed-width grid rows.

        Rows whose cells are all empty are dropped. Columns are not
        pruned yet.
        """
        tolerance = self._tolerance(document.origin)

        if self.strategy == STRATEGY_ADJACENCY:
            grid = []
            for page in document.pages:
                for bucket in group_page(page, document.origin, tolerance):
                    cells = merge_adjacent(bucket.fragments, self.adjacency_gap)
                    if any(cells):
                        grid.append(cells)
            width = max((len(r) for r in grid), default=0)
            return [r + [""] * (width - len(r)) for r in grid]

        lanes = infer_lanes(document.all_fragments(), self.x_cluster_threshold)
        grid = []
        for page in document.pages:
            for bucket in group_page(page, document.origin, tolerance):
                cells = project_row(bucket.fragments, lanes)
                if any(cell != "" for cell in cells):
                    grid.append(cells)
        return grid

    def reconstruct(self, document: FragmentDocument) -> ExtractedTable:
        """
        Reconstruct the table.

        Args:
            document: Pages of fragments with a single origin

        Returns:
            ExtractedTable; empty rows mean no table was found
        """
        grid = self.build_grid(document)
        if not grid:
            logger.info(NO_TABLE_MESSAGE)
            return ExtractedTable()

        grid = prune_empty_columns(grid)
        header_index = select_header_index(grid, self.header_scan_rows)
        headers = materialize_headers(grid[header_index], self.disambiguate_headers)
        records = build_records(headers, grid[header_index + 1:])

        logger.debug(
            f"Grid {len(grid)}x{len(headers)}, header row {header_index}, "
            f"{len(records)} data rows"
        )
        if not records:
            logger.info(NO_TABLE_MESSAGE)

        return ExtractedTable(headers=headers, rows=records)


def reconstruct_table(
    pages: Sequence[Sequence[Any]],
    origin: Origin = Origin.NATIVE,
    **kwargs
) -> ExtractedTable:
    """Convenience wrapper: reconstruct from raw pages with default settings."""
    document = FragmentDocument(pages=[list(p) for p in pages], origin=origin)
    return TableReconstructor(**kwargs).reconstruct(document)
