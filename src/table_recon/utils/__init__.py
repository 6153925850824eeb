"""
Utility modules for the table reconstruction pipeline.
"""

from .fragments import Fragment, FragmentDocument, Origin
from .lanes import infer_lanes, project_row
from .rows import group_rows, order_rows, merge_adjacent
from .tables import TableReconstructor, ExtractedTable
from .io import save_json, load_json, ensure_dir, detect_input_type
from .export import TableExporter, ExportFormat
from .pipeline import DocumentPipeline, BatchProcessor, ProcessingJob, JobStatus

__all__ = [
    # Fragments
    "Fragment", "FragmentDocument", "Origin",
    # Reconstruction
    "infer_lanes", "project_row", "group_rows", "order_rows", "merge_adjacent",
    "TableReconstructor", "ExtractedTable",
    # IO
    "save_json", "load_json", "ensure_dir", "detect_input_type",
    # Export
    "TableExporter", "ExportFormat",
    # Pipeline
    "DocumentPipeline", "BatchProcessor", "ProcessingJob", "JobStatus",
]
