#!/usr/bin/env python
"""
Command-line interface for the Table Reconstruction Pipeline.

Usage:
    table-recon --input <pdf_image_or_folder> [...] --output <output_dir> [options]

Examples:
    # Convert a PDF to a spreadsheet
    table-recon --input statement.pdf --output ./output

    # Several documents at once, CSV and XLSX
    table-recon --input a.pdf b.pdf scans/ --output ./output --format csv xlsx

    # Scanned Bengali document with a digits-only allow-list
    table-recon --input scan.pdf --output ./output --lang ben --whitelist 0123456789.,
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List

from . import __version__
from .config import PipelineConfig, get_config, ALL_FORMATS, SUPPORTED_LANGUAGES

logger = logging.getLogger("table_recon")


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        description="Table Reconstruction Pipeline - Rebuild tables from PDFs and scans",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Convert a PDF to XLSX:
    table-recon --input statement.pdf --output ./output

  Export every format:
    table-recon --input statement.pdf --output ./output --format all

  Force OCR with a fixed language:
    table-recon --input scan.pdf --output ./output --force-ocr --lang eng
        """
    )

    parser.add_argument(
        "--input", "-i",
        required=True,
        nargs="+",
        help="Input PDF(s), image(s) or folder(s)"
    )

    parser.add_argument(
        "--output", "-o",
        required=True,
        help="Output directory for generated files"
    )

    parser.add_argument(
        "--format", "-f",
        nargs="+",
        default=None,
        choices=ALL_FORMATS + ["all"],
        help="Output format(s) (default: xlsx)"
    )

    parser.add_argument(
        "--lang",
        default=None,
        help="OCR language code, or 'auto' to detect from page 1 "
             f"(known: {', '.join(l['code'] for l in SUPPORTED_LANGUAGES)})"
    )

    parser.add_argument("--whitelist", default=None, help="OCR character allow-list")
    parser.add_argument("--blacklist", default=None, help="OCR character deny-list")
    parser.add_argument("--psm", default=None, help="Tesseract page segmentation mode")

    parser.add_argument(
        "--dpi",
        type=int,
        default=None,
        help="Render DPI for scanned pages (default: 144)"
    )

    parser.add_argument(
        "--force-ocr",
        action="store_true",
        help="Skip the text layer and always OCR"
    )

    parser.add_argument(
        "--strategy",
        choices=["lanes", "adjacency"],
        default=None,
        help="Row construction strategy (default: lanes)"
    )

    parser.add_argument(
        "--disambiguate-headers",
        action="store_true",
        help="Suffix repeated header names instead of letting later columns win"
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Documents processed in parallel (default: 4)"
    )

    parser.add_argument("--debug", action="store_true", help="Log tracebacks on failure")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose output")
    parser.add_argument("--quiet", "-q", action="store_true", help="Suppress non-error output")

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def build_config(args) -> PipelineConfig:
    """Apply command-line overrides on top of the environment config."""
    config = get_config()

    if args.lang:
        config.ocr.language = args.lang
    if args.whitelist:
        config.ocr.char_whitelist = args.whitelist
    if args.blacklist:
        config.ocr.char_blacklist = args.blacklist
    if args.psm:
        config.ocr.page_seg_mode = args.psm
    if args.dpi:
        config.ocr.dpi = args.dpi
    if args.strategy:
        config.reconstruction.strategy = args.strategy
    if args.disambiguate_headers:
        config.reconstruction.disambiguate_headers = True
    if args.workers:
        config.max_workers = max(1, args.workers)
    if args.force_ocr:
        config.force_ocr = True
    if args.debug:
        config.debug_mode = True

    return config


def run_pipeline(args) -> int:
    """Process every input and export the tables that were found."""
    from .utils.io import expand_inputs, ensure_dir
    from .utils.export import TableExporter, parse_formats
    from .utils.pipeline import BatchProcessor, JobStatus

    start_time = time.time()
    config = build_config(args)

    inputs: List[Path] = expand_inputs(args.input)
    if not inputs:
        logger.error("No PDFs or images to process")
        return 1

    output_dir = ensure_dir(args.output)
    formats = parse_formats(args.format or config.export.output_formats)
    exporter = TableExporter(
        output_dir,
        sheet_name=config.export.sheet_name,
        file_suffix=config.export.file_suffix
    )

    logger.info(f"Processing {len(inputs)} document(s) with {config.max_workers} worker(s)")
    with BatchProcessor(config) as batch:
        jobs = batch.run(inputs)

    failures = 0
    for job in jobs:
        if job.status is not JobStatus.COMPLETED:
            failures += 1
            continue
        try:
            for fmt, path in exporter.export(job.result, job.name, formats).items():
                logger.info(f"Exported {fmt}: {path}")
        except Exception as e:
            job.status = JobStatus.ERROR
            job.error = f"Export failed: {e}"
            logger.error(f"{job.name}: {job.error}")
            failures += 1

    elapsed = time.time() - start_time

    if not args.quiet:
        print("\n" + "=" * 60)
        print("TABLE RECONSTRUCTION COMPLETE")
        print("=" * 60)
        for job in jobs:
            if job.status is JobStatus.COMPLETED:
                source = f"OCR ({job.language})" if job.used_ocr else "text layer"
                print(f"  {job.name}: {job.result.num_rows} rows x "
                      f"{job.result.num_cols} columns [{source}]")
            else:
                print(f"  {job.name}: FAILED ({job.error})")
        print()
        print(f"Output: {output_dir}")
        print(f"Processing time: {elapsed:.2f}s")
        print("=" * 60)

    return 1 if failures else 0


def main():
    """Main entry point."""
    parser = setup_argparser()
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    try:
        exit_code = run_pipeline(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if args.debug:
            raise
        sys.exit(1)


if __name__ == "__main__":
    main()
