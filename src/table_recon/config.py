"""
Configuration and constants for the table reconstruction pipeline.

This module provides:
- Global logging setup
- Reconstruction thresholds
- OCR and export settings
- Language tables for OCR script detection
"""

import os
from dataclasses import dataclass, field
from typing import Optional, List, Dict
import logging

# ============================================================================
# Logging Configuration
# ============================================================================

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("table_recon")


# ============================================================================
# Processing Configuration
# ============================================================================

@dataclass
class ReconstructionConfig:
    """Table reconstruction configuration."""
    # Max distance from a lane anchor for an X value to join that lane
    x_cluster_threshold: float = 20.0
    # Row bucketing tolerance; OCR gets the looser value to absorb jitter
    native_y_tolerance: float = 5.0
    ocr_y_tolerance: float = 8.0
    # Header is picked among this many leading rows
    header_scan_rows: int = 5
    # Row construction: "lanes" (default) or "adjacency"
    strategy: str = "lanes"
    # Horizontal gap below which adjacent fragments merge (adjacency mode)
    adjacency_gap: float = 10.0
    # Suffix duplicate header names instead of letting later columns win
    disambiguate_headers: bool = False


@dataclass
class OCRConfig:
    """OCR configuration."""
    # Language code, or "auto" to detect the script on the first page
    language: str = "auto"
    char_whitelist: Optional[str] = None
    char_blacklist: Optional[str] = None
    page_seg_mode: Optional[str] = None
    oem: int = 3
    # Render resolution for scanned pages (2x of the 72 DPI PDF unit)
    dpi: int = 144
    preprocess: bool = True


@dataclass
class ExportConfig:
    """Export configuration."""
    sheet_name: str = "Extracted Data"
    file_suffix: str = "_converted"
    output_formats: List[str] = field(default_factory=lambda: ["xlsx"])


@dataclass
class PipelineConfig:
    """Main pipeline configuration."""
    reconstruction: ReconstructionConfig = field(default_factory=ReconstructionConfig)
    ocr: OCRConfig = field(default_factory=OCRConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    # Documents with fewer extracted characters than this are treated as scans
    scanned_char_threshold: int = 50
    max_workers: int = 4
    force_ocr: bool = False
    debug_mode: bool = False


# ============================================================================
# Default Configuration Instance
# ============================================================================

def get_config() -> PipelineConfig:
    """Get the default pipeline configuration with environment overrides."""
    config = PipelineConfig()

    if os.environ.get("TABLE_RECON_DEBUG", "").lower() == "true":
        config.debug_mode = True

    lang = os.environ.get("TABLE_RECON_OCR_LANG")
    if lang:
        config.ocr.language = lang

    dpi = os.environ.get("TABLE_RECON_DPI")
    if dpi:
        config.ocr.dpi = int(dpi)

    workers = os.environ.get("TABLE_RECON_WORKERS")
    if workers:
        config.max_workers = max(1, int(workers))

    strategy = os.environ.get("TABLE_RECON_STRATEGY")
    if strategy:
        config.reconstruction.strategy = strategy.lower()

    return config


# ============================================================================
# Language Tables
# ============================================================================

AUTO_LANGUAGE = "auto"
DEFAULT_LANGUAGE = "eng"

SUPPORTED_LANGUAGES: List[Dict[str, str]] = [
    {"code": "auto", "name": "Auto-detect"},
    {"code": "eng", "name": "English"},
    {"code": "ben", "name": "Bangla (Bengali)"},
    {"code": "hin", "name": "Hindi"},
    {"code": "spa", "name": "Spanish"},
]

# Tesseract OSD script name -> most likely language pack
SCRIPT_TO_LANG: Dict[str, str] = {
    "Latin": "eng",
    "Bengali": "ben",
    "Han": "chi_sim",
    "Arabic": "ara",
    "Devanagari": "hin",
    "Japanese": "jpn",
    "Korean": "kor",
    "Cyrillic": "rus",
    "Greek": "ell",
    "Thai": "tha",
}


def language_for_script(script: Optional[str]) -> str:
    """Map a detected script name to a Tesseract language code."""
    if not script:
        return DEFAULT_LANGUAGE
    return SCRIPT_TO_LANG.get(script, DEFAULT_LANGUAGE)


# ============================================================================
# Export Formats
# ============================================================================

ALL_FORMATS = ["csv", "xlsx", "json", "markdown"]
