"""
Per-document extraction pipeline.

Provides:
- ProcessingJob record (status, progress, result, error)
- Cancellation tokens
- DocumentPipeline: text layer -> scan check -> page count ->
  rasterize + OCR page by page -> reconstruction
- BatchProcessor: one pipeline per document on a worker pool
"""

import logging
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union, Any

from ..config import PipelineConfig, get_config, AUTO_LANGUAGE, DEFAULT_LANGUAGE
from .fragments import FragmentDocument, Origin
from .tables import ExtractedTable, TableReconstructor, NO_TABLE_MESSAGE

logger = logging.getLogger(__name__)


# ============================================================================
# Errors
# ============================================================================

class PipelineCancelled(Exception):
    """Raised inside a pipeline when its token was cancelled."""


class NoTableFoundError(RuntimeError):
    """Reconstruction finished but produced no data rows."""

    def __init__(self, message: str = NO_TABLE_MESSAGE):
        super().__init__(message)


# ============================================================================
# Data Classes
# ============================================================================

class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"
    CANCELLED = "cancelled"


class CancellationToken:
    """Per-document cancel flag; checked between stages and pages."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self):
        if self._event.is_set():
            raise PipelineCancelled("Processing cancelled")


@dataclass
class ProcessingJob:
    """State of one document moving through the pipeline."""
    id: str
    name: str
    path: Path
    size: int = 0
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    result: Optional[ExtractedTable] = None
    error: Optional[str] = None
    used_ocr: bool = False
    language: Optional[str] = None

    @classmethod
    def for_path(cls, path: Union[str, Path]) -> "ProcessingJob":
        path = Path(path)
        size = path.stat().st_size if path.exists() else 0
        return cls(id=uuid.uuid4().hex[:8], name=path.name, path=path, size=size)

    def advance(self, value: int):
        """Progress never moves backwards."""
        self.progress = max(self.progress, min(100, int(value)))

    def reset(self):
        """Forget everything from a previous run."""
        self.status = JobStatus.PENDING
        self.progress = 0
        self.result = None
        self.error = None
        self.used_ocr = False
        self.language = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "size": self.size,
            "status": self.status.value,
            "progress": self.progress,
            "error": self.error,
            "used_ocr": self.used_ocr,
            "language": self.language,
            "result": self.result.to_dict() if self.result else None,
        }


ProgressCallback = Callable[[ProcessingJob], None]


# ============================================================================
# Document Pipeline
# ============================================================================

class DocumentPipeline:
    """
    Runs the stages for one document.

    Collaborators can be injected; by default they are created lazily
    from pdfminer, pdf2image and Tesseract.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        text_extractor: Optional[Callable[[Path], FragmentDocument]] = None,
        page_counter: Optional[Callable[[Path], int]] = None,
        page_renderer: Optional[Callable[[Path, int, int], Any]] = None,
        ocr_engine: Any = None,
        reconstructor: Optional[TableReconstructor] = None,
        progress_callback: Optional[ProgressCallback] = None
    ):
        self.config = config or get_config()
        self._text_extractor = text_extractor
        self._page_counter = page_counter
        self._page_renderer = page_renderer
        self._ocr_engine = ocr_engine
        self.reconstructor = reconstructor or TableReconstructor.from_config(
            self.config.reconstruction
        )
        self.progress_callback = progress_callback

    @property
    def text_extractor(self):
        if self._text_extractor is None:
            from .text_layer import extract_text_fragments
            self._text_extractor = extract_text_fragments
        return self._text_extractor

    @property
    def page_counter(self):
        if self._page_counter is None:
            from .io import get_pdf_page_count
            self._page_counter = get_pdf_page_count
        return self._page_counter

    @property
    def page_renderer(self):
        if self._page_renderer is None:
            from .io import render_pdf_page
            self._page_renderer = render_pdf_page
        return self._page_renderer

    @property
    def ocr_engine(self):
        if self._ocr_engine is None:
            from .ocr_text import TesseractEngine, OCROptions
            self._ocr_engine = TesseractEngine(
                options=OCROptions.from_config(self.config.ocr),
                preprocess=self.config.ocr.preprocess
            )
        return self._ocr_engine

    def _report(self, job: ProcessingJob, value: int):
        job.advance(value)
        if self.progress_callback:
            self.progress_callback(job)

    def is_scanned(self, document: FragmentDocument) -> bool:
        """Too little text in the text layer means the pages are images."""
        return document.total_characters < self.config.scanned_char_threshold

    def resolve_language(self, pdf_path: Path) -> str:
        """Use the configured language, detecting it from page 1 on "auto"."""
        language = self.config.ocr.language or AUTO_LANGUAGE
        if language != AUTO_LANGUAGE:
            return language
        first_page = self.page_renderer(pdf_path, 1, self.config.ocr.dpi)
        return self.ocr_engine.detect_language(first_page)

    def ocr_pdf(
        self,
        pdf_path: Path,
        job: ProcessingJob,
        token: CancellationToken
    ) -> FragmentDocument:
        """
        Rasterize and recognize every page, strictly one after another.

        Only one rendered page is alive at a time.
        """
        self._report(job, 20)
        count = self.page_counter(pdf_path)
        token.raise_if_cancelled()

        language = self.resolve_language(pdf_path)
        job.language = language
        logger.info(f"{job.name}: OCR of {count} pages ({language})")

        pages = []
        for i in range(1, count + 1):
            token.raise_if_cancelled()
            self._report(job, 20 + (i / count) * 70)
            image = self.page_renderer(pdf_path, i, self.config.ocr.dpi)
            pages.append(self.ocr_engine.recognize(image, language))
            del image

        return FragmentDocument(pages=pages, origin=Origin.OCR)

    def ocr_image(self, image_path: Path, job: ProcessingJob) -> FragmentDocument:
        """Recognize a single image as a one-page document."""
        from .io import load_image

        language = self.config.ocr.language
        if not language or language == AUTO_LANGUAGE:
            language = DEFAULT_LANGUAGE
        job.language = language

        self._report(job, 30)
        image = load_image(image_path)
        fragments = self.ocr_engine.recognize(image, language)
        self._report(job, 90)
        return FragmentDocument(pages=[fragments], origin=Origin.OCR)

    def extract_fragments(
        self,
        path: Path,
        job: ProcessingJob,
        token: CancellationToken
    ) -> FragmentDocument:
        """Stages 1-5: produce the fragment document for any input."""
        from .io import detect_input_type

        kind = detect_input_type(path)
        if kind == "image":
            job.used_ocr = True
            return self.ocr_image(path, job)
        if kind != "pdf":
            raise ValueError(f"Unsupported input type: {path}")

        document = None
        if not self.config.force_ocr:
            document = self.text_extractor(path)
            token.raise_if_cancelled()

        if document is None or self.is_scanned(document):
            if document is not None:
                logger.info(
                    f"{job.name}: only {document.total_characters} characters "
                    f"in text layer, falling back to OCR"
                )
            job.used_ocr = True
            document = self.ocr_pdf(path, job, token)

        return document

    def process(
        self,
        path: Union[str, Path],
        job: Optional[ProcessingJob] = None,
        token: Optional[CancellationToken] = None
    ) -> ProcessingJob:
        """
        Run the whole pipeline for one document.

        Never raises for per-document failures; the outcome is recorded
        on the returned job.
        """
        path = Path(path)
        job = job or ProcessingJob.for_path(path)
        token = token or CancellationToken()

        job.status = JobStatus.PROCESSING
        self._report(job, 10)

        try:
            token.raise_if_cancelled()
            document = self.extract_fragments(path, job, token)
            token.raise_if_cancelled()

            table = self.reconstructor.reconstruct(document)
            if table.is_empty:
                raise NoTableFoundError()

            job.result = table
            job.status = JobStatus.COMPLETED
            self._report(job, 100)
            logger.info(
                f"{job.name}: {table.num_rows} rows x {table.num_cols} columns"
            )
        except PipelineCancelled:
            job.status = JobStatus.CANCELLED
            job.error = "Cancelled"
            logger.info(f"{job.name}: cancelled")
        except Exception as e:
            job.status = JobStatus.ERROR
            job.error = str(e)
            logger.error(f"{job.name}: {e}")
            if self.config.debug_mode:
                logger.exception("Pipeline failure")

        if self.progress_callback:
            self.progress_callback(job)
        return job


# ============================================================================
# Batch Processor
# ============================================================================

class BatchProcessor:
    """
    Processes many documents concurrently.

    Each document gets a fresh DocumentPipeline and its own token, so
    cancelling or failing one never touches another.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        pipeline_factory: Optional[Callable[[], DocumentPipeline]] = None,
        max_workers: Optional[int] = None
    ):
        self.config = config or get_config()
        self.pipeline_factory = pipeline_factory or (lambda: DocumentPipeline(self.config))
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or self.config.max_workers
        )
        self._jobs: Dict[str, ProcessingJob] = {}
        self._tokens: Dict[str, CancellationToken] = {}
        self._futures: Dict[str, Future] = {}
        self._lock = threading.Lock()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()

    def _start(self, job: ProcessingJob) -> ProcessingJob:
        token = CancellationToken()
        pipeline = self.pipeline_factory()
        with self._lock:
            self._jobs[job.id] = job
            self._tokens[job.id] = token
            self._futures[job.id] = self._executor.submit(
                pipeline.process, job.path, job, token
            )
        return job

    def submit(self, path: Union[str, Path]) -> ProcessingJob:
        """Queue one document and return its job record."""
        return self._start(ProcessingJob.for_path(path))

    def cancel(self, job_id: str) -> bool:
        with self._lock:
            token = self._tokens.get(job_id)
        if token is None:
            return False
        token.cancel()
        return True

    def retry(self, job: ProcessingJob) -> ProcessingJob:
        """Re-run a finished job from scratch."""
        self.wait([job])
        job.reset()
        return self._start(job)

    def wait(self, jobs: Optional[List[ProcessingJob]] = None) -> List[ProcessingJob]:
        """
        Block until the given jobs (default: all) are finished.

        Returns:
            The jobs waited on, in submission order
        """
        with self._lock:
            if jobs is None:
                jobs = list(self._jobs.values())
                futures = list(self._futures.values())
            else:
                futures = [self._futures[j.id] for j in jobs if j.id in self._futures]
        wait_futures(futures)
        for future in futures:
            # Surfaces programming errors; per-document failures live on the job
            future.result()
        return jobs

    def run(self, paths: List[Union[str, Path]]) -> List[ProcessingJob]:
        """Submit every path and wait for all of them."""
        jobs = [self.submit(p) for p in paths]
        self.wait(jobs)
        return jobs

    def shutdown(self):
        self._executor.shutdown(wait=True)
