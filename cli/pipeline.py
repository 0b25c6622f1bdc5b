"""Parse -> convert -> validate -> preview orchestration."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from common.constants import DEFAULT_VALIDATION_THRESHOLD
from common.logging_config import get_logger
from common.types import (
    ConversionArtifact,
    ConversionOptions,
    PsdDocument,
    ValidationReport,
)
from cli.backends import ConverterBackend
from cli.chunked_upload import ChunkCallback
from cli.preview import build_preview_document
from cli.results import ErrorKind, Failure

logger = get_logger(__name__)


class PipelineStage(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    PARSING = "parsing"
    CONVERTING = "converting"
    VALIDATING = "validating"
    COMPLETE = "complete"
    ERRORED = "errored"


# Progress checkpoints (percent) reached when each step resolves.
PROGRESS_UPLOAD_STARTED = 10
PROGRESS_ENCODED = 25
PROGRESS_PARSED = 50
PROGRESS_CONVERTED = 75
PROGRESS_COMPLETE = 100

ProgressCallback = Callable[[PipelineStage, int], None]


@dataclass
class PipelineOutcome:
    """Everything a run produced, including partial results on failure."""

    stage: PipelineStage
    progress: int
    document: Optional[PsdDocument] = None
    conversion: Optional[ConversionArtifact] = None
    validation: Optional[ValidationReport] = None
    validation_failure: Optional[Failure] = None
    preview_html: Optional[str] = None
    failure: Optional[Failure] = None

    @property
    def succeeded(self) -> bool:
        return self.stage == PipelineStage.COMPLETE


class ConversionPipeline:
    """
    Runs the conversion steps in order against an injected backend.

    The pipeline keeps the selected file and options between runs, so a
    failed run can simply be invoked again. Nothing is retried
    automatically. Validation is best-effort: its failure still ends in
    COMPLETE with no validation report.
    """

    def __init__(
        self,
        backend: ConverterBackend,
        file_path: Path,
        options: Optional[ConversionOptions] = None,
        validate: bool = True,
        threshold: float = DEFAULT_VALIDATION_THRESHOLD,
        include_diff_image: bool = False,
        on_progress: Optional[ProgressCallback] = None,
        on_chunk: Optional[ChunkCallback] = None,
    ):
        self.backend = backend
        self.file_path = Path(file_path)
        self.options = options or ConversionOptions()
        self.validate = validate
        self.threshold = threshold
        self.include_diff_image = include_diff_image
        self.on_progress = on_progress
        self.on_chunk = on_chunk

        self.stage = PipelineStage.IDLE
        self.progress = 0
        self.last_outcome: Optional[PipelineOutcome] = None

    def _advance(self, stage: PipelineStage, progress: Optional[int] = None) -> None:
        self.stage = stage
        if progress is not None and progress > self.progress:
            self.progress = progress
        logger.debug(f"Pipeline stage={stage.value} progress={self.progress}")
        if self.on_progress is not None:
            self.on_progress(stage, self.progress)

    def _fail(self, outcome: PipelineOutcome, failure: Failure) -> PipelineOutcome:
        logger.warning(
            f"Pipeline failed during {self.stage.value}: {failure.describe()} [file={self.file_path.name}]"
        )
        outcome.failure = failure
        self._advance(PipelineStage.ERRORED)
        outcome.stage = self.stage
        outcome.progress = self.progress
        self.last_outcome = outcome
        return outcome

    def _check_source(self) -> Optional[Failure]:
        if not self.file_path.exists():
            return Failure(ErrorKind.INPUT, 'FILE_NOT_FOUND', f"File not found: {self.file_path}")
        if not self.file_path.is_file():
            return Failure(ErrorKind.INPUT, 'NOT_A_FILE', f"Not a file: {self.file_path}")
        if self.file_path.stat().st_size == 0:
            return Failure(ErrorKind.INPUT, 'EMPTY_FILE', f"File is empty: {self.file_path}")
        return None

    def run(self) -> PipelineOutcome:
        """
        Execute one full conversion.

        Returns:
            PipelineOutcome in COMPLETE or ERRORED stage
        """
        self.progress = 0
        outcome = PipelineOutcome(stage=PipelineStage.IDLE, progress=0)
        logger.info(
            f"Starting conversion: {self.file_path.name} backend={self.backend.name} "
            f"options={self.options.to_request()}"
        )

        self._advance(PipelineStage.UPLOADING, PROGRESS_UPLOAD_STARTED)
        problem = self._check_source()
        if problem is not None:
            return self._fail(outcome, problem)
        self._advance(PipelineStage.PARSING, PROGRESS_ENCODED)

        parsed = self.backend.parse(self.file_path, on_chunk=self.on_chunk)
        if isinstance(parsed, Failure):
            return self._fail(outcome, parsed)
        outcome.document = parsed.value
        self._advance(PipelineStage.CONVERTING, PROGRESS_PARSED)

        converted = self.backend.convert(outcome.document, self.options)
        if isinstance(converted, Failure):
            return self._fail(outcome, converted)
        outcome.conversion = converted.value
        outcome.preview_html = build_preview_document(
            outcome.conversion.html, outcome.conversion.css, self.file_path.name
        )

        if self.validate:
            self._advance(PipelineStage.VALIDATING, PROGRESS_CONVERTED)
            validated = self.backend.validate(
                outcome.document, outcome.conversion, self.threshold, self.include_diff_image
            )
            if isinstance(validated, Failure):
                logger.warning(f"Validation unavailable, continuing without it: {validated.describe()}")
                outcome.validation_failure = validated
            else:
                outcome.validation = validated.value
        else:
            self.progress = max(self.progress, PROGRESS_CONVERTED)

        self._advance(PipelineStage.COMPLETE, PROGRESS_COMPLETE)
        outcome.stage = self.stage
        outcome.progress = self.progress
        self.last_outcome = outcome
        logger.info(
            f"Conversion complete: {self.file_path.name} framework={outcome.conversion.framework} "
            f"validated={outcome.validation is not None}"
        )
        return outcome
