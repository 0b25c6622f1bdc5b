"""Backend strategies used by the conversion pipeline."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from common.chunking import to_data_url
from common.constants import MAX_DIRECT_UPLOAD_BYTES
from common.logging_config import get_logger
from common.types import (
    ConversionArtifact,
    ConversionOptions,
    PsdDocument,
    ValidationReport,
)
from cli.api_client import ConverterApiClient
from cli.chunked_upload import ChunkCallback, ChunkedUploader
from cli.results import ErrorKind, Failure, StepResult, Success

logger = get_logger(__name__)


class ConverterBackend(ABC):
    """
    Performs the remote steps of a conversion.

    Each method returns a StepResult instead of raising.
    """

    name: str = "backend"

    @abstractmethod
    def parse(self, file_path: Path, on_chunk: Optional[ChunkCallback] = None) -> StepResult:
        """Send the document and return Success(PsdDocument)."""

    @abstractmethod
    def convert(self, document: PsdDocument, options: ConversionOptions) -> StepResult:
        """Return Success(ConversionArtifact)."""

    @abstractmethod
    def validate(
        self,
        document: PsdDocument,
        artifact: ConversionArtifact,
        threshold: float,
        include_diff_image: bool = False,
    ) -> StepResult:
        """Return Success(ValidationReport)."""

    def close(self) -> None:
        pass


class HttpConverterBackend(ConverterBackend):
    """
    Talks to the converter service over HTTP.

    Documents up to direct_upload_limit bytes go inline to parse-psd as a
    data URL; larger ones go through the chunked uploader.
    """

    name = "http"

    def __init__(
        self,
        api: ConverterApiClient,
        uploader: Optional[ChunkedUploader] = None,
        direct_upload_limit: int = MAX_DIRECT_UPLOAD_BYTES,
    ):
        self.api = api
        self.uploader = uploader or ChunkedUploader(api)
        self.direct_upload_limit = direct_upload_limit

    def parse(self, file_path: Path, on_chunk: Optional[ChunkCallback] = None) -> StepResult:
        try:
            size = file_path.stat().st_size
        except OSError as e:
            return Failure(ErrorKind.INPUT, 'FILE_NOT_FOUND', f"Cannot read {file_path}: {e}")

        if size > self.direct_upload_limit:
            logger.info(f"Parsing {file_path.name} via chunked upload ({size} bytes)")
            uploaded = self.uploader.upload_file(file_path, on_chunk=on_chunk)
            if isinstance(uploaded, Failure):
                return uploaded
            return Success(uploaded.value.document)

        logger.info(f"Parsing {file_path.name} inline ({size} bytes)")
        try:
            data_url = to_data_url(file_path.read_bytes())
        except OSError as e:
            return Failure(ErrorKind.INPUT, 'FILE_READ_ERROR', f"Cannot read {file_path}: {e}")

        parsed = self.api.parse_psd(data_url, include_image_data=False)
        if isinstance(parsed, Failure):
            return parsed
        payload = parsed.value.get('data')
        if not isinstance(payload, dict):
            return Failure(ErrorKind.MALFORMED_RESPONSE, 'MALFORMED_RESPONSE', 'parse-psd returned no data')
        payload.setdefault('fileName', file_path.name)
        return Success(PsdDocument.from_payload(payload))

    def convert(self, document: PsdDocument, options: ConversionOptions) -> StepResult:
        converted = self.api.convert_psd(document.to_payload(), options)
        if isinstance(converted, Failure):
            return converted
        return Success(ConversionArtifact.from_response(converted.value, options))

    def validate(
        self,
        document: PsdDocument,
        artifact: ConversionArtifact,
        threshold: float,
        include_diff_image: bool = False,
    ) -> StepResult:
        validated = self.api.validate_psd(
            document.to_payload(), artifact.html, artifact.css, threshold, include_diff_image
        )
        if isinstance(validated, Failure):
            return validated
        return Success(ValidationReport.from_response(validated.value, threshold))

    def close(self) -> None:
        self.api.close()


class MockConverterBackend(ConverterBackend):
    """
    Deterministic offline backend returning a fixed four-layer layout.

    Used with `--mock` and as a fake in tests.
    """

    name = "mock"

    SIMILARITY = 0.87

    def parse(self, file_path: Path, on_chunk: Optional[ChunkCallback] = None) -> StepResult:
        return Success(PsdDocument.from_payload({
            'fileName': file_path.name,
            'width': 1920,
            'height': 1080,
            'layers': [
                {'name': 'Background', 'type': 'layer', 'position': {'left': 0, 'top': 0}, 'width': 1920, 'height': 1080},
                {'name': 'Header', 'type': 'layer', 'position': {'left': 0, 'top': 0}, 'width': 1920, 'height': 200},
                {'name': 'Content', 'type': 'layer', 'position': {'left': 100, 'top': 250}, 'width': 1720, 'height': 600},
                {'name': 'Footer', 'type': 'layer', 'position': {'left': 0, 'top': 900}, 'width': 1920, 'height': 180},
            ],
            'metadata': {'version': 1, 'channels': 4, 'colorMode': 'RGB'},
        }))

    def convert(self, document: PsdDocument, options: ConversionOptions) -> StepResult:
        header_tag, main_tag, footer_tag = ("header", "main", "footer") if options.semantic else ("div", "div", "div")
        html = (
            "<!DOCTYPE html>\n<html lang=\"en\">\n<head>\n"
            "  <meta charset=\"UTF-8\">\n"
            "  <meta name=\"viewport\" content=\"width=device-width, initial-scale=1.0\">\n"
            f"  <title>Converted - {document.file_name}</title>\n"
            "</head>\n<body>\n"
            f"  <{header_tag} class=\"header\">Header Content</{header_tag}>\n"
            f"  <{main_tag} class=\"content\">Main Content Area</{main_tag}>\n"
            f"  <{footer_tag} class=\"footer\">Footer Content</{footer_tag}>\n"
            "</body>\n</html>"
        )
        css = (
            ".header { position: absolute; top: 0; left: 0; width: 100%; height: 200px; background: #f0f0f0; }\n"
            ".content { position: absolute; top: 250px; left: 100px; width: 1720px; height: 600px; background: #ffffff; }\n"
            ".footer { position: absolute; top: 900px; left: 0; width: 100%; height: 180px; background: #333333; }"
        )
        if options.responsive:
            css += "\n@media (max-width: 768px) { .content { left: 0; width: 100%; } }"
        components = [
            {'id': 'header-1', 'type': 'header', 'name': 'Header', 'position': {'left': 0, 'top': 0}},
            {'id': 'content-1', 'type': 'main', 'name': 'Content', 'position': {'left': 100, 'top': 250}},
            {'id': 'footer-1', 'type': 'footer', 'name': 'Footer', 'position': {'left': 0, 'top': 900}},
        ]
        return Success(ConversionArtifact.from_response(
            {'html': html, 'css': css, 'components': components},
            options,
        ))

    def validate(
        self,
        document: PsdDocument,
        artifact: ConversionArtifact,
        threshold: float,
        include_diff_image: bool = False,
    ) -> StepResult:
        total_pixels = (document.width or 1920) * (document.height or 1080)
        return Success(ValidationReport(
            similarity=self.SIMILARITY,
            differences=1250,
            total_pixels=total_pixels,
            passed=self.SIMILARITY >= threshold,
            issues=[
                "Layout spacing slightly off",
                "Font rendering differences",
            ],
            recommendations=[
                "Adjust margin calculations",
                "Use exact font matching",
            ],
            threshold=threshold,
            validation_date=datetime.now(timezone.utc).isoformat(),
        ))
