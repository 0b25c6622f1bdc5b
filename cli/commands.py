"""Command handler functions for CLI operations."""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from common.logging_config import get_logger
from common.types import ConversionOptions, TargetFramework, UploadEncoding
from cli.api_client import ConverterApiClient
from cli.backends import ConverterBackend, HttpConverterBackend
from cli.chunked_upload import ChunkedUploader
from cli.config import Config, ConfigError
from cli.models import (
    AbortCommand,
    ConfigCommand,
    ConvertCommand,
    SetCommand,
    StatusCommand,
    UploadCommand,
)
from cli.pipeline import ConversionPipeline, PipelineStage
from cli.preview import write_conversion_outputs
from cli.results import Failure
from cli.utils import ChunkProgressPrinter, format_file_size, format_layer_tree

logger = get_logger(__name__)


ERROR_HINTS = {
    'NETWORK_ERROR': 'Is the converter server running? Check api_host/api_port with: config',
    'MALFORMED_RESPONSE': 'The server answered with something other than JSON. Check api_host/api_port.',
    'INVALID_UPLOAD_ID': 'Upload session not found. It may have expired (5 minutes idle) or been completed.',
    'UPLOAD_ABORTED': 'The upload session was aborted. Start a new upload.',
    'CHUNK_OUT_OF_ORDER': 'Chunks must arrive in index order. Restart the upload.',
    'FILE_TOO_LARGE': 'File exceeds the server upload limit (50 MiB).',
    'FILE_TOO_LARGE_DIRECT': 'File is above the server direct-parse limit. Lower direct_upload_limit_bytes so it is chunked.',
    'INVALID_PSD_SIGNATURE': 'This does not look like a Photoshop document (missing 8BPS signature).',
    'PSD_PARSE_FAILED': 'The document could not be parsed. It may be corrupted or an unsupported variant.',
    'SIZE_MISMATCH': 'Server and client disagree about the uploaded size. Retry the upload.',
    'FILE_NOT_FOUND': 'Check the file path (relative paths resolve from the current directory).',
    'EMPTY_FILE': 'The selected file is empty.',
}


@dataclass
class CliContext:
    """
    Everything a command handler needs.

    api is None when the CLI runs against the offline mock backend.
    """

    config: Config
    backend: ConverterBackend
    api: Optional[ConverterApiClient] = None
    last_upload_id: Optional[str] = None


def format_failure(failure: Failure, prefix: str = "Error") -> str:
    """Literal message and code, followed by a hint when one is known."""
    text = f"{prefix}: {failure.describe()}"
    hint = ERROR_HINTS.get(failure.error)
    if hint:
        text += f"\n  Hint: {hint}"
    return text


def _requires_server(ctx: CliContext, command: str) -> Optional[str]:
    if ctx.api is None:
        return f"'{command}' needs a converter server and is unavailable in --mock mode."
    return None


def handle_upload(cmd: UploadCommand, ctx: CliContext) -> str:
    """
    Handle 'upload' command.

    Args:
        cmd: UploadCommand with file path and chunking options
        ctx: Active CLI context

    Returns:
        Summary of the parsed document or error message
    """
    unavailable = _requires_server(ctx, "upload")
    if unavailable:
        return unavailable

    path = Path(cmd.file_path).expanduser()
    chunk_size = cmd.chunk_kib * 1024 if cmd.chunk_kib else ctx.config.get_chunk_size()
    encoding = UploadEncoding.GZIP if cmd.gzip else ctx.config.get_upload_encoding()
    logger.info(f"Executing upload command: {path} chunk_size={chunk_size} encoding={encoding.value}")

    uploader = ChunkedUploader(ctx.api, chunk_size=chunk_size, encoding=encoding)
    size = path.stat().st_size if path.is_file() else 0
    printer = ChunkProgressPrinter(path.name, size)
    result = uploader.upload_file(path, on_chunk=printer)
    printer.finish()
    if uploader.last_upload_id:
        ctx.last_upload_id = uploader.last_upload_id

    if isinstance(result, Failure):
        return format_failure(result, "Upload failed")

    outcome = result.value
    document = outcome.document
    lines = [
        f"Uploaded {path.name}: {format_file_size(outcome.total_size)} in {outcome.chunk_count} chunks",
        f"Document: {document.width}x{document.height}, {len(document.layers)} top-level layers",
    ]
    lines.extend(format_layer_tree(document.layers, indent=1))
    if outcome.metrics:
        metrics = ", ".join(f"{k}={v}" for k, v in outcome.metrics.items())
        lines.append(f"Metrics: {metrics}")
    return "\n".join(lines)


def _print_stage(stage: PipelineStage, progress: int) -> None:
    sys.stdout.write(f"[{progress:3d}%] {stage.value}\n")
    sys.stdout.flush()


def handle_convert(cmd: ConvertCommand, ctx: CliContext) -> str:
    """
    Handle 'convert' command.

    Args:
        cmd: ConvertCommand with file path, options and output directory
        ctx: Active CLI context

    Returns:
        Conversion summary with written files, or error message
    """
    path = Path(cmd.file_path).expanduser()
    defaults = ctx.config.get_conversion_options()
    options = ConversionOptions(
        target_framework=TargetFramework(cmd.framework) if cmd.framework else defaults.target_framework,
        responsive=cmd.responsive,
        semantic=cmd.semantic,
        accessibility=cmd.accessibility,
    )
    threshold = cmd.threshold if cmd.threshold is not None else ctx.config.get_validation_threshold()
    output_dir = Path(cmd.output_dir) if cmd.output_dir else ctx.config.get_output_dir()
    logger.info(f"Executing convert command: {path} options={options.to_request()} validate={cmd.validate}")

    size = path.stat().st_size if path.is_file() else 0
    printer = ChunkProgressPrinter(path.name, size)
    pipeline = ConversionPipeline(
        ctx.backend,
        path,
        options=options,
        validate=cmd.validate,
        threshold=threshold,
        on_progress=_print_stage,
        on_chunk=printer,
    )
    outcome = pipeline.run()
    printer.finish()

    if not outcome.succeeded:
        return format_failure(outcome.failure, "Conversion failed")

    try:
        written = write_conversion_outputs(
            outcome.conversion, outcome.preview_html, output_dir, path.stem
        )
    except OSError as e:
        logger.error(f"Failed writing outputs to {output_dir}: {e}")
        return f"Error: cannot write outputs to {output_dir}: {e}"
    artifact = outcome.conversion
    lines = [
        f"Converted {path.name} ({artifact.framework}, {len(artifact.components)} components)",
    ]
    if outcome.validation is not None:
        report = outcome.validation
        verdict = "PASSED" if report.passed else "FAILED"
        lines.append(
            f"Validation {verdict}: similarity {report.similarity:.2%} "
            f"(threshold {report.threshold:.2%}, {report.differences} differing pixels)"
        )
        for issue in report.issues:
            lines.append(f"  - {issue}")
    elif outcome.validation_failure is not None:
        lines.append(format_failure(outcome.validation_failure, "Validation skipped"))
    else:
        lines.append("Validation disabled")
    for label, written_path in written.items():
        lines.append(f"  {label}: {written_path}")
    return "\n".join(lines)


def handle_status(cmd: StatusCommand, ctx: CliContext) -> str:
    """Handle 'status' command."""
    unavailable = _requires_server(ctx, "status")
    if unavailable:
        return unavailable

    result = ctx.api.upload_status(cmd.upload_id)
    if isinstance(result, Failure):
        return format_failure(result)

    body = result.value
    expected = body.get('expectedSize')
    lines = [
        f"Upload {cmd.upload_id}: {body.get('fileName', '?')}",
        f"  received: {format_file_size(body.get('totalSize', 0))} in {body.get('chunkCount', 0)} chunks",
    ]
    if expected:
        lines.append(f"  expected: {format_file_size(expected)} ({(body.get('progress') or 0) * 100:.1f}%)")
    lines.append(f"  encoding: {body.get('encoding', 'none')}  aborted: {body.get('aborted', False)}")
    return "\n".join(lines)


def handle_abort(cmd: AbortCommand, ctx: CliContext) -> str:
    """Handle 'abort' command."""
    unavailable = _requires_server(ctx, "abort")
    if unavailable:
        return unavailable

    upload_id = cmd.upload_id or ctx.last_upload_id
    if not upload_id:
        return "Error: no upload id given and no previous upload in this session"

    result = ctx.api.abort_upload(upload_id)
    if isinstance(result, Failure):
        return format_failure(result)
    if upload_id == ctx.last_upload_id:
        ctx.last_upload_id = None
    return f"Upload {upload_id} aborted"


def _apply_upload_settings(backend: HttpConverterBackend, config: Config) -> None:
    """Push chunking settings into a running backend."""
    backend.uploader.chunk_size = config.get_chunk_size()
    backend.uploader.encoding = config.get_upload_encoding()
    backend.direct_upload_limit = config.get_direct_upload_limit()


def handle_set(cmd: SetCommand, ctx: CliContext) -> str:
    """Handle 'set' command."""
    try:
        value = ctx.config.set_value(cmd.key, cmd.value)
    except ConfigError as e:
        return f"Error: {e}"
    logger.info(f"Config updated: {cmd.key}={value}")
    if isinstance(ctx.backend, HttpConverterBackend):
        _apply_upload_settings(ctx.backend, ctx.config)
    message = f"{cmd.key} = {value}"
    if cmd.key in ("api_scheme", "api_host", "api_port", "timeout"):
        message += " (takes effect on next start)"
    return message


def handle_config(cmd: ConfigCommand, ctx: CliContext) -> str:
    """Handle 'config' command."""
    lines = [f"Config file: {ctx.config.config_path}", f"Backend: {ctx.backend.name}"]
    for key in sorted(ctx.config.data):
        lines.append(f"  {key} = {ctx.config.data[key]}")
    return "\n".join(lines)
