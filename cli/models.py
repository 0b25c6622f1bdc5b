"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal, Optional


@dataclass(frozen=True)
class UploadCommand:
    """Chunk-upload a PSD and print the parsed summary."""

    file_path: str
    chunk_kib: Optional[int] = None
    gzip: bool = False
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class ConvertCommand:
    """Run the full conversion pipeline on a PSD."""

    file_path: str
    framework: Optional[str] = None
    responsive: bool = True
    semantic: bool = True
    accessibility: bool = True
    validate: bool = True
    threshold: Optional[float] = None
    output_dir: Optional[str] = None
    command: Literal["convert"] = "convert"


@dataclass(frozen=True)
class StatusCommand:
    """Show the state of an upload session."""

    upload_id: str
    command: Literal["status"] = "status"


@dataclass(frozen=True)
class AbortCommand:
    """Discard an upload session."""

    upload_id: Optional[str] = None
    command: Literal["abort"] = "abort"


@dataclass(frozen=True)
class SetCommand:
    """Change a persisted configuration value."""

    key: str
    value: str
    command: Literal["set"] = "set"


@dataclass(frozen=True)
class ConfigCommand:
    """Print the active configuration."""

    command: Literal["config"] = "config"


CommandRequest = (
    UploadCommand
    | ConvertCommand
    | StatusCommand
    | AbortCommand
    | SetCommand
    | ConfigCommand
)
