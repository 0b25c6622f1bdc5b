"""Shared data type definitions (Chunk, PsdDocument, ConversionArtifact, etc.)."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from common.constants import DEFAULT_VALIDATION_THRESHOLD


class UploadEncoding(str, Enum):
    """Per-chunk transfer encoding negotiated at session init."""
    NONE = "none"
    GZIP = "gzip"


class TargetFramework(str, Enum):
    """Markup flavours accepted by the conversion endpoint."""
    VANILLA = "vanilla"
    REACT = "react"
    VUE = "vue"
    ANGULAR = "angular"


@dataclass(frozen=True)
class Chunk:
    """
    A contiguous byte range of a source file.
    """
    index: int
    payload: bytes

    @property
    def size(self) -> int:
        return len(self.payload)


@dataclass(frozen=True)
class ConversionOptions:
    """
    Options passed through verbatim to the conversion endpoint.
    """
    target_framework: TargetFramework = TargetFramework.VANILLA
    responsive: bool = True
    semantic: bool = True
    accessibility: bool = True

    def to_request(self) -> dict:
        return {
            "targetFramework": self.target_framework.value,
            "responsive": self.responsive,
            "semantic": self.semantic,
            "accessibility": self.accessibility,
        }


@dataclass
class PsdDocument:
    """
    Parsed document as returned by parse-psd or psd-chunks/complete.

    The raw payload is kept so it can be forwarded unchanged to the
    convert and validate endpoints.
    """
    file_name: str
    width: int
    height: int
    layers: list[dict]
    metadata: dict
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_payload(cls, payload: dict) -> "PsdDocument":
        return cls(
            file_name=payload.get("fileName") or "",
            width=int(payload.get("width") or 0),
            height=int(payload.get("height") or 0),
            layers=list(payload.get("layers") or []),
            metadata=dict(payload.get("metadata") or {}),
            raw=payload,
        )

    def to_payload(self) -> dict:
        if self.raw:
            return self.raw
        return {
            "fileName": self.file_name,
            "width": self.width,
            "height": self.height,
            "layers": self.layers,
            "metadata": self.metadata,
        }


@dataclass
class ConversionArtifact:
    """
    HTML/CSS produced by the conversion endpoint.
    """
    html: str
    css: str
    components: list[dict]
    metadata: dict

    @classmethod
    def from_response(cls, body: dict, options: ConversionOptions) -> "ConversionArtifact":
        """
        Build an artifact from a convert response, echoing the requested
        options into metadata where the endpoint left them out.
        """
        metadata = dict(body.get("metadata") or {})
        metadata.setdefault("framework", options.target_framework.value)
        metadata.setdefault("responsive", options.responsive)
        metadata.setdefault("semantic", options.semantic)
        metadata.setdefault("accessibility", options.accessibility)
        metadata.setdefault("generatedAt", datetime.now(timezone.utc).isoformat())
        return cls(
            html=body.get("html") or "",
            css=body.get("css") or "",
            components=list(body.get("components") or []),
            metadata=metadata,
        )

    @property
    def framework(self) -> str:
        return self.metadata.get("framework", "")


@dataclass
class ValidationReport:
    """
    Visual fidelity report from the validation endpoint.
    """
    similarity: float
    differences: int
    total_pixels: int
    passed: bool
    issues: list[str]
    recommendations: list[str]
    threshold: float = DEFAULT_VALIDATION_THRESHOLD
    diff_image_url: Optional[str] = None
    validation_date: Optional[str] = None

    @classmethod
    def from_response(cls, body: dict, threshold: float) -> "ValidationReport":
        return cls(
            similarity=float(body.get("similarity") or 0.0),
            differences=int(body.get("differences") or 0),
            total_pixels=int(body.get("totalPixels") or 0),
            passed=bool(body.get("passed")),
            issues=list(body.get("issues") or []),
            recommendations=list(body.get("recommendations") or []),
            threshold=float(body.get("threshold", threshold)),
            diff_image_url=body.get("diffImageUrl"),
            validation_date=body.get("validationDate"),
        )


@dataclass(frozen=True)
class UploadOutcome:
    """
    Result of a finished chunked upload.
    """
    upload_id: str
    chunk_count: int
    total_size: int
    document: PsdDocument
    metrics: dict[str, Any] = field(default_factory=dict)
