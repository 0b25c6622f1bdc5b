"""PSD decoding on top of psd-tools."""

import base64
import struct
import time
from io import BytesIO
from typing import Any

from psd_tools import PSDImage
from psd_tools.psd.header import FileHeader

from common.constants import BUILD_VERSION, PSD_SIGNATURE
from common.logging_config import get_logger
from server.config import MAX_LAYER_DEPTH, MAX_LAYERS_PER_GROUP
from server.exceptions import InvalidPsdSignatureError, PsdParseError

logger = get_logger(__name__)

HEADER_SIZE = 26


def check_signature(data: bytes) -> None:
    """
    Raises:
        InvalidPsdSignatureError: If data does not start with 8BPS
    """
    if data[:len(PSD_SIGNATURE)] != PSD_SIGNATURE:
        raise InvalidPsdSignatureError(
            f"Missing PSD signature (got {data[:4]!r})"
        )


def read_header(data: bytes) -> dict[str, Any]:
    """
    Decode the fixed 26-byte file header.

    Args:
        data: At least the first 26 bytes of the document

    Returns:
        Dict with version, channels, width, height, depth, colorMode

    Raises:
        InvalidPsdSignatureError: If the signature is wrong
        PsdParseError: If the header is truncated or has invalid fields
    """
    check_signature(data)
    if len(data) < HEADER_SIZE:
        raise PsdParseError(f"Header truncated: {len(data)} of {HEADER_SIZE} bytes")
    try:
        header = FileHeader.read(BytesIO(data[:HEADER_SIZE]))
    except (ValueError, struct.error) as e:
        raise PsdParseError(f"Invalid PSD header: {e}") from e
    return {
        'version': header.version,
        'channels': header.channels,
        'width': header.width,
        'height': header.height,
        'depth': header.depth,
        'colorMode': header.color_mode.name,
    }


def _layer_info(layer, depth: int, max_depth: int, max_layers: int) -> dict[str, Any]:
    info = {
        'name': layer.name,
        'type': layer.kind,
        'visible': layer.visible,
        'opacity': round(layer.opacity / 255, 3),
        'blendMode': layer.blend_mode.name.lower(),
        'position': {
            'left': layer.left,
            'top': layer.top,
            'right': layer.right,
            'bottom': layer.bottom,
        },
        'width': layer.width,
        'height': layer.height,
    }
    if layer.kind == 'type':
        info['text'] = {'content': layer.text}
    if layer.is_group():
        info['children'] = _extract_layers(list(layer), depth + 1, max_depth, max_layers)
    return info


def _extract_layers(layers: list, depth: int, max_depth: int, max_layers: int) -> list[dict]:
    """Describe up to max_layers layers per group, descending max_depth levels."""
    if depth >= max_depth:
        return []
    if len(layers) > max_layers:
        logger.debug(f"Group has {len(layers)} layers, keeping the first {max_layers}")
        layers = layers[:max_layers]
    return [_layer_info(layer, depth, max_depth, max_layers) for layer in layers]


def _count_layers(layers: list[dict]) -> int:
    return sum(1 + _count_layers(layer.get('children') or []) for layer in layers)


def parse_psd_bytes(
    data: bytes,
    file_name: str,
    include_image_data: bool = False,
    max_layers: int = MAX_LAYERS_PER_GROUP,
    max_depth: int = MAX_LAYER_DEPTH,
) -> dict[str, Any]:
    """
    Parse a complete PSD document into the summary sent to clients.

    Blocking; callers on the event loop should run it in a worker thread.

    Args:
        data: Full document bytes
        file_name: Name reported back in the summary
        include_image_data: Add the merged composite as a PNG data URL
        max_layers: Layers kept per group
        max_depth: Group nesting levels described

    Returns:
        {fileName, width, height, layers, metadata[, imageData]}

    Raises:
        InvalidPsdSignatureError: If data is not a PSD
        PsdParseError: If psd-tools cannot read the document
    """
    check_signature(data)
    started = time.monotonic()

    try:
        psd = PSDImage.open(BytesIO(data))
        layers = _extract_layers(list(psd), 0, max_depth, max_layers)
    except Exception as e:
        logger.warning(f"psd-tools rejected {file_name}: {type(e).__name__}: {e}")
        raise PsdParseError(f"Failed to parse PSD: {e}") from e

    summary = {
        'fileName': file_name,
        'width': psd.width,
        'height': psd.height,
        'layers': layers,
        'metadata': {
            'version': psd.version,
            'channels': psd.channels,
            'colorMode': psd.color_mode.name,
            'depth': psd.depth,
            'fileSize': len(data),
            'processedLayers': _count_layers(layers),
            'maxLayersAllowed': max_layers,
            'buildVersion': BUILD_VERSION,
        },
    }

    if include_image_data:
        try:
            image = psd.topil()
            if image is not None:
                buffer = BytesIO()
                image.save(buffer, format='PNG')
                summary['imageData'] = 'data:image/png;base64,' + base64.b64encode(buffer.getvalue()).decode('ascii')
        except Exception as e:
            logger.warning(f"psd-tools could not composite {file_name}: {type(e).__name__}: {e}")
            raise PsdParseError(f"Failed to render composite image: {e}") from e
        summary['metadata']['hasCompositeImage'] = image is not None

    summary['metadata']['elapsedMs'] = int((time.monotonic() - started) * 1000)
    logger.info(
        f"Parsed {file_name}: {psd.width}x{psd.height} layers={summary['metadata']['processedLayers']} "
        f"in {summary['metadata']['elapsedMs']}ms"
    )
    return summary
