"""Utility functions for CLI operations."""

import sys
from typing import Optional

from cli.constants import GREEN, RESET


class ChunkProgressPrinter:
    """Chunk callback that renders upload progress on a single stdout line."""

    def __init__(self, filename: str, file_size: int):
        """
        Args:
            filename: Display name for the file
            file_size: Total size of the file in bytes
        """
        self.filename = filename
        self.file_size = file_size
        self.chunks_sent = 0

    def __call__(self, chunk_index: int, total_size: int, progress: Optional[float]) -> None:
        self.chunks_sent += 1
        if progress is None:
            progress = total_size / self.file_size if self.file_size else 0.0
        sys.stdout.write(
            f"\rUploading {self.filename}: {format_file_size(total_size)} / "
            f"{format_file_size(self.file_size)} ({GREEN}{progress * 100:.1f}%{RESET})"
        )
        sys.stdout.flush()

    def finish(self) -> None:
        """Terminate the progress line if anything was printed."""
        if self.chunks_sent:
            sys.stdout.write('\n')
            sys.stdout.flush()


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"


def format_layer_tree(layers: list[dict], indent: int = 0, limit: int = 20) -> list[str]:
    """Render a parsed layer list as indented lines, capped at `limit` entries."""
    lines: list[str] = []

    def walk(items: list[dict], depth: int) -> None:
        for layer in items:
            if len(lines) >= limit:
                return
            kind = layer.get('type', 'layer')
            size = f"{layer.get('width', 0)}x{layer.get('height', 0)}"
            hidden = '' if layer.get('visible', True) else ' (hidden)'
            lines.append(f"{'  ' * depth}- {layer.get('name', '?')} [{kind}, {size}]{hidden}")
            walk(layer.get('children') or [], depth + 1)

    walk(layers, indent)
    return lines
