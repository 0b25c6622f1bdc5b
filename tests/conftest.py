"""Shared pytest fixtures for all tests."""

import struct

import pytest
from cli.config import Config


def build_psd(width: int = 1, height: int = 1, fill: int = 0x80) -> bytes:
    """
    Build a flat 8-bit RGB PSD with raw image data and no layers.

    Args:
        width: Image width in pixels
        height: Image height in pixels
        fill: Byte value used for every channel sample

    Returns:
        Complete PSD file bytes
    """
    header = b"8BPS" + struct.pack(">H6xHIIHH", 1, 3, height, width, 8, 3)
    sections = struct.pack(">III", 0, 0, 0)
    image_data = struct.pack(">H", 0) + bytes([fill]) * (3 * width * height)
    return header + sections + image_data


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .psdconvert directory
    """
    config_dir = tmp_path / '.psdconvert'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Args:
        temp_config_dir: Temporary config directory fixture

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def make_psd():
    """Factory for PSDs of a chosen size."""
    return build_psd


@pytest.fixture
def psd_bytes():
    """Smallest PSD psd-tools accepts: 1x1 RGB."""
    return build_psd()


@pytest.fixture
def large_psd_bytes():
    """256x256 RGB PSD (~192 KiB) for multi-chunk uploads."""
    return build_psd(256, 256)


@pytest.fixture
def png_bytes():
    """A 1x1 PNG, i.e. a still image that is not a PSD."""
    return bytes.fromhex(
        "89504e470d0a1a0a0000000d49484452000000010000000108060000001f15c489"
        "0000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082"
    )


@pytest.fixture
def sample_psd(tmp_path, psd_bytes):
    """
    Write a small PSD to disk.

    Returns:
        Path to the PSD file
    """
    file_path = tmp_path / 'mockup.psd'
    file_path.write_bytes(psd_bytes)
    return file_path
