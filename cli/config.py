"""Configuration management for the PSD converter CLI."""

import json
import os
import shutil
from pathlib import Path
from typing import Any, Optional

from common.constants import (
    DEFAULT_CHUNK_SIZE_BYTES,
    DEFAULT_VALIDATION_THRESHOLD,
    MAX_CHUNK_SIZE_BYTES,
    MAX_DIRECT_UPLOAD_BYTES,
    MIN_CHUNK_SIZE_BYTES,
)
from common.logging_config import get_logger
from common.types import ConversionOptions, TargetFramework, UploadEncoding

logger = get_logger(__name__)


class ConfigError(ValueError):
    """Raised when a configuration value is rejected."""

    pass


class Config:
    """Manages CLI configuration stored in JSON file."""

    DEFAULT_CONFIG = {
        "api_scheme": "http",
        "api_host": os.environ.get("PSD_API_HOST", "localhost"),
        "api_port": int(os.environ.get("PSD_API_PORT", "8000")),
        "timeout": None,
        "chunk_size_kib": DEFAULT_CHUNK_SIZE_BYTES // 1024,
        "upload_encoding": UploadEncoding.NONE.value,
        "direct_upload_limit_bytes": MAX_DIRECT_UPLOAD_BYTES,
        "target_framework": TargetFramework.VANILLA.value,
        "validation_threshold": DEFAULT_VALIDATION_THRESHOLD,
        "output_dir": "converted",
    }

    def __init__(self, config_path: Path):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.psdconvert/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            import tempfile
            self.config_path = Path(tempfile.gettempdir()) / '.psdconvert' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                config = self.DEFAULT_CONFIG.copy()
                config.update(data)
                return config
            except (json.JSONDecodeError, IOError) as e:
                backup_path = self.config_path.with_suffix('.json.bak')
                logger.warning(f"Config file unreadable ({e}), backing up to {backup_path}")
                try:
                    shutil.copy(self.config_path, backup_path)
                except OSError as copy_error:
                    logger.warning(f"Could not back up config file: {copy_error}")
                return self.DEFAULT_CONFIG.copy()
        else:
            config = self.DEFAULT_CONFIG.copy()
            try:
                with open(self.config_path, 'w') as f:
                    json.dump(config, f, indent=2)
            except IOError as e:
                logger.warning(f"Could not write default config: {e}")
            return config

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except IOError as e:
            logger.warning(f"Could not save config: {e}")

    def set_value(self, key: str, raw_value: str) -> Any:
        """
        Validate, store and persist a single configuration value.

        Args:
            key: Configuration key (must be a known key)
            raw_value: Value as typed by the user

        Returns:
            The converted value that was stored

        Raises:
            ConfigError: If the key is unknown or the value invalid
        """
        if key not in self.DEFAULT_CONFIG:
            raise ConfigError(f"Unknown config key: {key}")

        value = self._convert(key, raw_value)
        self.data[key] = value
        self.save()
        return value

    def _convert(self, key: str, raw_value: str) -> Any:
        try:
            if key in ("api_port", "chunk_size_kib", "direct_upload_limit_bytes"):
                value = int(raw_value)
                if value <= 0:
                    raise ConfigError(f"{key} must be positive")
                if key == "chunk_size_kib" and not (
                    MIN_CHUNK_SIZE_BYTES <= value * 1024 <= MAX_CHUNK_SIZE_BYTES
                ):
                    raise ConfigError(
                        f"chunk_size_kib must be between {MIN_CHUNK_SIZE_BYTES // 1024} "
                        f"and {MAX_CHUNK_SIZE_BYTES // 1024}"
                    )
                return value
            if key == "timeout":
                if raw_value.lower() in ("none", "default", ""):
                    return None
                return float(raw_value)
            if key == "validation_threshold":
                value = float(raw_value)
                if not 0.0 <= value <= 1.0:
                    raise ConfigError("validation_threshold must be between 0 and 1")
                return value
            if key == "target_framework":
                return TargetFramework(raw_value.lower()).value
            if key == "upload_encoding":
                return UploadEncoding(raw_value.lower()).value
            if key == "api_scheme" and raw_value not in ("http", "https"):
                raise ConfigError("api_scheme must be http or https")
        except ValueError as e:
            if isinstance(e, ConfigError):
                raise
            raise ConfigError(f"Invalid value for {key}: {raw_value}")
        return raw_value

    def get_base_url(self) -> str:
        """
        Get API base URL.

        Returns:
            Base URL string (e.g., "http://localhost:8000")
        """
        scheme = self.data.get('api_scheme', 'http')
        host = self.data.get('api_host', 'localhost')
        port = self.data.get('api_port', 8000)
        return f"{scheme}://{host}:{port}"

    def get_timeout(self) -> Optional[float]:
        """
        Get request timeout in seconds.

        Returns:
            Timeout in seconds, or None to keep the HTTP client's default
        """
        return self.data.get('timeout')

    def get_chunk_size(self) -> int:
        """Chunk size for appends, in bytes."""
        return int(self.data.get('chunk_size_kib', DEFAULT_CHUNK_SIZE_BYTES // 1024)) * 1024

    def get_upload_encoding(self) -> UploadEncoding:
        return UploadEncoding(self.data.get('upload_encoding', UploadEncoding.NONE.value))

    def get_direct_upload_limit(self) -> int:
        return int(self.data.get('direct_upload_limit_bytes', MAX_DIRECT_UPLOAD_BYTES))

    def get_validation_threshold(self) -> float:
        return float(self.data.get('validation_threshold', DEFAULT_VALIDATION_THRESHOLD))

    def get_output_dir(self) -> Path:
        return Path(self.data.get('output_dir', 'converted'))

    def get_conversion_options(self) -> ConversionOptions:
        """Default conversion options (framework from config, all flags on)."""
        return ConversionOptions(
            target_framework=TargetFramework(self.data.get('target_framework', TargetFramework.VANILLA.value))
        )
