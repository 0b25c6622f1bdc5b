"""Project-wide constants shared by the CLI and the server."""

PSD_SIGNATURE: bytes = b"8BPS"
PSD_MIME_TYPE: str = "image/vnd.adobe.photoshop"

DEFAULT_CHUNK_SIZE_BYTES: int = 256 * 1024  # 256 KiB
MIN_CHUNK_SIZE_BYTES: int = 16 * 1024
MAX_CHUNK_SIZE_BYTES: int = 1024 * 1024

MAX_UPLOAD_SIZE_BYTES: int = 50 * 1024 * 1024  # 50 MiB
MAX_DIRECT_UPLOAD_BYTES: int = 4 * 1024 * 1024  # larger files must use the chunk endpoints
PARTIAL_INSPECTION_BYTES: int = 2 * 1024 * 1024
SESSION_TIMEOUT_SECONDS: int = 5 * 60

DEFAULT_VALIDATION_THRESHOLD: float = 0.95

BUILD_VERSION: str = "1.0.0"

CHUNK_INIT_ENDPOINT = "/api/psd-chunks/init"
CHUNK_APPEND_ENDPOINT = "/api/psd-chunks/append"
CHUNK_COMPLETE_ENDPOINT = "/api/psd-chunks/complete"
CHUNK_ABORT_ENDPOINT = "/api/psd-chunks/abort"
CHUNK_STATUS_ENDPOINT = "/api/psd-chunks/status"
CHUNK_PARTIAL_ENDPOINT = "/api/psd-chunks/partial"
PARSE_ENDPOINT = "/api/parse-psd"
CONVERT_ENDPOINT = "/api/convert-psd"
VALIDATE_ENDPOINT = "/api/validate-psd"
