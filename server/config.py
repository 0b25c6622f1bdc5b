"""Configuration settings for the PSD upload server."""

import os
from common.constants import (
    MAX_DIRECT_UPLOAD_BYTES,
    MAX_UPLOAD_SIZE_BYTES,
    PARTIAL_INSPECTION_BYTES,
    SESSION_TIMEOUT_SECONDS,
)


SERVER_HOST = os.environ.get("PSD_SERVER_HOST", "0.0.0.0")

SERVER_PORT = int(os.environ.get("PSD_SERVER_PORT", "8000"))

MAX_UPLOAD_BYTES = int(os.environ.get("PSD_MAX_UPLOAD_BYTES", str(MAX_UPLOAD_SIZE_BYTES)))

MAX_DIRECT_BYTES = int(os.environ.get("PSD_MAX_DIRECT_BYTES", str(MAX_DIRECT_UPLOAD_BYTES)))

SESSION_TIMEOUT = int(os.environ.get("PSD_SESSION_TIMEOUT_SECONDS", str(SESSION_TIMEOUT_SECONDS)))

CLEANUP_INTERVAL = int(os.environ.get("PSD_CLEANUP_INTERVAL_SECONDS", "60"))

PARTIAL_BYTES = PARTIAL_INSPECTION_BYTES

# Layer extraction limits per parsed document
MAX_LAYERS_PER_GROUP = 20
MAX_LAYER_DEPTH = 2
