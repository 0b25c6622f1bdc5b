"""Custom exception classes for the upload server."""


class UploadServiceError(Exception):
    """
    Base exception class for all upload and parse errors.

    Every subclass carries the wire error code returned to clients.
    """

    default_code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.code = code or self.default_code


class UploadNotFoundError(UploadServiceError):
    """
    Raised when an uploadId is unknown, completed, aborted or expired.
    """
    default_code = "INVALID_UPLOAD_ID"


class UploadAbortedError(UploadServiceError):
    """
    Raised when an operation reaches a session that was aborted meanwhile.
    """
    default_code = "UPLOAD_ABORTED"


class ChunkOutOfOrderError(UploadServiceError):
    """
    Raised when an append carries an index other than the next expected one.
    """
    default_code = "CHUNK_OUT_OF_ORDER"


class ChunkDecodeError(UploadServiceError):
    """
    Raised when a chunk is not valid base64, fails gzip decoding or is empty.
    """
    default_code = "INVALID_BASE64"


class UploadTooLargeError(UploadServiceError):
    """
    Raised when data exceeds a size limit (total, declared or direct).
    """
    default_code = "FILE_TOO_LARGE"


class SizeMismatchError(UploadServiceError):
    """
    Raised when the received size differs from the declared expectedSize.
    """
    default_code = "SIZE_MISMATCH"


class InvalidPsdSignatureError(UploadServiceError):
    """
    Raised when data does not start with the 8BPS signature.
    """
    default_code = "INVALID_PSD_SIGNATURE"


class PsdParseError(UploadServiceError):
    """
    Raised when the PSD parser rejects the document.
    """
    default_code = "PSD_PARSE_FAILED"


class InvalidDataUrlError(UploadServiceError):
    """
    Raised when parse-psd receives something other than a base64 data URL.
    """
    default_code = "INVALID_DATA_URL"
