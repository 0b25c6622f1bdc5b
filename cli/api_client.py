"""HTTP client for the PSD converter backend."""

import uuid
from typing import Optional

import httpx

from common.constants import (
    CHUNK_ABORT_ENDPOINT,
    CHUNK_APPEND_ENDPOINT,
    CHUNK_COMPLETE_ENDPOINT,
    CHUNK_INIT_ENDPOINT,
    CHUNK_PARTIAL_ENDPOINT,
    CHUNK_STATUS_ENDPOINT,
    CONVERT_ENDPOINT,
    PARSE_ENDPOINT,
    VALIDATE_ENDPOINT,
)
from common.logging_config import get_logger
from common.types import ConversionOptions, UploadEncoding
from cli.config import Config
from cli.results import ErrorKind, Failure, StepResult, Success, business_failure

logger = get_logger(__name__)


class ConverterApiClient:
    """
    JSON-over-HTTP client for the converter endpoints.

    Every call is a single POST with no automatic retry. Transport errors,
    non-JSON bodies and `success: false` responses are all returned as
    Failure values instead of being raised.
    """

    def __init__(self, config: Config, session: Optional[httpx.Client] = None):
        """
        Initialize API client.

        Args:
            config: Configuration instance
            session: Optional pre-built httpx client (tests inject a mock transport here)
        """
        self.config = config
        if session is None:
            client_kwargs = {'base_url': config.get_base_url()}
            if config.get_timeout() is not None:
                client_kwargs['timeout'] = config.get_timeout()
            session = httpx.Client(**client_kwargs)
        self.session = session
        self.request_id = None
        logger.info(f"Initialized ConverterApiClient [base_url={self.session.base_url}]")

    def _post_json(self, endpoint: str, payload: dict) -> StepResult:
        """
        POST a JSON body and decode the JSON response.

        Args:
            endpoint: API endpoint path
            payload: Request body

        Returns:
            Success with the decoded body (any HTTP status), or Failure for
            network errors and malformed bodies
        """
        self.request_id = str(uuid.uuid4())
        headers = {'X-Request-ID': self.request_id}

        logger.debug(f"Making request: POST {endpoint} [request_id={self.request_id}]")

        try:
            response = self.session.post(endpoint, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            logger.error(f"Request timed out: POST {endpoint} error={e} [request_id={self.request_id}]")
            return Failure(ErrorKind.NETWORK, 'NETWORK_ERROR', 'Request timed out. Server may be overloaded.')
        except httpx.RequestError as e:
            logger.error(f"Network error: POST {endpoint} error={type(e).__name__}: {e} [request_id={self.request_id}]")
            return Failure(ErrorKind.NETWORK, 'NETWORK_ERROR', f"Cannot reach converter server: {e}")

        logger.debug(
            f"Response received: POST {endpoint} status={response.status_code} [request_id={self.request_id}]"
        )

        try:
            body = response.json()
        except ValueError:
            snippet = response.text[:200] if response.text else ''
            logger.warning(
                f"Non-JSON response: POST {endpoint} status={response.status_code} [request_id={self.request_id}]"
            )
            return Failure(
                ErrorKind.MALFORMED_RESPONSE,
                'MALFORMED_RESPONSE',
                f"Server returned a non-JSON response (status {response.status_code}): {snippet}",
                status_code=response.status_code,
            )

        if not isinstance(body, dict):
            return Failure(
                ErrorKind.MALFORMED_RESPONSE,
                'MALFORMED_RESPONSE',
                f"Expected a JSON object, got {type(body).__name__}",
                status_code=response.status_code,
            )

        if response.status_code >= 400:
            logger.warning(
                f"Error response: POST {endpoint} status={response.status_code} "
                f"error={body.get('error')} [request_id={self.request_id}]"
            )
        return Success((response.status_code, body))

    def _call(self, endpoint: str, payload: dict, default_error: str) -> StepResult:
        """POST and require `success: true` in the response body."""
        result = self._post_json(endpoint, payload)
        if isinstance(result, Failure):
            return result
        status_code, body = result.value
        if body.get('success') is not True:
            return business_failure(body, default_error, status_code)
        return Success(body)

    def init_upload(
        self,
        file_name: str,
        expected_size: Optional[int] = None,
        encoding: UploadEncoding = UploadEncoding.NONE,
    ) -> StepResult:
        """
        Open a chunked upload session.

        Returns:
            Success with the uploadId, or Failure when none was allocated
        """
        payload = {'fileName': file_name, 'encoding': encoding.value}
        if expected_size is not None:
            payload['expectedSize'] = expected_size

        result = self._post_json(CHUNK_INIT_ENDPOINT, payload)
        if isinstance(result, Failure):
            return result
        status_code, body = result.value
        upload_id = body.get('uploadId')
        if not upload_id:
            return business_failure(body, 'INIT_FAILED', status_code)
        logger.info(f"Upload session opened: {file_name} [upload_id={upload_id}]")
        return Success(upload_id)

    def append_chunk(self, upload_id: str, chunk_base64: str, index: Optional[int] = None) -> StepResult:
        """
        Append one base64 chunk to a session.

        Returns:
            Success with the response body ({success, totalSize, progress?, ...})
        """
        payload = {'uploadId': upload_id, 'chunkBase64': chunk_base64}
        if index is not None:
            payload['index'] = index
        return self._call(CHUNK_APPEND_ENDPOINT, payload, 'APPEND_FAILED')

    def complete_upload(self, upload_id: str) -> StepResult:
        """Finalize a session; the server reassembles and parses the document."""
        return self._call(CHUNK_COMPLETE_ENDPOINT, {'uploadId': upload_id}, 'COMPLETE_FAILED')

    def abort_upload(self, upload_id: str) -> StepResult:
        return self._call(CHUNK_ABORT_ENDPOINT, {'uploadId': upload_id}, 'ABORT_FAILED')

    def upload_status(self, upload_id: str) -> StepResult:
        return self._call(CHUNK_STATUS_ENDPOINT, {'uploadId': upload_id}, 'STATUS_FAILED')

    def partial_inspect(self, upload_id: str) -> StepResult:
        return self._call(CHUNK_PARTIAL_ENDPOINT, {'uploadId': upload_id}, 'PARTIAL_FAILED')

    def parse_psd(self, file_data: str, include_image_data: bool = False) -> StepResult:
        """
        Parse a small document sent inline as a data URL.

        Args:
            file_data: data: URL of the PSD bytes
            include_image_data: Ask the server for the composite image

        Returns:
            Success with the response body ({success, data})
        """
        payload = {'fileData': file_data, 'includeImageData': include_image_data}
        return self._call(PARSE_ENDPOINT, payload, 'PARSE_FAILED')

    def convert_psd(self, psd_data: dict, options: ConversionOptions) -> StepResult:
        """Request HTML/CSS generation for a parsed document."""
        payload = {'psdData': psd_data, **options.to_request()}
        return self._call(CONVERT_ENDPOINT, payload, 'CONVERSION_FAILED')

    def validate_psd(
        self,
        psd_data: dict,
        html_content: str,
        css_content: str,
        threshold: float,
        include_diff_image: bool = False,
    ) -> StepResult:
        """Request a visual comparison of generated markup against the document."""
        payload = {
            'psdData': psd_data,
            'htmlContent': html_content,
            'cssContent': css_content,
            'threshold': threshold,
            'includeDiffImage': include_diff_image,
        }
        return self._call(VALIDATE_ENDPOINT, payload, 'VALIDATION_FAILED')

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
