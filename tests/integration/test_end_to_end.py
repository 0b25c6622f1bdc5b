"""Integration tests for the CLI client against the upload server."""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from cli.api_client import ConverterApiClient
from cli.backends import HttpConverterBackend
from cli.chunked_upload import ChunkedUploader
from cli.results import ErrorKind, Failure, Success
from common.types import UploadEncoding
from server.dependencies import get_parse_service, get_session_store
from server.main import app
from server.services.parse_service import ParseService
from server.upload_sessions import UploadSessionStore


@pytest.fixture
def store():
    return UploadSessionStore(max_upload_bytes=1024 * 1024, session_timeout=300)


@pytest.fixture
def api(temp_config, store):
    """ConverterApiClient whose HTTP session is the in-process server."""
    app.dependency_overrides[get_session_store] = lambda: store
    client = ConverterApiClient(temp_config, session=TestClient(app))
    yield client
    app.dependency_overrides.clear()


def test_multi_chunk_upload_round_trip(api, store, large_psd_bytes):
    uploader = ChunkedUploader(api, chunk_size=64 * 1024)
    progress = []

    result = uploader.upload_bytes(large_psd_bytes, 'large.psd', on_chunk=lambda i, total, p: progress.append(p))

    assert isinstance(result, Success)
    outcome = result.value
    assert outcome.chunk_count == 4
    assert outcome.total_size == len(large_psd_bytes)
    assert outcome.document.width == 256
    assert outcome.document.height == 256
    assert outcome.metrics['chunkCount'] == 4
    assert progress == sorted(progress)
    assert progress[-1] == 1.0
    assert len(store) == 0


def test_gzip_upload_round_trip(api, large_psd_bytes):
    uploader = ChunkedUploader(api, chunk_size=64 * 1024, encoding=UploadEncoding.GZIP)

    result = uploader.upload_bytes(large_psd_bytes, 'large.psd')

    assert isinstance(result, Success)
    assert result.value.metrics['totalSize'] == len(large_psd_bytes)


def test_png_upload_is_structural_failure(api, png_bytes):
    result = ChunkedUploader(api, chunk_size=16).upload_bytes(png_bytes, 'photo.psd')

    assert isinstance(result, Failure)
    assert result.kind == ErrorKind.STRUCTURAL
    assert result.error == 'INVALID_PSD_SIGNATURE'
    assert result.status_code == 422


def test_backend_routes_small_files_inline(api, store, sample_psd):
    backend = HttpConverterBackend(api, direct_upload_limit=1024 * 1024)

    result = backend.parse(sample_psd)

    assert isinstance(result, Success)
    assert result.value.file_name == 'mockup.psd'
    assert result.value.metadata['colorMode'] == 'RGB'
    assert len(store) == 0


def test_file_at_the_direct_limit_is_parsed_inline(api, store, sample_psd, psd_bytes):
    limit = len(psd_bytes)
    app.dependency_overrides[get_parse_service] = lambda: ParseService(max_direct_bytes=limit)
    uploader = Mock(spec=ChunkedUploader)
    backend = HttpConverterBackend(api, uploader=uploader, direct_upload_limit=limit)

    result = backend.parse(sample_psd)

    assert isinstance(result, Success)
    assert result.value.metadata['fileSize'] == limit
    uploader.upload_file.assert_not_called()


def test_backend_routes_large_files_through_chunks(api, tmp_path, large_psd_bytes):
    path = tmp_path / 'poster.psd'
    path.write_bytes(large_psd_bytes)
    uploader = ChunkedUploader(api, chunk_size=64 * 1024)
    backend = HttpConverterBackend(api, uploader=uploader, direct_upload_limit=1024)

    result = backend.parse(path)

    assert isinstance(result, Success)
    assert result.value.file_name == 'poster.psd'
    assert result.value.width == 256


def test_status_and_abort_of_open_session(api, store):
    upload_id = api.init_upload('draft.psd', expected_size=8).value
    api.append_chunk(upload_id, 'OEJQUw==', index=0)

    status = api.upload_status(upload_id)
    partial = api.partial_inspect(upload_id)
    aborted = api.abort_upload(upload_id)
    again = api.upload_status(upload_id)

    assert status.value['progress'] == 0.5
    assert isinstance(partial, Failure)
    assert partial.error == 'INSUFFICIENT_DATA'
    assert isinstance(aborted, Success)
    assert isinstance(again, Failure)
    assert again.error == 'INVALID_UPLOAD_ID'
    assert again.status_code == 404
