"""Tests for the sequential chunked uploader."""

import base64
import gzip
import json
import os

import pytest
import httpx

from cli.api_client import ConverterApiClient
from cli.chunked_upload import ChunkedUploader
from cli.results import ErrorKind, Failure, Success
from common.types import UploadEncoding


class FakeChunkServer:
    """In-process stand-in for the psd-chunks endpoints."""

    def __init__(self, fail_append_at=None, misreport_total=False):
        self.fail_append_at = fail_append_at
        self.misreport_total = misreport_total
        self.calls = []
        self.received = bytearray()
        self.expected_size = None
        self.encoding = 'none'
        self.progress_values = []

    def __call__(self, request):
        body = json.loads(request.content)
        path = request.url.path.rsplit('/', 1)[-1]
        self.calls.append((path, body))

        if path == 'init':
            self.expected_size = body.get('expectedSize')
            self.encoding = body['encoding']
            return httpx.Response(200, json={'success': True, 'uploadId': 'up-42', 'encoding': self.encoding})

        if path == 'append':
            if body['index'] == self.fail_append_at:
                return httpx.Response(400, json={'success': False, 'error': 'INVALID_BASE64'})
            data = base64.b64decode(body['chunkBase64'])
            if self.encoding == 'gzip':
                data = gzip.decompress(data)
            self.received.extend(data)
            total = len(self.received) + (1 if self.misreport_total else 0)
            progress = total / self.expected_size if self.expected_size else None
            self.progress_values.append(progress)
            return httpx.Response(200, json={
                'success': True, 'received': len(data), 'totalSize': total,
                'progress': progress, 'chunkIndex': body['index'],
            })

        if path == 'complete':
            return httpx.Response(200, json={
                'success': True,
                'data': {'fileName': 'design.psd', 'width': 10, 'height': 20, 'layers': [{'name': 'L1'}]},
                'metrics': {'totalSize': len(self.received), 'chunkCount': self.append_count},
            })

        return httpx.Response(200, json={'success': True, 'aborted': True})

    @property
    def append_count(self) -> int:
        return sum(1 for path, _ in self.calls if path == 'append')

    def paths(self) -> list[str]:
        return [path for path, _ in self.calls]


def make_uploader(temp_config, server, chunk_size, encoding=UploadEncoding.NONE) -> ChunkedUploader:
    session = httpx.Client(transport=httpx.MockTransport(server), base_url='http://test')
    return ChunkedUploader(ConverterApiClient(temp_config, session=session), chunk_size=chunk_size, encoding=encoding)


def test_512_kib_at_128_kib_sends_four_appends(temp_config):
    server = FakeChunkServer()
    uploader = make_uploader(temp_config, server, 128 * 1024)
    payload = os.urandom(512 * 1024)

    result = uploader.upload_bytes(payload, 'design.psd')

    assert isinstance(result, Success)
    assert server.append_count == 4
    assert server.paths() == ['init', 'append', 'append', 'append', 'append', 'complete']
    assert result.value.total_size == 524288
    assert result.value.chunk_count == 4
    assert bytes(server.received) == payload


def test_appends_are_indexed_in_order(temp_config):
    server = FakeChunkServer()
    uploader = make_uploader(temp_config, server, 100)

    uploader.upload_bytes(os.urandom(350), 'a.psd')

    indices = [body['index'] for path, body in server.calls if path == 'append']
    assert indices == [0, 1, 2, 3]


def test_init_declares_expected_size(temp_config):
    server = FakeChunkServer()
    uploader = make_uploader(temp_config, server, 100)

    uploader.upload_bytes(b"x" * 250, 'a.psd')

    assert server.calls[0][1]['expectedSize'] == 250


def test_progress_is_non_decreasing_and_reaches_one(temp_config):
    server = FakeChunkServer()
    uploader = make_uploader(temp_config, server, 1000)
    seen = []

    uploader.upload_bytes(os.urandom(4500), 'a.psd', on_chunk=lambda i, total, p: seen.append((i, total, p)))

    progress = [p for _, _, p in seen]
    assert progress == sorted(progress)
    assert progress[-1] == 1.0
    assert [total for _, total, _ in seen] == [1000, 2000, 3000, 4000, 4500]
    assert progress == server.progress_values


def test_append_failure_stops_the_sequence(temp_config):
    """After a failed append no further append or complete is issued."""
    server = FakeChunkServer(fail_append_at=1)
    uploader = make_uploader(temp_config, server, 100)

    result = uploader.upload_bytes(os.urandom(500), 'a.psd')

    assert isinstance(result, Failure)
    assert result.error == 'INVALID_BASE64'
    assert server.paths() == ['init', 'append', 'append']
    assert uploader.last_upload_id == 'up-42'


def test_misreported_total_is_structural_failure(temp_config):
    server = FakeChunkServer(misreport_total=True)
    uploader = make_uploader(temp_config, server, 100)

    result = uploader.upload_bytes(os.urandom(300), 'a.psd')

    assert isinstance(result, Failure)
    assert result.kind == ErrorKind.STRUCTURAL
    assert result.error == 'SIZE_MISMATCH'
    assert 'complete' not in server.paths()


def test_gzip_encoding_round_trips(temp_config):
    server = FakeChunkServer()
    uploader = make_uploader(temp_config, server, 1024, encoding=UploadEncoding.GZIP)
    payload = b"8BPS" + b"\x00" * 5000

    result = uploader.upload_bytes(payload, 'a.psd')

    assert isinstance(result, Success)
    assert server.calls[0][1]['encoding'] == 'gzip'
    assert bytes(server.received) == payload


def test_upload_file_streams_from_disk(temp_config, tmp_path):
    server = FakeChunkServer()
    uploader = make_uploader(temp_config, server, 64)
    payload = os.urandom(200)
    path = tmp_path / 'design.psd'
    path.write_bytes(payload)

    result = uploader.upload_file(path)

    assert isinstance(result, Success)
    assert server.calls[0][1]['fileName'] == 'design.psd'
    assert bytes(server.received) == payload
    assert result.value.document.width == 10
    assert len(result.value.document.layers) == 1
    assert 'clientMs' in result.value.metrics


def test_upload_missing_file_is_input_failure(temp_config, tmp_path):
    server = FakeChunkServer()
    uploader = make_uploader(temp_config, server, 64)

    result = uploader.upload_file(tmp_path / 'nope.psd')

    assert isinstance(result, Failure)
    assert result.kind == ErrorKind.INPUT
    assert server.calls == []


def test_upload_empty_file_is_input_failure(temp_config, tmp_path):
    server = FakeChunkServer()
    uploader = make_uploader(temp_config, server, 64)
    path = tmp_path / 'empty.psd'
    path.write_bytes(b"")

    result = uploader.upload_file(path)

    assert isinstance(result, Failure)
    assert result.error == 'EMPTY_FILE'
    assert server.calls == []


def test_abort_defaults_to_last_session(temp_config):
    server = FakeChunkServer(fail_append_at=0)
    uploader = make_uploader(temp_config, server, 64)
    uploader.upload_bytes(b"abc", 'a.psd')

    result = uploader.abort()

    assert isinstance(result, Success)
    assert server.calls[-1] == ('abort', {'uploadId': 'up-42'})


def test_abort_without_session_is_input_failure(temp_config):
    uploader = make_uploader(temp_config, FakeChunkServer(), 64)

    result = uploader.abort()

    assert isinstance(result, Failure)
    assert result.kind == ErrorKind.INPUT


def test_rejects_non_positive_chunk_size(temp_config):
    with pytest.raises(ValueError):
        make_uploader(temp_config, FakeChunkServer(), 0)
