"""Unit tests for ConverterApiClient."""

import json

import pytest
import httpx

from cli.api_client import ConverterApiClient
from cli.results import ErrorKind, Failure, Success
from common.types import ConversionOptions, TargetFramework, UploadEncoding


def make_client(temp_config, handler) -> ConverterApiClient:
    """Build a client whose HTTP session answers through handler."""
    session = httpx.Client(transport=httpx.MockTransport(handler), base_url='http://test')
    return ConverterApiClient(temp_config, session=session)


@pytest.fixture
def recorded():
    """Requests seen by the mock transport, decoded as (path, body)."""
    return []


@pytest.fixture
def client_with_mock(temp_config, recorded):
    """Create ConverterApiClient with a transport mimicking the server."""
    def handler(request):
        body = json.loads(request.content or b'{}')
        recorded.append((request.url.path, body))
        path = request.url.path

        if path == '/api/psd-chunks/init':
            return httpx.Response(200, json={
                'success': True, 'uploadId': 'up-1', 'encoding': body['encoding'],
                'expectedSize': body.get('expectedSize'),
            })
        if path == '/api/psd-chunks/append':
            return httpx.Response(200, json={
                'success': True, 'received': 4, 'totalSize': 4, 'chunkIndex': 0,
            })
        if path == '/api/psd-chunks/complete':
            return httpx.Response(200, json={
                'success': True, 'data': {'fileName': 'a.psd', 'layers': []}, 'metrics': {},
            })
        if path == '/api/convert-psd':
            return httpx.Response(200, json={'success': True, 'html': '<p/>', 'css': '', 'components': []})
        return httpx.Response(404, json={'success': False, 'error': 'NOT_FOUND'})

    return make_client(temp_config, handler)


def test_init_upload_returns_upload_id(client_with_mock, recorded):
    result = client_with_mock.init_upload('a.psd', expected_size=1024, encoding=UploadEncoding.GZIP)

    assert isinstance(result, Success)
    assert result.value == 'up-1'
    assert recorded[0] == (
        '/api/psd-chunks/init',
        {'fileName': 'a.psd', 'encoding': 'gzip', 'expectedSize': 1024},
    )


def test_init_upload_omits_expected_size_when_unknown(client_with_mock, recorded):
    client_with_mock.init_upload('a.psd')

    assert 'expectedSize' not in recorded[0][1]


def test_init_without_upload_id_is_failure(temp_config):
    """An init response lacking uploadId is a failure even with HTTP 200."""
    client = make_client(temp_config, lambda request: httpx.Response(200, json={'success': True}))

    result = client.init_upload('a.psd')

    assert isinstance(result, Failure)
    assert result.error == 'INIT_FAILED'
    assert result.kind == ErrorKind.BUSINESS


def test_append_sends_index_and_payload(client_with_mock, recorded):
    result = client_with_mock.append_chunk('up-1', 'OEJQUw==', index=0)

    assert isinstance(result, Success)
    assert result.value['totalSize'] == 4
    assert recorded[0] == (
        '/api/psd-chunks/append',
        {'uploadId': 'up-1', 'chunkBase64': 'OEJQUw==', 'index': 0},
    )


def test_business_failure_keeps_error_code(temp_config):
    def handler(request):
        return httpx.Response(409, json={
            'success': False, 'error': 'CHUNK_OUT_OF_ORDER', 'detail': 'Expected chunk 1, got 3',
        })

    result = make_client(temp_config, handler).append_chunk('up-1', 'AAAA', index=3)

    assert isinstance(result, Failure)
    assert result.kind == ErrorKind.BUSINESS
    assert result.error == 'CHUNK_OUT_OF_ORDER'
    assert result.status_code == 409
    assert result.describe() == 'Expected chunk 1, got 3 (Code: CHUNK_OUT_OF_ORDER)'


def test_signature_error_is_structural(temp_config):
    def handler(request):
        return httpx.Response(422, json={'success': False, 'error': 'INVALID_PSD_SIGNATURE'})

    result = make_client(temp_config, handler).complete_upload('up-1')

    assert isinstance(result, Failure)
    assert result.kind == ErrorKind.STRUCTURAL
    assert result.describe() == 'INVALID_PSD_SIGNATURE'


def test_success_false_with_http_200_is_failure(temp_config):
    def handler(request):
        return httpx.Response(200, json={'success': False, 'error': 'File exceeds max total size'})

    result = make_client(temp_config, handler).append_chunk('up-1', 'AAAA')

    assert isinstance(result, Failure)
    assert result.error == 'File exceeds max total size'


def test_non_json_response_is_malformed(temp_config):
    def handler(request):
        return httpx.Response(502, text='<html>Bad Gateway</html>')

    result = make_client(temp_config, handler).complete_upload('up-1')

    assert isinstance(result, Failure)
    assert result.kind == ErrorKind.MALFORMED_RESPONSE
    assert result.error == 'MALFORMED_RESPONSE'
    assert result.status_code == 502


def test_json_array_response_is_malformed(temp_config):
    result = make_client(temp_config, lambda request: httpx.Response(200, json=[1, 2])).upload_status('x')

    assert isinstance(result, Failure)
    assert result.kind == ErrorKind.MALFORMED_RESPONSE


def test_connection_error_is_network_failure(temp_config):
    def handler(request):
        raise httpx.ConnectError("Connection refused")

    result = make_client(temp_config, handler).init_upload('a.psd')

    assert isinstance(result, Failure)
    assert result.kind == ErrorKind.NETWORK
    assert result.error == 'NETWORK_ERROR'


def test_timeout_is_network_failure(temp_config):
    def handler(request):
        raise httpx.ReadTimeout("timed out")

    result = make_client(temp_config, handler).parse_psd('data:;base64,AAAA')

    assert isinstance(result, Failure)
    assert result.kind == ErrorKind.NETWORK


def test_convert_passes_options_verbatim(client_with_mock, recorded):
    options = ConversionOptions(
        target_framework=TargetFramework.VUE, responsive=False, semantic=False, accessibility=False,
    )

    result = client_with_mock.convert_psd({'fileName': 'a.psd'}, options)

    assert isinstance(result, Success)
    path, body = recorded[0]
    assert path == '/api/convert-psd'
    assert body == {
        'psdData': {'fileName': 'a.psd'},
        'targetFramework': 'vue',
        'responsive': False,
        'semantic': False,
        'accessibility': False,
    }


def test_every_request_carries_request_id(temp_config):
    seen = []

    def handler(request):
        seen.append(request.headers.get('X-Request-ID'))
        return httpx.Response(200, json={'success': True, 'aborted': True})

    client = make_client(temp_config, handler)
    client.abort_upload('a')
    client.abort_upload('b')

    assert all(seen)
    assert seen[0] != seen[1]


def test_default_session_uses_config_base_url(temp_config):
    temp_config.set_value('api_port', '9123')

    client = ConverterApiClient(temp_config)
    try:
        assert client.session.base_url.port == 9123
        assert client.session.base_url.scheme == 'http'
    finally:
        client.close()
