"""Tests for the in-memory upload session store."""

import base64
import gzip

import pytest

from common.chunking import decode_chunk
from common.types import UploadEncoding
from server.exceptions import (
    ChunkDecodeError,
    ChunkOutOfOrderError,
    SizeMismatchError,
    UploadNotFoundError,
    UploadTooLargeError,
)
from server.upload_sessions import UploadSessionStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return UploadSessionStore(max_upload_bytes=100, session_timeout=300, clock=clock)


class TestAppend:
    """Appending chunks to a session."""

    @pytest.mark.asyncio
    async def test_append_accumulates_in_order(self, store):
        session = store.create('a.psd', expected_size=6)

        await store.append(session.upload_id, b64(b"abc"), 0)
        updated, received = await store.append(session.upload_id, b64(b"def"), 1)

        assert received == 3
        assert updated.size == 6
        assert updated.chunk_count == 2
        assert updated.progress == 1.0
        assert updated.chunk_indices == [0, 1]

    @pytest.mark.asyncio
    async def test_append_without_index_uses_arrival_order(self, store):
        session = store.create('a.psd')

        await store.append(session.upload_id, b64(b"ab"))
        updated, _ = await store.append(session.upload_id, b64(b"cd"))

        assert updated.chunk_indices == [0, 1]
        assert updated.progress is None

    @pytest.mark.asyncio
    async def test_out_of_order_index_is_rejected(self, store):
        session = store.create('a.psd')
        await store.append(session.upload_id, b64(b"ab"), 0)

        with pytest.raises(ChunkOutOfOrderError, match="Expected chunk 1, got 3"):
            await store.append(session.upload_id, b64(b"cd"), 3)

        assert store.get(session.upload_id).size == 2

    @pytest.mark.asyncio
    async def test_invalid_base64_keeps_session(self, store):
        session = store.create('a.psd')

        with pytest.raises(ChunkDecodeError) as exc_info:
            await store.append(session.upload_id, "%%%not-base64%%%")

        assert exc_info.value.code == 'INVALID_BASE64'
        assert session.upload_id in store

    @pytest.mark.asyncio
    async def test_empty_chunk_is_rejected(self, store):
        session = store.create('a.psd')

        with pytest.raises(ChunkDecodeError) as exc_info:
            await store.append(session.upload_id, "")

        assert exc_info.value.code == 'EMPTY_CHUNK'

    @pytest.mark.asyncio
    async def test_gzip_chunks_are_decompressed(self, store):
        session = store.create('a.psd', encoding=UploadEncoding.GZIP)

        _, received = await store.append(session.upload_id, b64(gzip.compress(b"8BPS" * 4)))

        assert received == 16

    @pytest.mark.asyncio
    async def test_exceeding_declared_size_keeps_session(self, store):
        session = store.create('a.psd', expected_size=4)

        with pytest.raises(UploadTooLargeError) as exc_info:
            await store.append(session.upload_id, b64(b"12345"))

        assert exc_info.value.code == 'EXPECTED_SIZE_EXCEEDED'
        assert session.upload_id in store

    @pytest.mark.asyncio
    async def test_exceeding_max_size_discards_session(self, store):
        session = store.create('a.psd')
        await store.append(session.upload_id, b64(b"x" * 60))

        with pytest.raises(UploadTooLargeError) as exc_info:
            await store.append(session.upload_id, b64(b"x" * 60))

        assert exc_info.value.code == 'FILE_TOO_LARGE'
        assert session.upload_id not in store
        with pytest.raises(UploadNotFoundError):
            await store.append(session.upload_id, b64(b"x"))

    @pytest.mark.asyncio
    async def test_gzip_chunk_is_inflated_only_up_to_the_limit(self, store, monkeypatch):
        inflated = []

        def recording_decode(text, encoding, max_size=None):
            data = decode_chunk(text, encoding, max_size=max_size)
            inflated.append(len(data))
            return data

        monkeypatch.setattr('server.upload_sessions.decode_chunk', recording_decode)
        session = store.create('bomb.psd', encoding=UploadEncoding.GZIP)
        await store.append(session.upload_id, b64(gzip.compress(b"x" * 40)))

        with pytest.raises(UploadTooLargeError) as exc_info:
            await store.append(session.upload_id, b64(gzip.compress(b"\x00" * (8 * 1024 * 1024))))

        assert exc_info.value.code == 'FILE_TOO_LARGE'
        assert inflated == [40, 61]
        assert session.upload_id not in store

    @pytest.mark.asyncio
    async def test_gzip_chunk_above_declared_size_keeps_session(self, store):
        session = store.create('a.psd', encoding=UploadEncoding.GZIP, expected_size=10)

        with pytest.raises(UploadTooLargeError) as exc_info:
            await store.append(session.upload_id, b64(gzip.compress(b"\x00" * (1024 * 1024))))

        assert exc_info.value.code == 'EXPECTED_SIZE_EXCEEDED'
        assert session.upload_id in store
        assert session.size == 0

    def test_declared_size_above_limit_is_rejected_at_create(self, store):
        with pytest.raises(UploadTooLargeError):
            store.create('huge.psd', expected_size=101)

        assert len(store) == 0


class TestCompleteAndAbort:
    """Finishing and discarding sessions."""

    @pytest.mark.asyncio
    async def test_complete_returns_bytes_and_removes_session(self, store):
        session = store.create('a.psd', expected_size=4)
        await store.append(session.upload_id, b64(b"8B"), 0)
        await store.append(session.upload_id, b64(b"PS"), 1)

        completed, data = await store.complete(session.upload_id)

        assert data == b"8BPS"
        assert completed.completed is True
        assert session.upload_id not in store
        with pytest.raises(UploadNotFoundError):
            await store.complete(session.upload_id)

    @pytest.mark.asyncio
    async def test_size_mismatch_keeps_session_for_retry(self, store):
        session = store.create('a.psd', expected_size=4)
        await store.append(session.upload_id, b64(b"8B"), 0)

        with pytest.raises(SizeMismatchError):
            await store.complete(session.upload_id)

        await store.append(session.upload_id, b64(b"PS"), 1)
        _, data = await store.complete(session.upload_id)
        assert data == b"8BPS"

    @pytest.mark.asyncio
    async def test_abort_discards_session(self, store):
        session = store.create('a.psd')
        await store.append(session.upload_id, b64(b"abc"))

        aborted = await store.abort(session.upload_id)

        assert aborted.aborted is True
        assert aborted.parts == []
        assert session.upload_id not in store

    @pytest.mark.asyncio
    async def test_abort_unknown_session(self, store):
        with pytest.raises(UploadNotFoundError):
            await store.abort('missing')


class TestExpiry:
    """Idle sessions time out."""

    def test_idle_session_expires_on_access(self, store, clock):
        session = store.create('a.psd')

        clock.advance(301)

        with pytest.raises(UploadNotFoundError, match="expired"):
            store.get(session.upload_id)
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_activity_resets_idle_timer(self, store, clock):
        session = store.create('a.psd')
        clock.advance(200)
        await store.append(session.upload_id, b64(b"abc"))
        clock.advance(200)

        assert store.get(session.upload_id).size == 3

    def test_expire_stale_returns_removed_ids(self, store, clock):
        old = store.create('old.psd')
        clock.advance(250)
        fresh = store.create('fresh.psd')
        clock.advance(100)

        assert store.expire_stale() == [old.upload_id]
        assert fresh.upload_id in store

    def test_create_sweeps_stale_sessions(self, store, clock):
        old = store.create('old.psd')
        clock.advance(400)

        store.create('new.psd')

        assert old.upload_id not in store
        assert len(store) == 1
