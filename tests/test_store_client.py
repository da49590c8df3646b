"""Tests for StoreClient and the Estuary HTTP backend."""

import pytest
import httpx

from common.cid import ContentIdentifier
from common.exceptions import (
    LocalFileNotFoundError,
    StoreRejectedError,
    StoreUnavailableError,
)
from common.types import CrudFile
from store.client import StoreClient
from store.estuary import EstuaryBlobStore
from store.memory import InMemoryBlobStore

HELLO = ContentIdentifier.compute_bytes(b"hello")


@pytest.fixture
def estuary_log():
    """Requests seen by the mocked Estuary service."""
    return []


@pytest.fixture
def mock_estuary(estuary_log):
    """Mock transport that answers like Estuary for a single blob."""
    def handler(request):
        estuary_log.append(request)
        if request.url.path == '/content/add' and request.method == 'POST':
            return httpx.Response(200, json={'cid': str(HELLO), 'estuaryId': 1})
        elif request.url.path == f'/get/{HELLO}' and request.method == 'GET':
            return httpx.Response(200, content=b'hello')
        return httpx.Response(404, text='not found')

    return httpx.MockTransport(handler)


@pytest.fixture
def estuary_client(mock_estuary):
    return StoreClient(EstuaryBlobStore('est-key', host='http://estuary.test', transport=mock_estuary))


@pytest.fixture
def hello_record(tmp_path):
    path = tmp_path / 'hello.txt'
    path.write_bytes(b'hello')
    return CrudFile.from_file(path)


@pytest.mark.asyncio
async def test_put_uploads_multipart(estuary_client, estuary_log, hello_record):
    """Test that upload is a bearer-authenticated multipart POST with a 'data' field."""
    await estuary_client.put(hello_record)

    request = estuary_log[0]
    assert request.method == 'POST'
    assert request.url.path == '/content/add'
    assert request.headers['Authorization'] == 'Bearer est-key'
    assert request.headers['Content-Type'].startswith('multipart/form-data')
    body = request.content
    assert b'name="data"' in body
    assert b'filename="hello.txt"' in body
    assert b'hello' in body


@pytest.mark.asyncio
async def test_put_missing_file(estuary_client, estuary_log, tmp_path):
    path = tmp_path / 'gone.txt'
    path.write_bytes(b'hello')
    record = CrudFile.from_file(path)
    path.unlink()

    with pytest.raises(LocalFileNotFoundError):
        await estuary_client.put(record)
    assert estuary_log == []


@pytest.mark.asyncio
async def test_put_rejected(hello_record):
    def error_handler(request):
        return httpx.Response(500, text='pinning service down')

    client = StoreClient(EstuaryBlobStore('k', host='http://estuary.test', transport=httpx.MockTransport(error_handler)))

    with pytest.raises(StoreRejectedError) as exc_info:
        await client.put(hello_record)

    assert exc_info.value.status == 500
    assert exc_info.value.detail == 'pinning service down'


@pytest.mark.asyncio
async def test_put_unreachable(hello_record):
    def error_handler(request):
        raise httpx.ConnectError('Connection refused', request=request)

    client = StoreClient(EstuaryBlobStore('k', host='http://estuary.test', transport=httpx.MockTransport(error_handler)))

    with pytest.raises(StoreUnavailableError):
        await client.put(hello_record)


@pytest.mark.asyncio
async def test_get_downloads_content(estuary_client, tmp_path):
    destination = tmp_path / 'out' / 'nested' / 'hello.txt'

    record = await estuary_client.get(HELLO, destination)

    assert destination.read_bytes() == b'hello'
    assert record.content_id == HELLO
    assert record.filename == 'hello.txt'
    assert record.timestamp == 0
    assert not (destination.parent / 'hello.txt.part').exists()


@pytest.mark.asyncio
async def test_get_replaces_existing_file(estuary_client, tmp_path):
    destination = tmp_path / 'hello.txt'
    destination.write_bytes(b'old contents')

    await estuary_client.get(HELLO, destination)

    assert destination.read_bytes() == b'hello'


@pytest.mark.asyncio
async def test_get_unknown_content(estuary_client, tmp_path):
    destination = tmp_path / 'missing.txt'
    unknown = ContentIdentifier.compute_bytes(b'unknown')

    with pytest.raises(StoreRejectedError) as exc_info:
        await estuary_client.get(unknown, destination)

    assert exc_info.value.status == 404
    assert not destination.exists()
    assert not (tmp_path / 'missing.txt.part').exists()


@pytest.mark.asyncio
async def test_get_unreachable(tmp_path):
    def error_handler(request):
        raise httpx.ConnectError('Connection refused', request=request)

    client = StoreClient(EstuaryBlobStore('k', host='http://estuary.test', transport=httpx.MockTransport(error_handler)))

    with pytest.raises(StoreUnavailableError):
        await client.get(HELLO, tmp_path / 'hello.txt')


@pytest.mark.asyncio
async def test_close_closes_session(estuary_client):
    await estuary_client.close()
    assert estuary_client.backend.session.is_closed


@pytest.mark.asyncio
async def test_memory_store_round_trip(memory_store, hello_record, tmp_path):
    client = StoreClient(memory_store)
    await client.put(hello_record)

    fetched = await client.get(hello_record.content_id, tmp_path / 'copy.txt')

    assert fetched.content_id == hello_record.content_id
    assert memory_store.uploads == [str(hello_record.content_id)]


@pytest.mark.asyncio
async def test_memory_store_unknown_content(memory_store, tmp_path):
    client = StoreClient(memory_store)

    with pytest.raises(StoreRejectedError) as exc_info:
        await client.get(HELLO, tmp_path / 'hello.txt')
    assert exc_info.value.status == 404
