from __future__ import annotations

import io
from datetime import timedelta

import httpx
import pytest

from bzzstore.clients.swarm import SwarmClient
from bzzstore.drivers.base import SaveDataOutput, StorageType
from bzzstore.drivers.swarm import SwarmDriver, SwarmSession
from bzzstore.exceptions import FetchError, NotSupported, UnsupportedExtensionError, UploadError
from tests.mocks.swarm import CONTENT_STAMP, FEED_STAMP, NODE_URL, DummyHTTPResponse


class RecordingClient(SwarmClient):
    """SwarmClient that records which entry point a session used."""

    __slots__ = ("file_calls", "manifest_calls")

    def __init__(self) -> None:
        super().__init__(endpoint=NODE_URL, bearer_token="tok")
        self.file_calls: list[tuple] = []
        self.manifest_calls: list[tuple] = []

    async def upload_file(self, name, content_type, stamp_id, data, *, timeout=None):
        self.file_calls.append((name, content_type, stamp_id, data, timeout))
        return "segment-ref"

    async def upload_feed_manifest(self, topic, name, content_type, stamp_id, data):
        self.manifest_calls.append((topic, name, content_type, stamp_id, data))
        return "http://node/bzz/manifest"


@pytest.fixture
def recording_session(api_key_driver: SwarmDriver) -> SwarmSession:
    return SwarmSession(driver=api_key_driver, base_path="videos/stream1", client=RecordingClient())


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["seg001.ts", "clip.mp4", "index.m3u8.json", "nested/seg002.ts"])
async def test_segments_use_ordinary_upload_only(recording_session, name) -> None:
    result = await recording_session.save_data(name, io.BytesIO(b"data"))

    client = recording_session.client
    assert result == SaveDataOutput(url="segment-ref")
    assert len(client.file_calls) == 1
    assert client.manifest_calls == []
    assert client.file_calls[0][0] == f"videos/stream1/{name}"
    assert client.file_calls[0][2] == CONTENT_STAMP


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["index.m3u8", "renditions/720p.m3u8"])
async def test_playlists_use_feed_manifest_upload_only(recording_session, name) -> None:
    result = await recording_session.save_data(name, b"#EXTM3U")

    client = recording_session.client
    assert result.url == "http://node/bzz/manifest"
    assert client.file_calls == []
    (call,) = client.manifest_calls
    assert call[:4] == (
        f"videos/stream1/{name}",
        f"videos/stream1/{name}",
        "application/x-mpegURL",
        FEED_STAMP,
    )


@pytest.mark.asyncio
async def test_segment_content_type_and_timeout_are_forwarded(recording_session) -> None:
    await recording_session.save_data("seg001.ts", b"x", timeout=4.0)

    (name, content_type, _, _, timeout) = recording_session.client.file_calls[0]
    assert content_type == "video/mp2t"
    assert timeout == 4.0


@pytest.mark.asyncio
async def test_root_path_uses_default_name(api_key_driver) -> None:
    session = SwarmSession(driver=api_key_driver, base_path="", client=RecordingClient())

    await session.save_data("", b"x")

    (call,) = session.client.file_calls
    assert call[0] == "data"
    assert call[1] == "application/octet-stream"


@pytest.mark.asyncio
async def test_unknown_extension_fails_before_upload(recording_session) -> None:
    with pytest.raises(UnsupportedExtensionError):
        await recording_session.save_data("seg.definitely-not-a-type", b"x")
    assert recording_session.client.file_calls == []


@pytest.mark.asyncio
async def test_upload_errors_propagate_unchanged(api_key_driver) -> None:
    failure = UploadError("rejected")

    class FailingClient(RecordingClient):
        __slots__ = ()

        async def upload_file(self, name, content_type, stamp_id, data, *, timeout=None):
            raise failure

    session = SwarmSession(driver=api_key_driver, base_path="v", client=FailingClient())

    with pytest.raises(UploadError) as excinfo:
        await session.save_data("seg.ts", b"x")
    assert excinfo.value is failure


@pytest.mark.asyncio
async def test_read_data_fetches_by_reference(bee_node, recording_session) -> None:
    bee_node.queue(
        "GET",
        "/bzz/ab12",
        DummyHTTPResponse(200, content=b"segment-bytes", headers={"content-type": "video/mp2t"}),
    )

    reader = await recording_session.read_data("ab12")

    assert reader.body.read() == b"segment-bytes"
    assert reader.info.size == len(b"segment-bytes")
    assert reader.info.name == "videos/stream1"
    assert reader.content_type == "video/mp2t"
    assert bee_node.calls("GET", "/bzz/ab12")[0].headers["Authorization"] == "Bearer tok"


@pytest.mark.asyncio
async def test_read_data_accepts_returned_urls(bee_node, recording_session) -> None:
    bee_node.queue("GET", "/bzz/deadbeef", DummyHTTPResponse(200, content=b"#EXTM3U"))

    reader = await recording_session.read_data("http://node/bzz/deadbeef")

    assert reader.body.read() == b"#EXTM3U"
    assert bee_node.requests[0].url == f"{NODE_URL}/bzz/deadbeef"


@pytest.mark.asyncio
async def test_read_data_never_sends_token_to_foreign_hosts(bee_node, recording_session) -> None:
    bee_node.queue("GET", "/bzz/deadbeef/index.m3u8", DummyHTTPResponse(200, content=b"#EXTM3U"))

    await recording_session.read_data("https://gateway.example/bzz/deadbeef/index.m3u8")

    (request,) = bee_node.requests
    assert request.url == f"{NODE_URL}/bzz/deadbeef/index.m3u8"
    assert all(not r.url.startswith("https://gateway.example") for r in bee_node.requests)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "target",
    ["http://attacker.example/steal", "ftp://node/bzz/ab12", "", "../debug/addresses"],
)
async def test_read_data_rejects_non_reference_targets(bee_node, recording_session, target) -> None:
    with pytest.raises(FetchError):
        await recording_session.read_data(target)
    assert bee_node.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [DummyHTTPResponse(404, {"message": "Not Found"}), httpx.ConnectError("refused")],
    ids=["not-found", "transport"],
)
async def test_read_data_failures_raise_fetch_error(bee_node, recording_session, response) -> None:
    bee_node.queue("GET", "/bzz/missing", response)

    with pytest.raises(FetchError):
        await recording_session.read_data("missing")


@pytest.mark.asyncio
async def test_unsupported_operations_never_touch_the_network(bee_node, recording_session) -> None:
    with pytest.raises(NotSupported):
        await recording_session.read_data_range("ab12", "bytes=0-10")
    with pytest.raises(NotSupported):
        await recording_session.list_files("videos")
    with pytest.raises(NotSupported):
        await recording_session.delete_file("ab12")
    with pytest.raises(NotSupported):
        recording_session.presign("ab12", timedelta(minutes=5))
    assert bee_node.requests == []


def test_get_info_reports_host_and_stamps(recording_session) -> None:
    info = recording_session.get_info()

    assert info.storage_type is StorageType.SWARM
    assert info.swarm_info.host == "bee.test:1633"
    assert info.swarm_info.video_stamp == CONTENT_STAMP
    assert info.swarm_info.feed_stamp == FEED_STAMP


def test_session_flags(recording_session) -> None:
    assert recording_session.is_external() is False
    assert recording_session.is_own("http://anything") is True
    assert recording_session.end_session() is None


@pytest.mark.asyncio
async def test_create_feed_manifest_defaults_to_session_path(api_key_driver, swarm_cli) -> None:
    swarm_cli.output = "Feed Manifest URL: http://node/bzz/feed01\n"
    client = SwarmClient(endpoint=NODE_URL, bearer_token="tok", run_cli=swarm_cli)
    session = SwarmSession(driver=api_key_driver, base_path="videos/stream1", client=client)

    reference = await session.create_feed_manifest()

    assert reference == "http://node/bzz/feed01"
    (call,) = swarm_cli.calls
    assert call.option("--topic-string") == "videos_stream1"
    assert call.option("--identity") == "main"
    assert call.option("--stamp") == FEED_STAMP
