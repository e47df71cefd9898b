from __future__ import annotations

import pytest

from bzzstore.clients.auth import TokenCache
from bzzstore.drivers.swarm import StampInfo, SwarmDriver
from tests.mocks.swarm import CONTENT_STAMP, FEED_STAMP, NODE_URL, FakeBeeNode, FakeSwarmCli


@pytest.fixture
def bee_node(monkeypatch) -> FakeBeeNode:
    node = FakeBeeNode()
    monkeypatch.setattr("httpx.AsyncClient", node.client_factory)
    return node


@pytest.fixture
def swarm_cli() -> FakeSwarmCli:
    return FakeSwarmCli(output="Feed Manifest URL: http://node/bzz/deadbeef\n")


@pytest.fixture
def token_cache() -> TokenCache:
    return TokenCache()


@pytest.fixture
def stamps() -> StampInfo:
    return StampInfo(stamp=CONTENT_STAMP, feed_stamp=FEED_STAMP)


@pytest.fixture
def api_key_driver(token_cache: TokenCache, stamps: StampInfo, swarm_cli: FakeSwarmCli) -> SwarmDriver:
    return SwarmDriver(
        endpoint=NODE_URL,
        api_key="admin",
        api_secret="s3cret",
        stamps=stamps,
        token_cache=token_cache,
        run_cli=swarm_cli,
    )
