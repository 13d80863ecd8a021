import asyncio
import json

import aiohttp
import pytest

from stxer.adapters import (
    BlockReference,
    NodeAdapter,
    SimulationAdapter,
    parse_submission_response,
    simulation_url,
)
from stxer.errors import BlockResolutionError, NetworkError, SubmissionError

NODE = "http://node.test"
SIM = "http://sim.test/simulations"
SIM_ID = "00000000000000000000000000000101"


class DummyResponse:
    def __init__(self, body, status=200):
        self.status = status
        self._text = body if isinstance(body, str) else json.dumps(body)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def text(self):
        return self._text

    async def json(self, content_type=None):
        return json.loads(self._text)


class DummySession:
    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def _route(self, method, url, extra):
        self.calls.append((method, url, extra))
        route = self.routes[url]
        if isinstance(route, Exception):
            raise route
        return route

    def get(self, url, params=None, timeout=None):
        return self._route("GET", url, params)

    def post(self, url, data=None, timeout=None):
        return self._route("POST", url, data)


def _block_route(height, body):
    return {f"{NODE}/extended/v1/block/by_height/{height}": DummyResponse(body)}


def test_tip_height():
    session = DummySession({f"{NODE}/v2/info": DummyResponse({"stacks_tip_height": 321})})
    node = NodeAdapter(NODE, session=session)
    assert asyncio.run(node.get_tip_height()) == 321


def test_get_block():
    body = {"height": 100, "hash": "0x" + "ab" * 32, "index_block_hash": "0x" + "cd" * 32}
    session = DummySession(_block_route(100, body))
    node = NodeAdapter(NODE, session=session)
    block = asyncio.run(node.get_block(100))
    assert block == BlockReference(100, "ab" * 32, "cd" * 32)
    assert session.calls[0][2] == {"unanchored": "true"}


@pytest.mark.parametrize(
    "body",
    [
        {"height": 99, "hash": "0x" + "ab" * 32, "index_block_hash": "0x" + "cd" * 32},
        {"height": 100, "hash": "ab" * 32, "index_block_hash": "0x" + "cd" * 32},
        {"height": 100},
        {"height": 100, "hash": "0x" + "ab" * 32},
        {"height": 100, "hash": "0x" + "ab" * 32, "index_block_hash": "cd" * 32},
        {"height": 100, "hash": "0x" + "ab" * 32, "index_block_hash": None},
    ],
)
def test_get_block_rejects_inconsistent_info(body):
    node = NodeAdapter(NODE, session=DummySession(_block_route(100, body)))
    with pytest.raises(BlockResolutionError, match="block height 100"):
        asyncio.run(node.get_block(100))


def test_account_nonce_pinned_to_tip():
    url = f"{NODE}/v2/accounts/SP1"
    session = DummySession({url: DummyResponse({"nonce": 12, "balance": "0x00"})})
    node = NodeAdapter(NODE, session=session)
    assert asyncio.run(node.get_account_nonce("SP1", "cd" * 32)) == 12
    assert session.calls == [("GET", url, {"proof": "false", "tip": "cd" * 32})]


def test_http_status_error():
    session = DummySession({f"{NODE}/v2/info": DummyResponse("oops", status=502)})
    node = NodeAdapter(NODE, session=session)
    with pytest.raises(NetworkError, match="502"):
        asyncio.run(node.get_tip_height())


def test_transport_error_logged(_isolated_logs):
    session = DummySession({f"{NODE}/v2/info": aiohttp.ClientConnectionError("down")})
    node = NodeAdapter(NODE, session=session)
    with pytest.raises(NetworkError):
        asyncio.run(node.get_tip_height())
    err = json.loads((_isolated_logs / "errors.log").read_text().splitlines()[0])
    assert err["module"] == "node_adapter"
    assert err["event"] == "http_get"


def test_parse_submission_response():
    assert parse_submission_response(json.dumps({"id": SIM_ID})) == SIM_ID


@pytest.mark.parametrize("text", ["rate limited", "{not json", '{"id": 101}', "{}"])
def test_parse_submission_response_rejects(text):
    with pytest.raises(SubmissionError) as exc:
        parse_submission_response(text)
    assert text in str(exc.value)


def test_submit_posts_payload():
    session = DummySession({SIM: DummyResponse({"id": SIM_ID})})
    sim = SimulationAdapter(SIM, session=session)
    assert asyncio.run(sim.submit(b"sim-v1")) == SIM_ID
    assert session.calls == [("POST", SIM, b"sim-v1")]


def test_submit_rejected(_isolated_logs):
    sim = SimulationAdapter(SIM, session=DummySession({SIM: DummyResponse("rate limited", 429)}))
    with pytest.raises(SubmissionError, match="rate limited"):
        asyncio.run(sim.submit(b"sim-v1"))
    entry = json.loads((_isolated_logs / "simulation_adapter.json").read_text())
    assert entry["event"] == "submit_rejected"


def test_submit_transport_error():
    sim = SimulationAdapter(SIM, session=DummySession({SIM: asyncio.TimeoutError()}))
    with pytest.raises(NetworkError):
        asyncio.run(sim.submit(b"sim-v1"))


def test_simulation_url():
    assert simulation_url(SIM_ID).endswith(f"/mainnet/{SIM_ID}")
    assert simulation_url(SIM_ID, "testnet").endswith(f"/testnet/{SIM_ID}")
