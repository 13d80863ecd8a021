import asyncio
import json

from stxer.tx_engine.nonce_manager import NonceManager


class DummyChain:
    def __init__(self, nonces):
        self.nonces = nonces
        self.calls = []

    async def fetch(self, address):
        self.calls.append(address)
        return self.nonces[address]


def test_nonce_sequence_per_sender():
    chain = DummyChain({"A": 5, "B": 0})
    nm = NonceManager(chain.fetch, block=100)

    async def allocate():
        return [await nm.get_nonce(a) for a in ["A", "B", "A", "A", "B"]]

    assert asyncio.run(allocate()) == [5, 0, 6, 7, 1]
    assert chain.calls == ["A", "B"]
    assert nm.snapshot() == {"A": 8, "B": 2}


def test_snapshot_is_a_copy():
    chain = DummyChain({"A": 1})
    nm = NonceManager(chain.fetch)
    asyncio.run(nm.get_nonce("A"))
    snap = nm.snapshot()
    snap["A"] = 99
    assert nm.snapshot() == {"A": 2}


def test_nonce_logging(_isolated_logs):
    chain = DummyChain({"A": 3})
    nm = NonceManager(chain.fetch, block=42)

    async def allocate():
        await nm.get_nonce("A")
        await nm.get_nonce("A")

    asyncio.run(allocate())
    lines = (_isolated_logs / "nonce_manager.json").read_text().splitlines()
    entries = [json.loads(line) for line in lines]
    assert [e["source"] for e in entries] == ["chain", "cache"]
    assert entries[0]["on_chain_nonce"] == 3
    assert entries[1]["local_nonce"] == 4
    assert entries[0]["block"] == 42
