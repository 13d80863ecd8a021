"""Environment-driven settings and Stacks network parameters."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict

# current beta api endpoint
STXER_API_URL = os.getenv("STXER_API_URL", "https://api.stxer.xyz/simulations")
STXER_WEB_URL = os.getenv("STXER_WEB_URL", "https://stxer.xyz/simulations")
STACKS_API_URL = os.getenv("STACKS_API_URL", "https://api.hiro.so")
STXER_NETWORK = os.getenv("STXER_NETWORK", "mainnet")
HTTP_TIMEOUT_SEC = float(os.getenv("HTTP_TIMEOUT_SEC", "30"))


@dataclass(frozen=True)
class StacksNetwork:
    """Transaction version and chain id used when building transactions."""

    name: str
    tx_version: int
    chain_id: int


MAINNET = StacksNetwork(name="mainnet", tx_version=0x00, chain_id=0x00000001)
TESTNET = StacksNetwork(name="testnet", tx_version=0x80, chain_id=0x80000000)

_NETWORKS: Dict[str, StacksNetwork] = {
    MAINNET.name: MAINNET,
    TESTNET.name: TESTNET,
}


def get_network(name: str | None = None) -> StacksNetwork:
    """Return the network called ``name`` (``$STXER_NETWORK`` when omitted)."""

    key = (name or STXER_NETWORK).lower()
    if key not in _NETWORKS:
        raise ValueError(f"Unknown network {key}")
    return _NETWORKS[key]
