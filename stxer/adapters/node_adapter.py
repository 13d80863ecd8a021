"""Stacks node API client used to pin a simulation to a block.

Module purpose and system role:
    - Resolve the chain tip height when no block height was requested.
    - Resolve block hash and index block hash for a height.
    - Read account nonces at a fixed index block hash so every lookup in a
      run observes the same chain state.

Integration points and dependencies:
    - Talks to a Hiro-compatible API (``$STACKS_API_URL``) with ``aiohttp``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import aiohttp

from stxer.config import HTTP_TIMEOUT_SEC, STACKS_API_URL
from stxer.errors import BlockResolutionError
from stxer.logger import StructuredLogger

from stxer.adapters.http import HTTPAdapter

LOG = StructuredLogger("node_adapter")


@dataclass(frozen=True)
class BlockReference:
    """Resolved block; hashes are hex without the ``0x`` prefix."""

    block_height: int
    block_hash: str
    index_block_hash: str


def _strip_0x(value: str) -> str:
    return value[2:] if value.startswith("0x") else value


class NodeAdapter(HTTPAdapter):
    """Read-only queries against a Stacks node API."""

    module = "node_adapter"

    def __init__(
        self,
        api_url: str = STACKS_API_URL,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = HTTP_TIMEOUT_SEC,
    ) -> None:
        super().__init__(api_url, session=session, timeout=timeout)

    async def get_tip_height(self) -> int:
        info = await self._get_json("/v2/info")
        return int(info["stacks_tip_height"])

    async def get_block(self, height: int) -> BlockReference:
        info: Any = await self._get_json(
            f"/extended/v1/block/by_height/{height}", params={"unanchored": "true"}
        )
        if isinstance(info, dict):
            block_hash = info.get("hash")
            index_block_hash = info.get("index_block_hash")
        else:
            block_hash = index_block_hash = None
        if (
            not isinstance(info, dict)
            or info.get("height") != height
            or not isinstance(block_hash, str)
            or not block_hash.startswith("0x")
            or not isinstance(index_block_hash, str)
            or not index_block_hash.startswith("0x")
        ):
            LOG.log(
                "block_resolution_failed",
                risk_level="high",
                block=height,
                error=f"unexpected block info for height {height}",
            )
            raise BlockResolutionError(f"failed to get block info for block height {height}")
        return BlockReference(
            block_height=height,
            block_hash=_strip_0x(block_hash),
            index_block_hash=_strip_0x(index_block_hash),
        )

    async def get_account_nonce(self, address: str, tip: str) -> int:
        account = await self._get_json(
            f"/v2/accounts/{address}", params={"proof": "false", "tip": tip}
        )
        return int(account["nonce"])
