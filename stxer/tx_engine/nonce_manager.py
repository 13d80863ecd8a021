"""Per-run nonce manager with lazy on-chain sync and audit logging.

Module purpose and system role:
    - Hand out gap-free, strictly increasing nonces per sender for one
      simulation run.
    - Syncs with the on-chain nonce the first time a sender is seen; every
      later request for that sender is served from the local cache.
    - Emits structured logs for each allocation.

Integration points and dependencies:
    - Expects an async ``fetch_nonce(address)`` callable already pinned to the
      run's block checkpoint (see ``stxer.adapters.node_adapter``).

Simulation/test hooks:
    - ``snapshot`` exposes the cache so tests can assert which senders were
      queried. The cache is never persisted or shared across runs.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Dict, Optional

from stxer.logger import StructuredLogger

LOG = StructuredLogger("nonce_manager")

FetchNonce = Callable[[str], Awaitable[int]]


class NonceManager:
    """Nonce allocator scoped to a single run.

    Calls must be awaited one at a time; the cache update is not atomic
    across concurrent requests for the same sender.
    """

    def __init__(self, fetch_nonce: FetchNonce, *, block: int | str | None = None) -> None:
        self._fetch_nonce = fetch_nonce
        self._block = block
        self._nonces: Dict[str, int] = {}

    def _log(
        self,
        source: str,
        address: str,
        on_chain_nonce: Optional[int],
        local_nonce: int,
    ) -> None:
        LOG.log(
            "nonce_get",
            block=self._block,
            address=address,
            on_chain_nonce=on_chain_nonce,
            local_nonce=local_nonce,
            source=source,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def get_nonce(self, address: str) -> int:
        """Return next nonce for ``address`` using local cache when available."""
        if address in self._nonces:
            nonce = self._nonces[address]
            on_chain = None
            source = "cache"
        else:
            on_chain = int(await self._fetch_nonce(address))
            nonce = on_chain
            source = "chain"
        self._nonces[address] = nonce + 1
        self._log(source, address, on_chain, nonce)
        return nonce

    def snapshot(self) -> Dict[str, int]:
        """Return the next nonce to be assigned for each sender seen so far."""

        return dict(self._nonces)
