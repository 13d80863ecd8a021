"""Fluent builder for stxer simulations.

Module purpose and system role:
    - Queue transfers, contract calls, deploys and read-only evals in
      execution order.
    - ``run`` pins the batch to one block, materializes unsigned
      transactions with per-sender nonces, encodes the ``sim-v1`` envelope
      and submits it, returning the simulation id.

Integration points and dependencies:
    - ``NodeAdapter`` and ``SimulationAdapter`` for network access; both can be
      injected, otherwise one ``aiohttp`` session is opened per run.
    - ``stxer.tx_engine`` for nonce allocation, materialization and encoding.

Simulation/test hooks:
    - Every run logs ``run_start``, ``block_resolved`` and ``run_complete``
      (or ``run_failed``) through the structured logger.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, List, Optional, Tuple

import aiohttp

from stxer.adapters.node_adapter import BlockReference, NodeAdapter
from stxer.adapters.simulation_adapter import SimulationAdapter, simulation_url
from stxer.clarity import ClarityValue
from stxer.config import StacksNetwork, get_network
from stxer.errors import ConfigurationError, SimulationError
from stxer.logger import StructuredLogger
from stxer.steps import (
    ContractCallStep,
    ContractDeployStep,
    EvalStep,
    Step,
    TransferStep,
    map_get_code,
    var_get_code,
)
from stxer.tx_engine import NonceManager, TransactionMaterializer, encode_batch

LOG = StructuredLogger("simulation_builder")


class SimulationBuilder:
    """Accumulates simulation steps; every ``add_*`` call returns the builder."""

    def __init__(
        self,
        *,
        network: StacksNetwork | str | None = None,
        node: Optional[NodeAdapter] = None,
        simulator: Optional[SimulationAdapter] = None,
    ) -> None:
        self.network = network if isinstance(network, StacksNetwork) else get_network(network)
        self.node = node
        self.simulator = simulator
        self._block_height: Optional[int] = None
        self._sender = ""
        self._steps: List[Step] = []

    @classmethod
    def new(cls, **kwargs) -> "SimulationBuilder":
        return cls(**kwargs)

    @property
    def steps(self) -> Tuple[Step, ...]:
        return tuple(self._steps)

    @property
    def block_height(self) -> Optional[int]:
        return self._block_height

    @property
    def sender(self) -> str:
        return self._sender

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def use_block_height(self, height: int) -> "SimulationBuilder":
        """Simulate on top of ``height``; omit to use the current chain tip."""
        if isinstance(height, bool) or not isinstance(height, int) or height < 0:
            raise ConfigurationError(f"block height must be a non-negative integer, got {height!r}")
        self._block_height = height
        return self

    def with_sender(self, address: str) -> "SimulationBuilder":
        """Use ``address`` as the sender of the steps added after this call."""
        self._sender = address
        return self

    def _resolve_sender(self, explicit: Optional[str], role: str) -> str:
        sender = explicit if explicit is not None else self._sender
        if not sender:
            raise ConfigurationError(
                f"Please specify a {role} with with_sender or by passing a {role} parameter"
            )
        return sender

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    def add_stx_transfer(
        self,
        recipient: str,
        amount: int,
        *,
        sender: Optional[str] = None,
        fee: int = 0,
        memo: str = "",
    ) -> "SimulationBuilder":
        step = TransferStep(
            recipient=recipient,
            amount=amount,
            sender=self._resolve_sender(sender, "sender"),
            fee=fee,
            memo=memo,
        )
        self._steps.append(step)
        return self

    def add_contract_call(
        self,
        contract_id: str,
        function_name: str,
        function_args: Iterable[ClarityValue] = (),
        *,
        sender: Optional[str] = None,
        fee: int = 0,
    ) -> "SimulationBuilder":
        step = ContractCallStep(
            contract_id=contract_id,
            function_name=function_name,
            function_args=tuple(function_args),
            sender=self._resolve_sender(sender, "sender"),
            fee=fee,
        )
        self._steps.append(step)
        return self

    def add_contract_deploy(
        self,
        contract_name: str,
        source_code: str,
        *,
        deployer: Optional[str] = None,
        fee: int = 0,
        clarity_version: Optional[int] = 2,
    ) -> "SimulationBuilder":
        step = ContractDeployStep(
            contract_name=contract_name,
            source_code=source_code,
            deployer=self._resolve_sender(deployer, "deployer"),
            fee=fee,
            clarity_version=clarity_version,
        )
        self._steps.append(step)
        return self

    def add_eval_code(self, contract_id: str, code: str) -> "SimulationBuilder":
        """Evaluate ``code`` read-only inside ``contract_id``."""
        self._steps.append(EvalStep(contract_id=contract_id, code=code))
        return self

    def add_map_read(self, contract_id: str, map_name: str, key: str) -> "SimulationBuilder":
        return self.add_eval_code(contract_id, map_get_code(map_name, key))

    def add_var_read(self, contract_id: str, variable: str) -> "SimulationBuilder":
        return self.add_eval_code(contract_id, var_get_code(variable))

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------
    @asynccontextmanager
    async def _collaborators(self) -> AsyncIterator[Tuple[NodeAdapter, SimulationAdapter]]:
        if self.node is not None and self.simulator is not None:
            yield self.node, self.simulator
            return
        async with aiohttp.ClientSession() as session:
            yield (
                self.node or NodeAdapter(session=session),
                self.simulator or SimulationAdapter(session=session),
            )

    async def _get_block_info(self, node: NodeAdapter) -> BlockReference:
        height = self._block_height
        if height is None:
            height = await node.get_tip_height()
        return await node.get_block(height)

    async def run(self) -> str:
        """Submit the queued steps and return the simulation id."""

        LOG.log("run_start", steps=len(self._steps), network=self.network.name)
        try:
            async with self._collaborators() as (node, simulator):
                block = await self._get_block_info(node)
                LOG.log(
                    "block_resolved",
                    block=block.block_height,
                    block_hash=f"0x{block.block_hash}",
                )

                async def fetch_nonce(address: str) -> int:
                    return await node.get_account_nonce(address, block.index_block_hash)

                nonce_manager = NonceManager(fetch_nonce, block=block.block_height)
                materializer = TransactionMaterializer(nonce_manager, self.network)
                entries = await materializer.materialize(self._steps)
                payload = encode_batch(block.block_hash, block.block_height, entries)
                sim_id = await simulator.submit(payload)
        except SimulationError as exc:
            LOG.log("run_failed", risk_level="high", error=str(exc))
            raise
        LOG.log(
            "run_complete",
            block=block.block_height,
            sim_id=sim_id,
            entries=len(entries),
            url=simulation_url(sim_id, self.network.name),
        )
        return sim_id
