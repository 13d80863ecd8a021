"""Turn queued simulation steps into unsigned transactions.

Module purpose and system role:
    - Walk the step list in order, allocate a nonce for every sender-bearing
      step and build the matching unsigned Stacks transaction.
    - Inject the sender's hash160 into the spending condition, since the
      transaction is never signed and the signer cannot be recovered.
    - Pass eval steps through untouched.

Integration points and dependencies:
    - Uses :class:`NonceManager` for nonce allocation.
    - Output is consumed by ``stxer.tx_engine.encoder.encode_batch``.

Simulation/test hooks:
    - Steps of an unknown shape are logged as ``invalid_step`` and skipped
      instead of aborting the run.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Union

from stxer.c32 import c32_address_decode
from stxer.config import MAINNET, StacksNetwork
from stxer.logger import StructuredLogger
from stxer.steps import (
    ContractCallStep,
    ContractDeployStep,
    EvalStep,
    TransferStep,
    split_contract_id,
)
from stxer.tx_engine.nonce_manager import NonceManager
from stxer.tx_engine.transactions import (
    AnchorMode,
    PostConditionMode,
    UnsignedTransaction,
    make_unsigned_contract_call,
    make_unsigned_contract_deploy,
    make_unsigned_stx_transfer,
)

LOG = StructuredLogger("materializer")

Entry = Union[UnsignedTransaction, EvalStep]


class TransactionMaterializer:
    """Builds the ordered list of batch entries for one run."""

    def __init__(self, nonce_manager: NonceManager, network: StacksNetwork = MAINNET) -> None:
        self.nonce_manager = nonce_manager
        self.network = network

    async def materialize(self, steps: Iterable[Any]) -> List[Entry]:
        entries: List[Entry] = []
        for index, step in enumerate(steps):
            if isinstance(step, ContractCallStep):
                entries.append(await self._contract_call(step))
            elif isinstance(step, TransferStep):
                entries.append(await self._transfer(step))
            elif isinstance(step, ContractDeployStep):
                entries.append(await self._deploy(step))
            elif isinstance(step, EvalStep):
                entries.append(step)
            else:
                LOG.log(
                    "invalid_step",
                    risk_level="medium",
                    index=index,
                    step=repr(step),
                )
                continue
            LOG.trace("step_materialized", index=index, kind=type(step).__name__)
        return entries

    # ------------------------------------------------------------------
    def _set_signer(self, tx: UnsignedTransaction, sender: str) -> UnsignedTransaction:
        _, hash160 = c32_address_decode(sender)
        tx.spending_condition.signer = hash160
        return tx

    async def _contract_call(self, step: ContractCallStep) -> UnsignedTransaction:
        nonce = await self.nonce_manager.get_nonce(step.sender)
        contract_address, contract_name = split_contract_id(step.contract_id)
        tx = make_unsigned_contract_call(
            contract_address=contract_address,
            contract_name=contract_name,
            function_name=step.function_name,
            function_args=step.function_args,
            nonce=nonce,
            fee=step.fee,
            network=self.network,
            anchor_mode=AnchorMode.ANY,
            post_condition_mode=PostConditionMode.ALLOW,
        )
        return self._set_signer(tx, step.sender)

    async def _transfer(self, step: TransferStep) -> UnsignedTransaction:
        nonce = await self.nonce_manager.get_nonce(step.sender)
        tx = make_unsigned_stx_transfer(
            recipient=step.recipient,
            amount=step.amount,
            nonce=nonce,
            fee=step.fee,
            memo=step.memo,
            network=self.network,
            anchor_mode=AnchorMode.ANY,
        )
        return self._set_signer(tx, step.sender)

    async def _deploy(self, step: ContractDeployStep) -> UnsignedTransaction:
        nonce = await self.nonce_manager.get_nonce(step.deployer)
        tx = make_unsigned_contract_deploy(
            contract_name=step.contract_name,
            code_body=step.source_code,
            nonce=nonce,
            fee=step.fee,
            clarity_version=step.clarity_version,
            network=self.network,
            anchor_mode=AnchorMode.ANY,
            post_condition_mode=PostConditionMode.ALLOW,
        )
        return self._set_signer(tx, step.deployer)
