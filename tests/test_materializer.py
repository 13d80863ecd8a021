import asyncio
import json

from stxer.c32 import c32_address_decode
from stxer.clarity import bool_cv
from stxer.steps import ContractCallStep, ContractDeployStep, EvalStep, TransferStep
from stxer.tx_engine.materializer import TransactionMaterializer
from stxer.tx_engine.nonce_manager import NonceManager
from stxer.tx_engine.transactions import PostConditionMode, UnsignedTransaction

ALICE = "SP1K1A1PMGW2ZJCNF46NWZWHG8TS1D23EGH1KNK60"
BOB = "SP212Y5JKN59YP3GYG07K3S8W5SSGE4KH6B5STXER"


class DummyChain:
    def __init__(self, nonces):
        self.nonces = nonces
        self.calls = []

    async def fetch(self, address):
        self.calls.append(address)
        return self.nonces.get(address, 0)


def _materialize(steps, nonces):
    chain = DummyChain(nonces)
    materializer = TransactionMaterializer(NonceManager(chain.fetch))
    return asyncio.run(materializer.materialize(steps)), chain


def test_order_and_nonces():
    steps = [
        EvalStep("SP000000000000000000002Q6VF78.pox", "(list block-height)"),
        TransferStep(recipient=BOB, amount=10000, sender=ALICE),
        ContractDeployStep(contract_name="test", source_code="(ok u1)", deployer=BOB, fee=100),
        ContractCallStep(
            contract_id=f"{BOB}.test",
            function_name="set-enabled",
            sender=BOB,
            function_args=(bool_cv(True),),
        ),
        TransferStep(recipient=BOB, amount=1, sender=ALICE),
        EvalStep(f"{BOB}.test", "(get-enabled)"),
    ]
    entries, chain = _materialize(steps, {ALICE: 10, BOB: 3})

    assert entries[0] is steps[0]
    assert entries[5] is steps[5]
    txs = [e for e in entries if isinstance(e, UnsignedTransaction)]
    assert [tx.spending_condition.nonce for tx in txs] == [10, 3, 4, 11]
    assert sorted(chain.calls) == sorted([ALICE, BOB])
    assert txs[1].spending_condition.fee == 100


def test_signer_injected():
    entries, _ = _materialize([TransferStep(recipient=BOB, amount=1, sender=ALICE)], {})
    _, alice_hash = c32_address_decode(ALICE)
    assert entries[0].spending_condition.signer == alice_hash
    assert entries[0].serialize()[7:27] == alice_hash


def test_post_condition_modes():
    steps = [
        TransferStep(recipient=BOB, amount=1, sender=ALICE),
        ContractCallStep(contract_id=f"{BOB}.test", function_name="f", sender=ALICE),
        ContractDeployStep(contract_name="c", source_code="(ok u1)", deployer=ALICE),
    ]
    entries, _ = _materialize(steps, {})
    modes = [tx.post_condition_mode for tx in entries]
    assert modes == [PostConditionMode.DENY, PostConditionMode.ALLOW, PostConditionMode.ALLOW]


def test_evals_never_fetch_nonces():
    steps = [EvalStep(f"{BOB}.test", "(var-get enabled)")] * 3
    entries, chain = _materialize(steps, {})
    assert len(entries) == 3
    assert chain.calls == []


def test_unknown_step_skipped(_isolated_logs):
    steps = [object(), TransferStep(recipient=BOB, amount=1, sender=ALICE)]
    entries, _ = _materialize(steps, {ALICE: 0})
    assert len(entries) == 1
    lines = (_isolated_logs / "materializer.json").read_text().splitlines()
    events = [json.loads(line)["event"] for line in lines]
    assert events[0] == "invalid_step"
    assert "step_materialized" in events
