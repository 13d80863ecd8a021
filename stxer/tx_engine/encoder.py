"""Binary ``sim-v1`` envelope accepted by the stxer simulation API.

Layout::

    b"sim-v1" | block height (u64 BE) | block hash (32 bytes) | entries...

Every entry is the Clarity serialization of ``{type: uint, data: buff}``:
type 0 carries a serialized transaction, type 1 carries the serialization of
``{contract: principal, code: string-ascii}`` for a read-only eval.
"""

from __future__ import annotations

import struct
from typing import Iterable

from stxer.clarity import (
    ClarityValue,
    buffer_cv,
    contract_principal_cv,
    serialize_cv,
    string_ascii_cv,
    tuple_cv,
    uint_cv,
)
from stxer.steps import EvalStep, split_contract_id
from stxer.tx_engine.materializer import Entry
from stxer.tx_engine.transactions import UnsignedTransaction

MAGIC = b"sim-v1"
HEIGHT_OFFSET = len(MAGIC)
HEADER_LENGTH = HEIGHT_OFFSET + 8 + 32

ENTRY_TRANSACTION = 0
ENTRY_EVAL = 1


def run_tx(tx: UnsignedTransaction) -> ClarityValue:
    return tuple_cv({"type": uint_cv(ENTRY_TRANSACTION), "data": buffer_cv(tx.serialize())})


def run_eval(step: EvalStep) -> ClarityValue:
    contract_address, contract_name = split_contract_id(step.contract_id)
    inner = tuple_cv(
        {
            "contract": contract_principal_cv(contract_address, contract_name),
            "code": string_ascii_cv(step.code),
        }
    )
    return tuple_cv({"type": uint_cv(ENTRY_EVAL), "data": buffer_cv(serialize_cv(inner))})


def encode_entry(entry: Entry) -> bytes:
    if isinstance(entry, EvalStep):
        return serialize_cv(run_eval(entry))
    if isinstance(entry, UnsignedTransaction):
        return serialize_cv(run_tx(entry))
    raise TypeError(f"Cannot encode batch entry of type {type(entry).__name__}")


def _hash_bytes(block_hash: str) -> bytes:
    text = block_hash[2:] if block_hash.startswith("0x") else block_hash
    raw = bytes.fromhex(text)
    if len(raw) != 32:
        raise ValueError(f"block hash must be 32 bytes, got {len(raw)}")
    return raw


def encode_batch(block_hash: str, block_height: int, entries: Iterable[Entry]) -> bytes:
    """Return the request body for a simulation of ``entries`` at the given block."""

    body = bytearray(MAGIC)
    body += bytes(8)
    body += _hash_bytes(block_hash)
    for entry in entries:
        body += encode_entry(entry)
    struct.pack_into(">Q", body, HEIGHT_OFFSET, block_height)
    return bytes(body)
