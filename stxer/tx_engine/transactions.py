"""Unsigned Stacks transactions and their wire serialization.

Module purpose and system role:
    - Build token transfer, contract call and contract deploy transactions
      that are never signed: the public key is empty, the signature is all
      zeroes and the signer hash160 is injected by the materializer.
    - Serialize them in the canonical consensus layout expected by the
      simulation service.

Integration points and dependencies:
    - ``stxer.clarity`` for argument and recipient encoding.
    - ``stxer.config.StacksNetwork`` for the version byte and chain id.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, Optional, Tuple, Union

from stxer.c32 import c32_address_decode
from stxer.clarity import ClarityValue, principal_cv
from stxer.config import MAINNET, StacksNetwork

MEMO_LENGTH = 34
SIGNATURE_LENGTH = 65


class AuthType(IntEnum):
    STANDARD = 0x04
    SPONSORED = 0x05


class AddressHashMode(IntEnum):
    P2PKH = 0x00
    P2SH = 0x01
    P2WPKH = 0x02
    P2WSH = 0x03


class PubKeyEncoding(IntEnum):
    COMPRESSED = 0x00
    UNCOMPRESSED = 0x01


class AnchorMode(IntEnum):
    ON_CHAIN_ONLY = 0x01
    OFF_CHAIN_ONLY = 0x02
    ANY = 0x03


class PostConditionMode(IntEnum):
    ALLOW = 0x01
    DENY = 0x02


class PayloadType(IntEnum):
    TOKEN_TRANSFER = 0x00
    SMART_CONTRACT = 0x01
    CONTRACT_CALL = 0x02
    VERSIONED_SMART_CONTRACT = 0x06


def _u8(value: int) -> bytes:
    return struct.pack(">B", value)


def _u32(value: int) -> bytes:
    return struct.pack(">I", value)


def _u64(value: int) -> bytes:
    return struct.pack(">Q", value)


def _lp_string(text: str, prefix_bytes: int = 1) -> bytes:
    data = text.encode("utf-8")
    limit = (1 << (8 * prefix_bytes)) - 1
    if len(data) > limit:
        raise ValueError(f"string too long for {prefix_bytes}-byte length prefix")
    return len(data).to_bytes(prefix_bytes, "big") + data


@dataclass
class SpendingCondition:
    """Single-sig spending condition; ``signer`` is the acting principal's hash160."""

    signer: bytes
    nonce: int
    fee: int
    hash_mode: AddressHashMode = AddressHashMode.P2PKH
    key_encoding: PubKeyEncoding = PubKeyEncoding.COMPRESSED
    signature: bytes = bytes(SIGNATURE_LENGTH)

    def serialize(self) -> bytes:
        if len(self.signer) != 20:
            raise ValueError("signer must be a 20 byte hash160")
        return b"".join(
            [
                _u8(self.hash_mode),
                bytes(self.signer),
                _u64(self.nonce),
                _u64(self.fee),
                _u8(self.key_encoding),
                bytes(self.signature),
            ]
        )


@dataclass
class Authorization:
    spending_condition: SpendingCondition
    auth_type: AuthType = AuthType.STANDARD

    def serialize(self) -> bytes:
        return _u8(self.auth_type) + self.spending_condition.serialize()


@dataclass(frozen=True)
class TokenTransferPayload:
    recipient: ClarityValue
    amount: int
    memo: str = ""

    def serialize(self) -> bytes:
        memo = self.memo.encode("utf-8")
        if len(memo) > MEMO_LENGTH:
            raise ValueError(f"memo exceeds {MEMO_LENGTH} bytes")
        return b"".join(
            [
                _u8(PayloadType.TOKEN_TRANSFER),
                self.recipient.serialize(),
                _u64(self.amount),
                memo.ljust(MEMO_LENGTH, b"\x00"),
            ]
        )


@dataclass(frozen=True)
class ContractCallPayload:
    contract_address: str
    contract_name: str
    function_name: str
    function_args: Tuple[ClarityValue, ...] = ()

    def serialize(self) -> bytes:
        version, hash160 = c32_address_decode(self.contract_address)
        return b"".join(
            [
                _u8(PayloadType.CONTRACT_CALL),
                _u8(version),
                hash160,
                _lp_string(self.contract_name),
                _lp_string(self.function_name),
                _u32(len(self.function_args)),
                *(arg.serialize() for arg in self.function_args),
            ]
        )


@dataclass(frozen=True)
class SmartContractPayload:
    contract_name: str
    code_body: str
    clarity_version: Optional[int] = None

    def serialize(self) -> bytes:
        if self.clarity_version is None:
            head = _u8(PayloadType.SMART_CONTRACT)
        else:
            head = _u8(PayloadType.VERSIONED_SMART_CONTRACT) + _u8(self.clarity_version)
        return head + _lp_string(self.contract_name) + _lp_string(self.code_body, 4)


Payload = Union[TokenTransferPayload, ContractCallPayload, SmartContractPayload]


@dataclass
class UnsignedTransaction:
    """A complete Stacks transaction whose signature is left empty."""

    auth: Authorization
    payload: Payload
    network: StacksNetwork = MAINNET
    anchor_mode: AnchorMode = AnchorMode.ANY
    post_condition_mode: PostConditionMode = PostConditionMode.DENY
    post_conditions: Tuple[bytes, ...] = field(default_factory=tuple)

    @property
    def spending_condition(self) -> SpendingCondition:
        return self.auth.spending_condition

    def serialize(self) -> bytes:
        return b"".join(
            [
                _u8(self.network.tx_version),
                _u32(self.network.chain_id),
                self.auth.serialize(),
                _u8(self.anchor_mode),
                _u8(self.post_condition_mode),
                _u32(len(self.post_conditions)),
                *self.post_conditions,
                self.payload.serialize(),
            ]
        )


def _unsigned_auth(nonce: int, fee: int) -> Authorization:
    # an empty public key hashes to no real principal; callers overwrite signer
    return Authorization(SpendingCondition(signer=bytes(20), nonce=nonce, fee=fee))


def make_unsigned_stx_transfer(
    *,
    recipient: str,
    amount: int,
    nonce: int,
    fee: int = 0,
    memo: str = "",
    network: StacksNetwork = MAINNET,
    anchor_mode: AnchorMode = AnchorMode.ANY,
) -> UnsignedTransaction:
    return UnsignedTransaction(
        auth=_unsigned_auth(nonce, fee),
        payload=TokenTransferPayload(principal_cv(recipient), amount, memo),
        network=network,
        anchor_mode=anchor_mode,
    )


def make_unsigned_contract_call(
    *,
    contract_address: str,
    contract_name: str,
    function_name: str,
    function_args: Iterable[ClarityValue] = (),
    nonce: int,
    fee: int = 0,
    network: StacksNetwork = MAINNET,
    anchor_mode: AnchorMode = AnchorMode.ANY,
    post_condition_mode: PostConditionMode = PostConditionMode.DENY,
) -> UnsignedTransaction:
    return UnsignedTransaction(
        auth=_unsigned_auth(nonce, fee),
        payload=ContractCallPayload(
            contract_address, contract_name, function_name, tuple(function_args)
        ),
        network=network,
        anchor_mode=anchor_mode,
        post_condition_mode=post_condition_mode,
    )


def make_unsigned_contract_deploy(
    *,
    contract_name: str,
    code_body: str,
    nonce: int,
    fee: int = 0,
    clarity_version: Optional[int] = 2,
    network: StacksNetwork = MAINNET,
    anchor_mode: AnchorMode = AnchorMode.ANY,
    post_condition_mode: PostConditionMode = PostConditionMode.DENY,
) -> UnsignedTransaction:
    return UnsignedTransaction(
        auth=_unsigned_auth(nonce, fee),
        payload=SmartContractPayload(contract_name, code_body, clarity_version),
        network=network,
        anchor_mode=anchor_mode,
        post_condition_mode=post_condition_mode,
    )
