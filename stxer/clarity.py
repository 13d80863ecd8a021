"""Clarity value model and its canonical consensus serialization.

Module purpose and system role:
    - Typed argument values for contract calls.
    - Serialization used for transaction payloads and for the simulation
      envelope, which wraps every batch entry in a Clarity tuple.

Every value serializes as a one byte type id followed by a type specific
body. Lengths and counts are big-endian ``u32`` except for principal
contract names and tuple keys, which carry a single length byte.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Mapping, Tuple

from stxer.c32 import c32_address_decode

MAX_U128 = (1 << 128) - 1
MIN_I128 = -(1 << 127)
MAX_I128 = (1 << 127) - 1
MAX_NAME_LENGTH = 128


class ClarityType(IntEnum):
    INT = 0x00
    UINT = 0x01
    BUFFER = 0x02
    BOOL_TRUE = 0x03
    BOOL_FALSE = 0x04
    PRINCIPAL_STANDARD = 0x05
    PRINCIPAL_CONTRACT = 0x06
    RESPONSE_OK = 0x07
    RESPONSE_ERR = 0x08
    OPTIONAL_NONE = 0x09
    OPTIONAL_SOME = 0x0A
    LIST = 0x0B
    TUPLE = 0x0C
    STRING_ASCII = 0x0D
    STRING_UTF8 = 0x0E


class ClarityValue:
    """Base class for all Clarity values."""

    type_id: ClarityType

    def body(self) -> bytes:
        return b""

    def serialize(self) -> bytes:
        return bytes([self.type_id]) + self.body()


def _u32(value: int) -> bytes:
    return struct.pack(">I", value)


def _lp_name(name: str) -> bytes:
    data = name.encode("ascii")
    if not data or len(data) > MAX_NAME_LENGTH:
        raise ValueError(f"Invalid clarity name {name!r}")
    return bytes([len(data)]) + data


@dataclass(frozen=True)
class IntCV(ClarityValue):
    value: int
    type_id = ClarityType.INT

    def __post_init__(self) -> None:
        if not MIN_I128 <= self.value <= MAX_I128:
            raise ValueError(f"int out of range: {self.value}")

    def body(self) -> bytes:
        return self.value.to_bytes(16, "big", signed=True)


@dataclass(frozen=True)
class UIntCV(ClarityValue):
    value: int
    type_id = ClarityType.UINT

    def __post_init__(self) -> None:
        if not 0 <= self.value <= MAX_U128:
            raise ValueError(f"uint out of range: {self.value}")

    def body(self) -> bytes:
        return self.value.to_bytes(16, "big")


@dataclass(frozen=True)
class BufferCV(ClarityValue):
    data: bytes
    type_id = ClarityType.BUFFER

    def body(self) -> bytes:
        return _u32(len(self.data)) + bytes(self.data)


@dataclass(frozen=True)
class BoolCV(ClarityValue):
    value: bool

    @property
    def type_id(self) -> ClarityType:  # type: ignore[override]
        return ClarityType.BOOL_TRUE if self.value else ClarityType.BOOL_FALSE


@dataclass(frozen=True)
class StandardPrincipalCV(ClarityValue):
    version: int
    hash160: bytes
    type_id = ClarityType.PRINCIPAL_STANDARD

    def body(self) -> bytes:
        return bytes([self.version]) + bytes(self.hash160)


@dataclass(frozen=True)
class ContractPrincipalCV(ClarityValue):
    version: int
    hash160: bytes
    contract_name: str
    type_id = ClarityType.PRINCIPAL_CONTRACT

    def body(self) -> bytes:
        return bytes([self.version]) + bytes(self.hash160) + _lp_name(self.contract_name)


@dataclass(frozen=True)
class ResponseOkCV(ClarityValue):
    value: ClarityValue
    type_id = ClarityType.RESPONSE_OK

    def body(self) -> bytes:
        return self.value.serialize()


@dataclass(frozen=True)
class ResponseErrCV(ClarityValue):
    value: ClarityValue
    type_id = ClarityType.RESPONSE_ERR

    def body(self) -> bytes:
        return self.value.serialize()


@dataclass(frozen=True)
class NoneCV(ClarityValue):
    type_id = ClarityType.OPTIONAL_NONE


@dataclass(frozen=True)
class SomeCV(ClarityValue):
    value: ClarityValue
    type_id = ClarityType.OPTIONAL_SOME

    def body(self) -> bytes:
        return self.value.serialize()


@dataclass(frozen=True)
class ListCV(ClarityValue):
    items: Tuple[ClarityValue, ...]
    type_id = ClarityType.LIST

    def body(self) -> bytes:
        return _u32(len(self.items)) + b"".join(item.serialize() for item in self.items)


@dataclass(frozen=True)
class TupleCV(ClarityValue):
    data: Tuple[Tuple[str, ClarityValue], ...]
    type_id = ClarityType.TUPLE

    def body(self) -> bytes:
        # keys are serialized in lexicographic order
        entries = sorted(self.data, key=lambda kv: kv[0])
        out = [_u32(len(entries))]
        for key, value in entries:
            out.append(_lp_name(key))
            out.append(value.serialize())
        return b"".join(out)


@dataclass(frozen=True)
class StringAsciiCV(ClarityValue):
    text: str
    type_id = ClarityType.STRING_ASCII

    def body(self) -> bytes:
        try:
            data = self.text.encode("ascii")
        except UnicodeEncodeError as exc:
            raise ValueError("string-ascii value contains non-ascii characters") from exc
        return _u32(len(data)) + data


@dataclass(frozen=True)
class StringUtf8CV(ClarityValue):
    text: str
    type_id = ClarityType.STRING_UTF8

    def body(self) -> bytes:
        data = self.text.encode("utf-8")
        return _u32(len(data)) + data


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------
def int_cv(value: int) -> IntCV:
    return IntCV(int(value))


def uint_cv(value: int) -> UIntCV:
    return UIntCV(int(value))


def buffer_cv(data: bytes) -> BufferCV:
    return BufferCV(bytes(data))


def bool_cv(value: bool) -> BoolCV:
    return BoolCV(bool(value))


def true_cv() -> BoolCV:
    return BoolCV(True)


def false_cv() -> BoolCV:
    return BoolCV(False)


def none_cv() -> NoneCV:
    return NoneCV()


def some_cv(value: ClarityValue) -> SomeCV:
    return SomeCV(value)


def response_ok_cv(value: ClarityValue) -> ResponseOkCV:
    return ResponseOkCV(value)


def response_err_cv(value: ClarityValue) -> ResponseErrCV:
    return ResponseErrCV(value)


def list_cv(items: Iterable[ClarityValue]) -> ListCV:
    return ListCV(tuple(items))


def tuple_cv(data: Mapping[str, ClarityValue]) -> TupleCV:
    return TupleCV(tuple(data.items()))


def string_ascii_cv(text: str) -> StringAsciiCV:
    return StringAsciiCV(text)


def string_utf8_cv(text: str) -> StringUtf8CV:
    return StringUtf8CV(text)


def standard_principal_cv(address: str) -> StandardPrincipalCV:
    version, hash160 = c32_address_decode(address)
    return StandardPrincipalCV(version, hash160)


def contract_principal_cv(address: str, contract_name: str) -> ContractPrincipalCV:
    version, hash160 = c32_address_decode(address)
    return ContractPrincipalCV(version, hash160, contract_name)


def principal_cv(principal: str) -> StandardPrincipalCV | ContractPrincipalCV:
    """Parse ``address`` or ``address.contract-name``."""

    if "." in principal:
        address, name = principal.split(".", 1)
        return contract_principal_cv(address, name)
    return standard_principal_cv(principal)


def serialize_cv(value: ClarityValue) -> bytes:
    return value.serialize()

