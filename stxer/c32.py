"""c32check address codec used for Stacks principals.

A Stacks address is ``S`` + one c32 character for the version + the c32
encoding of ``hash160 || checksum`` where the checksum is the first four
bytes of ``sha256(sha256(version || hash160))``.
"""

from __future__ import annotations

import hashlib
from typing import Tuple

C32_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

# address versions
MAINNET_SINGLE_SIG = 22
MAINNET_MULTI_SIG = 20
TESTNET_SINGLE_SIG = 26
TESTNET_MULTI_SIG = 21


def _normalize(text: str) -> str:
    return text.upper().replace("O", "0").replace("L", "1").replace("I", "1")


def c32_checksum(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()[:4]


def c32_encode(data: bytes) -> str:
    value = int.from_bytes(data, "big")
    digits = []
    while value:
        value, rem = divmod(value, 32)
        digits.append(C32_ALPHABET[rem])
    leading = len(data) - len(data.lstrip(b"\x00"))
    return C32_ALPHABET[0] * leading + "".join(reversed(digits))


def c32_decode(text: str) -> bytes:
    text = _normalize(text)
    value = 0
    for ch in text:
        idx = C32_ALPHABET.find(ch)
        if idx < 0:
            raise ValueError(f"Invalid c32 character {ch!r}")
        value = value * 32 + idx
    leading = len(text) - len(text.lstrip(C32_ALPHABET[0]))
    body = value.to_bytes((value.bit_length() + 7) // 8, "big") if value else b""
    return b"\x00" * leading + body


def c32_address(version: int, hash160: bytes) -> str:
    """Encode ``hash160`` under ``version`` as a Stacks address."""

    if not 0 <= version < 32:
        raise ValueError("Invalid c32 address version")
    if len(hash160) != 20:
        raise ValueError("hash160 must be 20 bytes")
    checksum = c32_checksum(bytes([version]) + hash160)
    return "S" + C32_ALPHABET[version] + c32_encode(hash160 + checksum)


def c32_address_decode(address: str) -> Tuple[int, bytes]:
    """Return ``(version, hash160)`` for a Stacks address."""

    if len(address) <= 5:
        raise ValueError("Invalid c32 address: invalid length")
    if address[0] != "S":
        raise ValueError('Invalid c32 address: must start with "S"')
    data = _normalize(address[1:])
    version = C32_ALPHABET.find(data[0])
    if version < 0:
        raise ValueError(f"Invalid c32 address version {data[0]!r}")
    decoded = c32_decode(data[1:])
    payload, checksum = decoded[:-4], decoded[-4:]
    if c32_checksum(bytes([version]) + payload) != checksum:
        raise ValueError("Invalid c32check string: checksum mismatch")
    if len(payload) != 20:
        raise ValueError("Invalid c32 address: hash160 must be 20 bytes")
    return version, payload
