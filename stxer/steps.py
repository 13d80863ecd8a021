"""Simulation step variants queued by :class:`stxer.builder.SimulationBuilder`.

Each step is a frozen dataclass; ``Step`` is the closed union the
materializer dispatches on. Sender-bearing steps capture their sender when
they are created, so changing the builder's default sender later never
touches steps already queued.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from stxer.c32 import c32_address_decode
from stxer.clarity import ClarityValue
from stxer.errors import ConfigurationError


def split_contract_id(contract_id: str) -> Tuple[str, str]:
    """Split ``address.name`` into its address and contract name."""

    address, sep, name = contract_id.partition(".")
    if not sep or not address or not name:
        raise ConfigurationError(f"Invalid contract id {contract_id!r}, expected <address>.<name>")
    return address, name


def map_get_code(map_name: str, key: str) -> str:
    return f"(map-get {map_name} {key})"


def var_get_code(variable: str) -> str:
    return f"(var-get {variable})"


MAX_U64 = (1 << 64) - 1
MEMO_LENGTH = 34


def _check_amount(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_U64:
        raise ConfigurationError(f"{name} must be an integer in [0, 2**64), got {value!r}")


def _check_address(name: str, address: str) -> None:
    try:
        c32_address_decode(address)
    except (AttributeError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid {name} {address!r}: {exc}") from exc


@dataclass(frozen=True)
class TransferStep:
    """STX transfer of ``amount`` micro-STX from ``sender`` to ``recipient``."""

    recipient: str
    amount: int
    sender: str
    fee: int = 0
    memo: str = ""

    def __post_init__(self) -> None:
        _check_address("sender", self.sender)
        _check_address("recipient", self.recipient.partition(".")[0])
        _check_amount("amount", self.amount)
        _check_amount("fee", self.fee)
        if len(self.memo.encode("utf-8")) > MEMO_LENGTH:
            raise ConfigurationError(f"memo must be at most {MEMO_LENGTH} bytes")


@dataclass(frozen=True)
class ContractCallStep:
    contract_id: str
    function_name: str
    sender: str
    function_args: Tuple[ClarityValue, ...] = ()
    fee: int = 0

    def __post_init__(self) -> None:
        _check_address("sender", self.sender)
        _check_address("contract address", split_contract_id(self.contract_id)[0])
        _check_amount("fee", self.fee)


@dataclass(frozen=True)
class ContractDeployStep:
    contract_name: str
    source_code: str
    deployer: str
    fee: int = 0
    clarity_version: Optional[int] = 2

    def __post_init__(self) -> None:
        if not self.contract_name:
            raise ConfigurationError("contract_name must not be empty")
        _check_address("deployer", self.deployer)
        _check_amount("fee", self.fee)


@dataclass(frozen=True)
class EvalStep:
    """Read-only evaluation of ``code`` inside ``contract_id``; not a transaction."""

    contract_id: str
    code: str

    def __post_init__(self) -> None:
        _check_address("contract address", split_contract_id(self.contract_id)[0])


Step = Union[TransferStep, ContractCallStep, ContractDeployStep, EvalStep]
