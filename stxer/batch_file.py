"""Load a simulation batch description from YAML.

Example::

    block_height: 130818
    sender: SP1K1A1PMGW2ZJCNF46NWZWHG8TS1D23EGH1KNK60
    steps:
      - eval: {contract_id: SP000000000000000000002Q6VF78.pox, code: "(list block-height)"}
      - transfer: {recipient: SP212Y5JKN59YP3GYG07K3S8W5SSGE4KH6B5STXER, amount: 10000}
      - sender: SP212Y5JKN59YP3GYG07K3S8W5SSGE4KH6B5STXER
      - deploy: {contract_name: test, source_file: demo.clar, fee: 100}
      - call:
          contract_id: SP212Y5JKN59YP3GYG07K3S8W5SSGE4KH6B5STXER.test
          function_name: set-enabled
          function_args: [{bool: true}]
      - var_read: {contract_id: SP212Y5JKN59YP3GYG07K3S8W5SSGE4KH6B5STXER.test, variable: enabled}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, cast

import yaml

from stxer import clarity
from stxer.builder import SimulationBuilder
from stxer.errors import ConfigurationError


def load_config(path: str | Path) -> Dict[str, Any]:
    """Load YAML batch file from ``path``."""

    try:
        data = yaml.safe_load(Path(path).read_text())
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"{path}: cannot read batch file: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: batch file must be a mapping")
    return cast(Dict[str, Any], data)


def _strict_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected an integer, got {type(value).__name__}")
    return value


def _strict_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"expected true or false, got {type(value).__name__}")
    return value


def _list_arg(value: Any) -> clarity.ClarityValue:
    return clarity.list_cv(parse_arg(v) for v in value)


def _tuple_arg(value: Any) -> clarity.ClarityValue:
    return clarity.tuple_cv({str(k): parse_arg(v) for k, v in value.items()})


_ARG_PARSERS: Dict[str, Callable[[Any], clarity.ClarityValue]] = {
    "int": lambda v: clarity.int_cv(_strict_int(v)),
    "uint": lambda v: clarity.uint_cv(_strict_int(v)),
    "bool": lambda v: clarity.bool_cv(_strict_bool(v)),
    "principal": clarity.principal_cv,
    "ascii": clarity.string_ascii_cv,
    "utf8": clarity.string_utf8_cv,
    "buffer": lambda v: clarity.buffer_cv(bytes.fromhex(str(v).removeprefix("0x"))),
    "none": lambda _v: clarity.none_cv(),
    "some": lambda v: clarity.some_cv(parse_arg(v)),
    "ok": lambda v: clarity.response_ok_cv(parse_arg(v)),
    "err": lambda v: clarity.response_err_cv(parse_arg(v)),
    "list": _list_arg,
    "tuple": _tuple_arg,
}


def parse_arg(arg: Any) -> clarity.ClarityValue:
    """Convert a single-key mapping such as ``{uint: 5}`` to a Clarity value."""

    if not isinstance(arg, Mapping) or len(arg) != 1:
        raise ConfigurationError(f"Invalid function argument {arg!r}")
    kind, value = next(iter(arg.items()))
    parser = _ARG_PARSERS.get(str(kind))
    if parser is None:
        raise ConfigurationError(f"Unknown argument type {kind!r}")
    try:
        return parser(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid {kind} argument {value!r}: {exc}") from exc


def _source_code(params: Mapping[str, Any], base_dir: Path) -> str:
    if "source_code" in params:
        return str(params["source_code"])
    if "source_file" in params:
        source = base_dir / str(params["source_file"])
        try:
            return source.read_text()
        except OSError as exc:
            raise ConfigurationError(f"cannot read contract source {source}: {exc}") from exc
    raise ConfigurationError("deploy step needs source_code or source_file")


def _apply_step(builder: SimulationBuilder, kind: str, params: Any, base_dir: Path) -> None:
    if kind == "sender":
        builder.with_sender(str(params))
    elif kind == "transfer":
        builder.add_stx_transfer(
            params["recipient"],
            params["amount"],
            sender=params.get("sender"),
            fee=params.get("fee", 0),
            memo=str(params.get("memo", "")),
        )
    elif kind == "call":
        builder.add_contract_call(
            params["contract_id"],
            params["function_name"],
            [parse_arg(a) for a in params.get("function_args", [])],
            sender=params.get("sender"),
            fee=params.get("fee", 0),
        )
    elif kind == "deploy":
        builder.add_contract_deploy(
            params["contract_name"],
            _source_code(params, base_dir),
            deployer=params.get("deployer"),
            fee=params.get("fee", 0),
            clarity_version=params.get("clarity_version", 2),
        )
    elif kind == "eval":
        builder.add_eval_code(params["contract_id"], params["code"])
    elif kind == "map_read":
        builder.add_map_read(params["contract_id"], params["map"], params["key"])
    elif kind == "var_read":
        builder.add_var_read(params["contract_id"], params["variable"])
    else:
        raise ConfigurationError(f"Unknown step type {kind!r}")


def apply_steps(
    builder: SimulationBuilder, steps: List[Any], base_dir: Path = Path(".")
) -> SimulationBuilder:
    for raw in steps:
        if not isinstance(raw, Mapping) or len(raw) != 1:
            raise ConfigurationError(f"Invalid step {raw!r}")
        kind, params = next(iter(raw.items()))
        try:
            _apply_step(builder, str(kind), params, base_dir)
        except (KeyError, TypeError, AttributeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid {kind} step {params!r}: {exc}") from exc
    return builder


def load_batch(path: str | Path, builder: SimulationBuilder | None = None) -> SimulationBuilder:
    """Return a builder populated from the YAML batch file at ``path``."""

    path = Path(path)
    data = load_config(path)
    builder = builder or SimulationBuilder.new(network=data.get("network"))
    if data.get("block_height") is not None:
        builder.use_block_height(data["block_height"])
    if data.get("sender"):
        builder.with_sender(str(data["sender"]))
    return apply_steps(builder, list(data.get("steps") or []), path.parent)
