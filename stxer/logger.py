"""JSON-lines event log shared by the builder, tx engine and adapters.

Module purpose and system role:
    - One ``StructuredLogger`` per module; each event becomes one JSON line
      so a simulation run can be reconstructed afterwards.
    - Errors are additionally collected in a single error log.

Integration points and dependencies:
    - ``OPS_ALERT_WEBHOOK`` (comma separated) receives a ``requests`` POST for
      every error and every ``risk_level="high"`` event.
    - ``TRACE_ID`` tags every entry when no explicit trace id is given.

Simulation/test hooks:
    - ``register_hook`` lets tests observe entries as they are written.
    - ``LOG_DIR``, ``<MODULE>_LOG`` and ``ERROR_LOG_FILE`` are read on every
      write, so a test can point them at ``tmp_path``.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import requests

Hook = Callable[[Dict[str, Any]], None]

_STD_LOG = logging.getLogger("stxer")
_HOOKS: List[Hook] = []


def make_json_safe(value: Any) -> Any:
    """Return ``value`` with anything JSON can't encode replaced by ``<ClassName>``."""

    if isinstance(value, dict):
        return {str(k): make_json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [make_json_safe(v) for v in value]
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return f"<{type(value).__name__}>"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _context(module: str, block: Any, trace_id: Optional[str]) -> Dict[str, Any]:
    return {
        "timestamp": _now(),
        "module": module,
        "block": "" if block is None else block,
        "trace_id": os.getenv("TRACE_ID", "") if trace_id is None else trace_id,
    }


def _write_line(path: Path, entry: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a") as fh:
        fh.write(json.dumps(make_json_safe(entry)) + "\n")


def log_error(
    module: str,
    error: str,
    *,
    block: int | str | None = None,
    trace_id: str | None = None,
    **extra: Any,
) -> None:
    """Append ``error`` to ``$ERROR_LOG_FILE`` (``logs/errors.log`` by default)."""

    entry = _context(module, block, trace_id)
    entry["error"] = error
    entry.update(extra)
    _write_line(Path(os.getenv("ERROR_LOG_FILE", "logs/errors.log")), entry)


def register_hook(func: Hook) -> None:
    """Register ``func`` to receive every log entry."""
    _HOOKS.append(func)


def unregister_hook(func: Hook) -> None:
    if func in _HOOKS:
        _HOOKS.remove(func)


def _send_alert(message: str) -> None:
    """Post ``message`` to each alert webhook.

    The POST is synchronous, so an alert raised from inside ``run()`` holds
    the event loop for up to five seconds per configured webhook.
    """
    for url in filter(None, os.getenv("OPS_ALERT_WEBHOOK", "").split(",")):
        try:  # pragma: no cover - network
            requests.post(url, json={"text": message}, timeout=5)
        except requests.RequestException as exc:
            _STD_LOG.warning("alert webhook %s failed: %s", url, exc)


class StructuredLogger:
    """Event log for one module."""

    def __init__(self, module: str, log_file: str | None = None) -> None:
        self.module = module
        self._log_file = log_file

    @property
    def path(self) -> Path:
        if self._log_file is not None:
            return Path(self._log_file)
        default = Path(os.getenv("LOG_DIR", "logs")) / f"{self.module}.json"
        return Path(os.getenv(f"{self.module.upper()}_LOG", str(default)))

    def _broadcast(self, entry: Dict[str, Any]) -> None:
        for hook in list(_HOOKS):
            try:
                hook(entry)
            except Exception as exc:
                # a broken hook is recorded but never stops the caller
                log_error(
                    self.module,
                    f"hook error: {exc}",
                    event="hook_fail",
                    block=entry["block"],
                    trace_id=entry["trace_id"],
                )

    def log(
        self,
        event: str,
        *,
        risk_level: str = "",
        block: int | str | None = None,
        error: str | None = None,
        trace_id: str | None = None,
        **extra: Any,
    ) -> None:
        """Write ``event`` and fan it out to hooks, the error log and alerts."""

        entry = _context(self.module, block, trace_id)
        entry.update(event=event, risk_level=risk_level, error=error, **extra)
        _write_line(self.path, entry)
        self._broadcast(entry)
        if error:
            log_error(
                self.module,
                error,
                event=event,
                risk_level=risk_level,
                block=entry["block"],
                trace_id=entry["trace_id"],
            )
        if error or risk_level == "high":
            _send_alert(f"{self.module}:{event}:{error or ''}")

    # verbose per-item events go through ``trace`` so they are easy to grep
    trace = log
