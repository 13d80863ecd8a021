"""Client for the stxer simulation submission endpoint."""

from __future__ import annotations

import asyncio
import json
from typing import Optional

import aiohttp

from stxer.config import HTTP_TIMEOUT_SEC, STXER_API_URL, STXER_WEB_URL
from stxer.errors import NetworkError, SubmissionError
from stxer.logger import StructuredLogger, log_error

from stxer.adapters.http import HTTPAdapter

LOG = StructuredLogger("simulation_adapter")


def parse_submission_response(text: str) -> str:
    """Return the simulation id from the service's response body."""

    if not text.startswith("{"):
        raise SubmissionError(f"failed to submit simulation: {text}")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SubmissionError(f"failed to submit simulation: {text}") from exc
    sim_id = data.get("id") if isinstance(data, dict) else None
    if not isinstance(sim_id, str):
        raise SubmissionError(f"failed to submit simulation: {text}")
    return sim_id


def simulation_url(sim_id: str, network: str = "mainnet") -> str:
    return f"{STXER_WEB_URL.rstrip('/')}/{network}/{sim_id}"


class SimulationAdapter(HTTPAdapter):
    """POST an encoded batch and return the simulation id. No retries."""

    module = "simulation_adapter"

    def __init__(
        self,
        api_url: str = STXER_API_URL,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = HTTP_TIMEOUT_SEC,
    ) -> None:
        super().__init__(api_url, session=session, timeout=timeout)

    async def submit(self, payload: bytes) -> str:
        try:
            async with self._session_scope() as session:
                async with session.post(self.api_url, data=payload, timeout=self.timeout) as resp:
                    text = await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            log_error(self.module, str(exc) or type(exc).__name__, event="submit_fail")
            raise NetworkError(f"failed to submit simulation: {exc!r}") from exc
        try:
            sim_id = parse_submission_response(text)
        except SubmissionError as exc:
            LOG.log("submit_rejected", risk_level="high", error=str(exc), size=len(payload))
            raise
        LOG.log("submitted", sim_id=sim_id, size=len(payload))
        return sim_id
