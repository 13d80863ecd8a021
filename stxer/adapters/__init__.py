"""Adapters package for external APIs."""

from stxer.adapters.node_adapter import BlockReference, NodeAdapter
from stxer.adapters.simulation_adapter import SimulationAdapter, parse_submission_response, simulation_url

__all__ = [
    "BlockReference",
    "NodeAdapter",
    "SimulationAdapter",
    "parse_submission_response",
    "simulation_url",
]
