"""Build Stacks transaction batches and submit them to the stxer simulator."""

from stxer.builder import SimulationBuilder
from stxer.errors import (
    BlockResolutionError,
    ConfigurationError,
    NetworkError,
    SimulationError,
    SubmissionError,
)

__all__ = [
    "BlockResolutionError",
    "ConfigurationError",
    "NetworkError",
    "SimulationBuilder",
    "SimulationError",
    "SubmissionError",
]
