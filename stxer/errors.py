"""Error types raised while building and submitting simulations."""

from __future__ import annotations


class SimulationError(RuntimeError):
    """Base class for every fatal simulation error."""


class ConfigurationError(SimulationError, ValueError):
    """Raised when a step is added with incomplete or invalid parameters."""


class BlockResolutionError(SimulationError):
    """Raised when the target block cannot be resolved consistently."""


class NetworkError(SimulationError):
    """Raised when a node query or the submission fails at the transport level."""


class SubmissionError(SimulationError):
    """Raised when the simulation service answers with an unexpected body."""
