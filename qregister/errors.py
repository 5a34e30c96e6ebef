"""
Simulator Exceptions
====================

Every failure raised by the simulation core derives from SimulatorError.

Validation failures (InvalidArgumentError, InvalidTopologyError,
CapacityExceededError, InvalidGateError) are raised before any amplitude is
touched. Invariant failures (DegenerateStateError, NormalizationError) mean
the session is corrupt and must be discarded.
"""

from typing import Optional


class SimulatorError(Exception):
    """Base class for all register simulator errors."""
    pass


class InvalidArgumentError(SimulatorError, ValueError):
    """Raised for a bad register size, step count or qubit index."""
    pass


class InvalidTopologyError(InvalidArgumentError):
    """Raised when topology dimensions do not fit the register."""
    pass


class CapacityExceededError(SimulatorError):
    """Raised when 2^n amplitudes exceed the configured ceiling."""
    pass


class InvalidGateError(SimulatorError, ValueError):
    """Raised for a malformed gate (control == target, non 2x2 matrix)."""
    pass


class DegenerateStateError(SimulatorError):
    """Raised when a measurement leaves no probability mass to renormalize."""
    pass


class NormalizationError(SimulatorError):
    """Raised when the total probability drifts beyond tolerance."""
    pass


class SimulationError(SimulatorError):
    """
    Wraps a failure inside an orchestrated run with its context.

    Attributes:
        step: Evolution step (1-based) or None outside the evolution loop
        operation: Name of the phase or gate that failed
    """

    def __init__(self, message: str,
                 step: Optional[int] = None,
                 operation: Optional[str] = None):
        self.step = step
        self.operation = operation
        context = []
        if step is not None:
            context.append(f"step={step}")
        if operation:
            context.append(f"op={operation}")
        if context:
            message = f"{message} [{', '.join(context)}]"
        super().__init__(message)


class SimulationCancelledError(SimulationError):
    """Raised when a cooperative cancellation check fires between steps."""
    pass
