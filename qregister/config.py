"""
Simulator Configuration
=======================

Constants and runtime settings for the register simulator.

Settings are resolved in priority order:
    1. Values passed explicitly to SimulatorConfig.load()
    2. QREGISTER_* environment variables
    3. qregister.json in the search directory or current directory
    4. SimulatorConstants defaults
"""

import os
import json
import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, Mapping, Optional


logger = logging.getLogger(__name__)


# =============================================================================
# SIMULATOR CONSTANTS
# =============================================================================

class SimulatorConstants:
    """
    Fixed parameters of the dense state-vector engine.

    Memory:
        Each amplitude is complex128 (16 bytes), so n qubits cost 2^n * 16 B.
        - 20 qubits: 16 MiB
        - 24 qubits: 256 MiB (default ceiling)
        - 30 qubits: 16 GiB (hard ceiling, never raised by configuration)
    """

    DEFAULT_MAX_QUBITS: int = 24
    HARD_MAX_QUBITS: int = 30

    # Relative tolerance on the total probability
    TOLERANCE: float = 1e-9

    # Interaction angle at step t is 2*pi*t / ANGLE_DIVISOR
    ANGLE_DIVISOR: int = 10

    # Shots for repeated-trial sampling
    SHOTS: int = 4096

    CONFIG_FILENAME: str = "qregister.json"
    ENV_PREFIX: str = "QREGISTER_"


# =============================================================================
# RUNTIME CONFIG
# =============================================================================

@dataclass
class SimulatorConfig:
    """
    Runtime settings for a simulation session.

    Attributes:
        max_qubits: Largest register StateVector.initialize accepts
        tolerance: Allowed drift of the total probability from 1
        seed: Seed for the session generator (None = fresh entropy)
        shots: Default number of repeated trials
        log_level: Logging level name applied by configure_logging
    """
    max_qubits: int = SimulatorConstants.DEFAULT_MAX_QUBITS
    tolerance: float = SimulatorConstants.TOLERANCE
    seed: Optional[int] = None
    shots: int = SimulatorConstants.SHOTS
    log_level: str = "INFO"

    def __post_init__(self):
        if not 1 <= self.max_qubits <= SimulatorConstants.HARD_MAX_QUBITS:
            raise ValueError(
                f"max_qubits must be in [1, {SimulatorConstants.HARD_MAX_QUBITS}], "
                f"got {self.max_qubits}"
            )
        if self.tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance}")
        if self.shots < 1:
            raise ValueError(f"shots must be positive, got {self.shots}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SimulatorConfig":
        """Build a config from a dict, ignoring unknown keys."""
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        return cls(**known)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        """
        Read QREGISTER_* variables.

        Returns:
            Dict of the settings found (possibly empty)
        """
        environ = os.environ if environ is None else environ
        casts = {
            "max_qubits": int,
            "tolerance": float,
            "seed": int,
            "shots": int,
            "log_level": str,
        }
        found = {}
        for name, cast in casts.items():
            raw = environ.get(SimulatorConstants.ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                found[name] = cast(raw)
        return found

    @classmethod
    def load(cls,
             search_dir: Optional[str] = None,
             environ: Optional[Mapping[str, str]] = None,
             **overrides: Any) -> "SimulatorConfig":
        """
        Resolve the config from file, environment and explicit overrides.

        Args:
            search_dir: Directory searched for qregister.json before the cwd
            environ: Environment mapping (default: os.environ)
            overrides: Explicit settings, highest priority

        Returns:
            The resolved SimulatorConfig
        """
        settings: Dict[str, Any] = {}

        search_paths = []
        if search_dir:
            search_paths.append(os.path.join(search_dir, SimulatorConstants.CONFIG_FILENAME))
        search_paths.append(os.path.join(os.getcwd(), SimulatorConstants.CONFIG_FILENAME))

        for path in search_paths:
            if os.path.exists(path):
                with open(path, 'r') as f:
                    settings.update(json.load(f))
                logger.debug(f"Loaded config from {path}")
                break

        settings.update(cls.from_env(environ))
        settings.update({k: v for k, v in overrides.items() if v is not None})

        return cls.from_mapping(settings)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def configure_logging(level: str = "INFO") -> None:
    """Apply a log level to the qregister logger hierarchy."""
    logging.getLogger("qregister").setLevel(level.upper())
