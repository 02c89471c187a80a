# src/coopcache/errors.py
"""Exception types raised by the simulator."""


class SimulationError(Exception):
    """Base class for simulator errors."""


class ConfigError(SimulationError):
    """Invalid configuration value (unknown formula/policy name, bad window)."""


class OracleFailure(SimulationError):
    """The clustering oracle failed to fit or predict. Fatal for the run."""


class PeriodStateError(SimulationError):
    """A period was driven through an illegal state transition."""
