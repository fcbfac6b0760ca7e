"""Simulation engine implementations."""

from .metropolis import (
    K_BOLTZMANN,
    MetropolisEngine,
    RunSummary,
    StepOutcome,
    metropolis_accept,
)
from .reporters import (
    CallbackReporter,
    EnergyReporter,
    Reporter,
    ReporterGroup,
    StateFileReporter,
    StatusReporter,
)

__all__ = [
    "K_BOLTZMANN",
    "MetropolisEngine",
    "RunSummary",
    "StepOutcome",
    "metropolis_accept",
    "Reporter",
    "ReporterGroup",
    "StatusReporter",
    "StateFileReporter",
    "CallbackReporter",
    "EnergyReporter",
]
