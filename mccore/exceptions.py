"""Exception hierarchy for the Monte Carlo engine."""

from __future__ import annotations


class MCError(Exception):
    """Base class for all mccore errors."""


class BoxInitializationError(MCError, ValueError):
    """
    The simulation box cannot be constructed.

    This is a fatal precondition: no partial run is attempted.
    """


class ConfigurationError(BoxInitializationError):
    """Configuration file is missing, unreadable or inconsistent."""


class StateFileError(BoxInitializationError):
    """State file is unreadable, corrupted or of an unsupported version."""


class ConsistencyError(MCError, RuntimeError):
    """
    Internal invariant violation.

    Raised for a rollback without a pending move or a molecule index
    outside the box. Not expected in correct operation.
    """
