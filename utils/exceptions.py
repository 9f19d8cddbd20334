"""
Custom exception hierarchy for hostfit.

All project-specific exceptions inherit from HostFitError.
"""


class HostFitError(Exception):
    """Base exception for hostfit."""

    pass


class ConfigError(HostFitError):
    """Invalid or missing configuration."""

    pass
