"""
Exceptions raised by checkname.

Probe failures are never raised; they travel on ProbeResult. Everything here
is for conditions the caller has to act on.
"""


class CheckNameError(Exception):
    """Base exception for checkname."""
    pass


class ConfigurationError(CheckNameError, ValueError):
    """Unknown profile or probe name, or an invalid option value."""
    pass


class CollaboratorError(CheckNameError):
    """A generation or scoring call failed or returned something unusable."""
    pass


class GenerationError(CollaboratorError):
    """Name generation failed."""
    pass


class ScoringError(CollaboratorError):
    """Name scoring failed."""
    pass


class StoreError(CheckNameError):
    """Persistence layer failure."""
    pass
