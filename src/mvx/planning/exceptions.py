"""Exceptions raised while building plans."""


class PlanValidationError(Exception):
    """Raised when a plan cannot be constructed (bad options, same paths)."""
