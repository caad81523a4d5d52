"""Exception hierarchy raised by the anticlustering solvers."""


class AnticlusteringError(Exception):
    """Base class for all errors raised by this package."""


class InvalidInputError(AnticlusteringError, ValueError):
    """Malformed data, group count, assignment or category input.

    Raised before any optimisation state is built.
    """


class ObjectiveMismatchError(AnticlusteringError, ValueError):
    """The requested objective cannot be optimised by the requested method.

    Only the diversity objective is linear in the same-group indicators and
    can be handed to the exact ILP path.
    """


class SolverUnavailableError(AnticlusteringError, RuntimeError):
    """No external MILP solver could be reached (configuration error)."""


__all__ = [
    "AnticlusteringError",
    "InvalidInputError",
    "ObjectiveMismatchError",
    "SolverUnavailableError",
]
