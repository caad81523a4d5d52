from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Union
import numpy as np

from .exceptions import InvalidInputError


@dataclass(slots=True)
class BaseConfig:
    """Generic knobs that *any* anticlustering solver may use.

    Concrete subclasses extend this dataclass with solver specific fields
    (see :class:`ExchangeConfig` and :class:`ILPConfig`).
    """
    n_clusters: int
    random_state: Optional[int] = None

    def validate(self, n_items: int) -> None:
        if self.n_clusters <= 1:
            raise InvalidInputError(f"n_clusters must be >= 2, got {self.n_clusters}")
        if self.n_clusters > n_items:
            raise InvalidInputError(
                f"n_clusters={self.n_clusters} exceeds the number of items N={n_items}"
            )


@dataclass(slots=True)
class ExchangeConfig(BaseConfig):
    """
    Tunable parameters for :class:`ExchangeAntiCluster`. Inherits from :class:`BaseConfig`.

    Notes
    -----
    * ``method`` is ``"exchange"`` (one pass over all elements) or
      ``"local-maximum"`` (passes until no swap improves the objective).
    * ``initial_labels`` is an optional length-N assignment; it fixes both
      K and the group sizes (``n_clusters`` is then overwritten).
    * ``categories`` may hold one or several categorical variables, they
      are merged into a single constraint partition.
    * ``repetitions`` restarts run from independent random assignments and
      the best result is kept; ``n_jobs > 1`` runs them in threads.
    """
    n_clusters      : int                   = 2
    objective       : Union[str, Callable[..., float]] = "diversity"
    method          : str                   = "exchange"
    preclustering   : bool                  = False
    categories      : Optional[Any]         = None
    initial_labels  : Optional[np.ndarray]  = None
    repetitions     : int                   = 1
    n_jobs          : int                   = 1
    tol             : float                 = 1e-10
    max_passes      : Optional[int]         = None  # guard for "local-maximum"

    def validate(self, n_items: int) -> None:
        if self.initial_labels is None:
            BaseConfig.validate(self, n_items)
        elif len(self.initial_labels) != n_items:
            raise InvalidInputError(
                f"initial assignment has length {len(self.initial_labels)}, expected N={n_items}"
            )
        elif len(np.unique(self.initial_labels)) < 2:
            raise InvalidInputError("initial assignment must contain at least 2 distinct groups")
        if self.method not in ("exchange", "local-maximum"):
            raise InvalidInputError(
                f"Unknown method '{self.method}'. Available: ['exchange', 'local-maximum']"
            )
        if int(self.repetitions) != self.repetitions or self.repetitions < 1:
            raise InvalidInputError(f"repetitions must be a positive integer, got {self.repetitions}")
        if self.max_passes is not None and self.max_passes < 1:
            raise InvalidInputError(f"max_passes must be >= 1, got {self.max_passes}")


@dataclass(slots=True)
class ILPConfig(BaseConfig):
    """
    Tunable parameters for :class:`ILPAntiCluster`. Inherits from :class:`BaseConfig`.

    Notes
    -----
    * ``solver_name`` is any MILP solver reachable through pyomo
      (``glpk``, ``cbc``, ``highs``, ``gurobi``, ``cplex`` ...).
    * ``time_limit`` is interpreted in *seconds* and forwarded to the
      underlying MIP solver if supported.
    * ``warm_start`` may come from a fast heuristic such as the exchange
      algorithm; it should be a 1-D integer array of length *N* containing group
      labels *(0 ... K-1)*.
    """

    n_clusters      : int                   = 2  # number of clusters (K)
    solver_name     : str                   = "glpk"
    max_n           : Optional[int]         = None  # max number of items (N) to solve
    time_limit      : Optional[int]         = None
    mip_gap         : Optional[float]       = None  # relative
    warm_start      : Optional[np.ndarray]  = None
    preclustering   : bool                  = False  # whether to use preclustering
    verbose         : bool                  = False  # print solver output

    # guard rails ------------------------------------------------------------

    def validate(self, n_items: int) -> None:
        BaseConfig.validate(self, n_items)
        if n_items % self.n_clusters:
            raise InvalidInputError(
                f"Number of items {n_items} not divisible by K={self.n_clusters}."
            )
        if self.max_n is not None and n_items > self.max_n:
            raise InvalidInputError(
                f"Problem too large for the exact ILP (N={n_items} > {self.max_n})."
            )
        if self.warm_start is not None and len(self.warm_start) != n_items:
            raise InvalidInputError("Warm-start labels length mismatch")



class Status(str, Enum):
    """Solver status codes used across the anticlustering package."""

    optimal   = "optimal"
    timeout   = "timeout"
    heuristic = "heuristic"

    # -------- convenience helpers ------------------------------------
    @classmethod
    def from_string(cls, value: str) -> "Status":
        """Coerce an arbitrary string into a Status enum (raises on unknown)."""
        try:
            return cls(value)
        except ValueError as exc:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown status '{value}'. Valid choices: {valid}") from exc

    @classmethod
    def choices(cls) -> list[str]:
        """Return the plain-string choices."""
        return [m.value for m in cls]
