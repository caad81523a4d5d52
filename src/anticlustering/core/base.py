from __future__ import annotations          # <- future-proof typing
from abc import ABC, abstractmethod
import logging
import numpy as np

from ._config import BaseConfig, Status
from .exceptions import InvalidInputError
from ..metrics.dissimilarity_matrix import to_matrix

_LOG = logging.getLogger(__name__)


class AntiCluster(ABC):
    """
    Common interface for all anticlustering solvers.

    A solver is built from a config, fitted on a feature table *X* or a
    dissimilarity matrix *D*, and then exposes the sklearn-style results
    ``labels_``, ``score_`` (objective value of ``labels_``), ``status_``,
    ``runtime_`` (seconds) and ``gap_`` (relative MIP gap, exact solvers only).
    """

    def __init__(self, config: BaseConfig):
        self.config     : BaseConfig                   = config
        self._labels    : np.ndarray       | None      = None
        self._score     : float            | None      = None
        self._runtime   : float            | None      = None
        self._status    : Status           | None      = None
        self._gap       : float            | None      = None

    @abstractmethod
    def fit(self, X: np.ndarray | None = None, *, D: np.ndarray | None = None):
        """
        Compute the partition in-place.  Either *X* **or** a
        pre-computed distance matrix *D* must be supplied.
        """
        ...

    def fit_predict(self, *args, **kwargs) -> np.ndarray:
        self.fit(*args, **kwargs)
        return self.labels_

    def _fitted(self, value):
        if value is None:
            raise RuntimeError("Call `.fit()` first!")
        return value

    # ____________ Properties for easy access ____________
    @property
    def labels_(self) -> np.ndarray:
        return self._fitted(self._labels)

    @property
    def score_(self) -> float:
        return self._fitted(self._score)

    @property
    def runtime_(self) -> float:
        return self._fitted(self._runtime)

    @property
    def status_(self) -> str:
        """``"optimal"``, ``"timeout"`` or ``"heuristic"``."""
        return self._fitted(self._status).value

    @property
    def gap_(self) -> float | None:
        """Relative optimality gap reported by an exact solver, otherwise None."""
        return self._gap

    @property
    def group_sizes_(self) -> np.ndarray:
        """Number of elements per group of ``labels_``."""
        return np.bincount(self.labels_, minlength=self.config.n_clusters)

    # ------------ internal helpers (for subclasses) ------------------- #
    @staticmethod
    def _resolve_data(
        X: np.ndarray | None,
        D: np.ndarray | None,
    ) -> tuple[np.ndarray, bool]:
        """
        Return ``(matrix, is_distance)`` from the *X* / *D* arguments of
        :meth:`fit`. *D* takes precedence and must be a valid distance matrix;
        *X* may be either a feature table or a distance matrix.
        """
        if X is None and D is None:
            raise InvalidInputError("Either X or D must be provided.")
        if D is not None:
            mat, is_distance = to_matrix(D)
            if not is_distance:
                raise InvalidInputError(
                    "D must be a square, symmetric, non-negative matrix with zero diagonal."
                )
            return mat, True
        return to_matrix(X)

    def _set_labels(self, labels: np.ndarray):
        """Store a 1-D vector of length *N* with group indices 0…K-1."""
        _LOG.debug("Labels set to %s", labels)

        if labels.ndim != 1:
            raise ValueError("labels must be a 1-D array")
        if not np.issubdtype(labels.dtype, np.integer):
            raise TypeError("labels must contain integers")

        low, high = labels.min(initial=0), labels.max(initial=-1)
        if low < 0 or high >= self.config.n_clusters:
            raise ValueError("labels outside the expected 0…K-1 range. "
                             f"Values range: {low}...{high}")
        self._labels = labels

    def _set_score(self, score: float):
        if not isinstance(score, (int, float)):
            raise TypeError("score must be numeric")
        self._score = float(score)

    def _set_runtime(self, runtime: float):
        if not isinstance(runtime, (int, float)):
            raise TypeError("runtime must be numeric")
        self._runtime = float(runtime)

    def _set_status(
            self,
            status  : Status | str,
            gap     : float | None = None
            ):
        if not isinstance(status, Status):
            status = Status.from_string(status)
        self._status = status
        self._gap = None if gap is None else float(gap)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        if self._labels is None:
            return f"{cls}(K={self.config.n_clusters}, unfitted)"
        return f"{cls}(K={self.config.n_clusters}, status={self.status_}, score={self._score:.4f})"


__all__ = [
    "BaseConfig",
    "AntiCluster",
]
