"""
Anticlustering objectives with incremental swap evaluation.

Every objective is a small immutable object wrapping read-only data. It can
be evaluated on a label vector (``objective(labels)``) and it hands out a
per-run :class:`DeltaTracker` that keeps the caches needed to score a
hypothetical swap of two elements without recomputing the whole objective:

* :class:`DiversityObjective` – sum of within-group distances; O(1) per swap
* :class:`VarianceObjective`  – k-means variance (and its ``kplus``
  extension); O(F) per swap
* :class:`CallableObjective`  – any ``fn(data, labels) -> float``; no delta
  support, the function is re-evaluated for every candidate swap

Objectives are shared read-only across repetitions; trackers are not.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Union
import logging

import numpy as np

from ..core.exceptions import InvalidInputError
from ..metrics.dissimilarity_matrix import (
    as_distances,
    diversity_objective,
    get_dissimilarity_matrix,
    kplus_features,
    variance_objective,
)

_LOG = logging.getLogger(__name__)

ObjectiveLike = Union[str, Callable[[np.ndarray, np.ndarray], float], "ObjectiveFunction"]


# ---------------------------------------------------------------------- #
# trackers (mutable, one per run)
# ---------------------------------------------------------------------- #
class DeltaTracker(ABC):
    """Mutable objective state bound to one label vector."""

    def __init__(self, labels: np.ndarray, n_clusters: int):
        self.labels     : np.ndarray = labels
        self.n_clusters : int        = n_clusters
        self.value      : float      = 0.0

    @abstractmethod
    def swap_deltas(self, i: int, candidates: np.ndarray) -> np.ndarray:
        """Objective change for swapping *i* with each element of *candidates*."""

    @abstractmethod
    def _update(self, i: int, j: int) -> None:
        """Update caches for a swap of *i* and *j* (labels not yet swapped)."""

    def swap(self, i: int, j: int, delta: float) -> None:
        """Commit the swap of *i* and *j* whose objective change is *delta*."""
        self._update(i, j)
        self.labels[i], self.labels[j] = self.labels[j], self.labels[i]
        self.value += float(delta)


class _DiversityTracker(DeltaTracker):
    def __init__(self, D: np.ndarray, labels: np.ndarray, n_clusters: int):
        super().__init__(labels, n_clusters)
        self.D = D
        # sums[i, g] = distance of element i to all members of group g
        self.sums = np.zeros((D.shape[0], n_clusters))
        for g in range(n_clusters):
            self.sums[:, g] = D[:, labels == g].sum(axis=1)
        idx = np.arange(D.shape[0])
        self.value = float(self.sums[idx, labels].sum() / 2)

    def swap_deltas(self, i, candidates):
        g = self.labels[i]
        h = self.labels[candidates]
        S, D = self.sums, self.D
        gain_i = S[i, h] - D[i, candidates] - S[i, g]
        gain_j = S[candidates, g] - D[candidates, i] - S[candidates, h]
        return gain_i + gain_j

    def _update(self, i, j):
        g, h = self.labels[i], self.labels[j]
        moved = self.D[:, j] - self.D[:, i]
        self.sums[:, g] += moved
        self.sums[:, h] -= moved


class _VarianceTracker(DeltaTracker):
    def __init__(self, X: np.ndarray, labels: np.ndarray, n_clusters: int):
        super().__init__(labels, n_clusters)
        self.X = X
        self.sizes = np.bincount(labels, minlength=n_clusters).astype(float)
        self.centroids = np.vstack([
            X[labels == g].mean(axis=0) for g in range(n_clusters)
        ])
        self.value = variance_objective(X, labels)

    def swap_deltas(self, i, candidates):
        g = self.labels[i]
        h = self.labels[candidates]
        diff = self.X[candidates] - self.X[i]
        shift = self.centroids[g] - self.centroids[h]
        return -(
            2.0 * np.einsum("mf,mf->m", diff, shift)
            + np.einsum("mf,mf->m", diff, diff) * (1.0 / self.sizes[g] + 1.0 / self.sizes[h])
        )

    def _update(self, i, j):
        g, h = self.labels[i], self.labels[j]
        diff = self.X[j] - self.X[i]
        self.centroids[g] += diff / self.sizes[g]
        self.centroids[h] -= diff / self.sizes[h]


class _CallableTracker(DeltaTracker):
    def __init__(self, fn, data: np.ndarray, labels: np.ndarray, n_clusters: int):
        super().__init__(labels, n_clusters)
        self.fn = fn
        self.data = data
        self.value = float(fn(data, labels.copy()))

    def swap_deltas(self, i, candidates):
        scratch = self.labels.copy()
        out = np.empty(len(candidates))
        for k, j in enumerate(candidates):
            scratch[i], scratch[j] = self.labels[j], self.labels[i]
            out[k] = float(self.fn(self.data, scratch)) - self.value
            scratch[i], scratch[j] = self.labels[i], self.labels[j]
        return out

    def _update(self, i, j):
        pass


# ---------------------------------------------------------------------- #
# objectives (immutable, shared)
# ---------------------------------------------------------------------- #
class ObjectiveFunction(ABC):
    """An anticlustering objective to be *maximised*."""

    name            : str  = ""
    supports_delta  : bool = True

    @abstractmethod
    def __call__(self, labels: np.ndarray) -> float:
        ...

    @abstractmethod
    def tracker(self, labels: np.ndarray, n_clusters: int) -> DeltaTracker:
        """Bind a fresh tracker to *labels* (the array is mutated by swaps)."""

    @abstractmethod
    def distance_matrix(self) -> np.ndarray:
        """Dissimilarities used to precluster the elements of this objective."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class DiversityObjective(ObjectiveFunction):
    """Cluster-editing objective: sum of pairwise distances within groups."""

    name = "diversity"

    def __init__(self, D: np.ndarray):
        self.D = D

    def __call__(self, labels):
        return diversity_objective(self.D, np.asarray(labels))

    def tracker(self, labels, n_clusters):
        return _DiversityTracker(self.D, labels, n_clusters)

    def distance_matrix(self):
        return self.D


class VarianceObjective(ObjectiveFunction):
    """k-means objective: squared distances of elements to their group centroid."""

    name = "variance"

    def __init__(self, X: np.ndarray, name: str = "variance"):
        self.X = X
        self.name = name

    @classmethod
    def kplus(cls, X: np.ndarray) -> "VarianceObjective":
        """
        k-plus anticlustering: the variance objective on features extended by
        their squared deviations from the feature means, which balances group
        variances along with group means.
        """
        return cls(kplus_features(X), name="kplus")

    def __call__(self, labels):
        return variance_objective(self.X, np.asarray(labels))

    def tracker(self, labels, n_clusters):
        return _VarianceTracker(self.X, labels, n_clusters)

    def distance_matrix(self):
        return get_dissimilarity_matrix(self.X)


class CallableObjective(ObjectiveFunction):
    """
    A user supplied ``fn(data, labels) -> float``. *data* is the input matrix
    (features or dissimilarities) exactly as passed in.
    """

    name = "custom"
    supports_delta = False

    def __init__(self, fn: Callable[[np.ndarray, np.ndarray], float], data: np.ndarray, is_distance: bool):
        self.fn = fn
        self.data = data
        self.is_distance = is_distance
        self.name = getattr(fn, "__name__", "custom")

    def __call__(self, labels):
        return float(self.fn(self.data, np.asarray(labels)))

    def tracker(self, labels, n_clusters):
        return _CallableTracker(self.fn, self.data, labels, n_clusters)

    def distance_matrix(self):
        return as_distances(self.data, self.is_distance)


BUILTIN_OBJECTIVES = ("diversity", "distance", "variance", "kplus")
VARIANCE_FAMILY = ("variance", "kplus")


def make_objective(objective: ObjectiveLike, data: np.ndarray, is_distance: bool) -> ObjectiveFunction:
    """
    Resolve an objective specification against a data matrix.

    Parameters
    ----------
    objective : {"diversity", "distance", "variance", "kplus"} | callable | ObjectiveFunction
        ``"distance"`` is an alias of ``"diversity"``.
    data : np.ndarray
        Feature table (N x F) or dissimilarity matrix (N x N).
    is_distance : bool
        Whether *data* is a dissimilarity matrix.
    """
    if isinstance(objective, ObjectiveFunction):
        return objective
    if callable(objective):
        return CallableObjective(objective, data, is_distance)
    if not isinstance(objective, str) or objective.lower() not in BUILTIN_OBJECTIVES:
        raise InvalidInputError(
            f"Unknown objective '{objective}'. Available: {list(BUILTIN_OBJECTIVES)} or a callable"
        )

    key = objective.lower()
    if key in ("diversity", "distance"):
        return DiversityObjective(as_distances(data, is_distance))
    if is_distance:
        raise InvalidInputError(
            f"The '{key}' objective needs a feature table, got a dissimilarity matrix."
        )
    if key == "kplus":
        return VarianceObjective.kplus(data)
    return VarianceObjective(data)


__all__ = [
    "ObjectiveFunction",
    "DeltaTracker",
    "DiversityObjective",
    "VarianceObjective",
    "CallableObjective",
    "make_objective",
    "BUILTIN_OBJECTIVES",
    "VARIANCE_FAMILY",
]
