from __future__ import annotations

import numpy as np
import pandas as pd
from scipy.spatial.distance import cdist, is_valid_dm

from .distance_metrics import compute_euclidean_distances
from ..core.exceptions import InvalidInputError


def is_distance_matrix(data: np.ndarray) -> bool:
    """
    Decide whether a 2-D array is a dissimilarity matrix rather than a
    feature table: square, symmetric, zero diagonal, non-negative.
    """
    if data.ndim != 2 or data.shape[0] != data.shape[1] or data.shape[0] < 2:
        return False
    if np.any(data < 0):
        return False
    return bool(is_valid_dm(data, tol=1e-10))


def to_matrix(data) -> tuple[np.ndarray, bool]:
    """
    Coerce user input into a float matrix.

    Args:
        data: array-like, ``pandas.DataFrame`` or ``Series``. A 1-D input is a
            single feature column.

    Returns:
        (matrix, is_distance): the float matrix and whether it is an N x N
        dissimilarity matrix (otherwise it is an N x F feature table).

    Raises:
        InvalidInputError: non-numeric, non-finite or empty input.
    """
    if isinstance(data, (pd.DataFrame, pd.Series)):
        data = data.to_numpy()
    try:
        arr = np.asarray(data, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"data must be numeric: {exc}") from exc

    if arr.ndim == 1:
        arr = arr[:, None]
    if arr.ndim != 2:
        raise InvalidInputError(f"data must be 1-D or 2-D, got {arr.ndim} dimensions")
    if arr.shape[0] < 2 or arr.shape[1] < 1:
        raise InvalidInputError(f"data must contain at least 2 elements, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise InvalidInputError("data contains missing or infinite values")

    return arr, is_distance_matrix(arr)


def get_dissimilarity_matrix(X: np.ndarray, distance_measure: str = 'euclidean') -> np.ndarray:
    """
    Compute the pairwise dissimilarity matrix for the given data.

    Parameters
    ----------
    X : array-like, shape (n_samples, n_features)
        Input data.
    distance_measure : str, optional
        The distance measure to use. Currently only 'euclidean' is supported.

    Returns
    -------
    dissimilarity_matrix : ndarray, shape (n_samples, n_samples)
        Pairwise dissimilarity matrix computed using the specified distance measure.
    """
    if distance_measure != 'euclidean':
        raise ValueError(f"Unsupported distance measure: {distance_measure}. Only 'euclidean' is supported.")
    X = np.asarray(X, dtype=float)
    if X.ndim == 1:
        X = X[:, None]
    return compute_euclidean_distances(X)


def as_distances(data: np.ndarray, is_distance: bool) -> np.ndarray:
    """Return *data* itself when it already is a distance matrix, else its Euclidean distances."""
    return data if is_distance else get_dissimilarity_matrix(data)


def diversity_objective(
    data: np.ndarray,
    clusters: np.ndarray
) -> float:
    """
    Compute the diversity (cluster-editing) objective:
    the sum of pairwise distances within each cluster.

    Args:
        data: either an (N x F) feature matrix or an (N x N) dissimilarity matrix.
        clusters: 1d array of length N with cluster labels (0,..,K-1 or any ints).
    Returns:
        Total within-cluster diversity (higher = more diverse).
    """
    data = np.asarray(data, dtype=float)
    dissim = as_distances(data, is_distance_matrix(data))

    total = 0.0
    for lbl in np.unique(clusters):
        idx = np.where(clusters == lbl)[0]
        sub = dissim[np.ix_(idx, idx)]
        # upper triangle only, each pair once
        triu = np.triu_indices_from(sub, k=1)
        total += sub[triu].sum()
    return float(total)


def cluster_centers(
    data: np.ndarray,
    clusters: np.ndarray
) -> np.ndarray:
    """
    Compute cluster centroids.

    Args:
        data: (N x F) feature matrix.
        clusters: length-N vector of integer cluster labels.

    Returns:
        (K x F) array of cluster centers,
        in the order of unique labels.
    """
    unique = np.unique(clusters)
    centers = np.vstack([data[clusters == lbl].mean(axis=0) for lbl in unique])
    return centers

def dist_from_centers(
    data: np.ndarray,
    centers: np.ndarray,
    squared: bool = False
) -> np.ndarray:
    """
    Compute distances from each point to each cluster center.

    Args:
        data: (N x F) feature matrix.
        centers: (K x F) centroids.
        squared: if True, return squared Euclidean distances.

    Returns:
        (N x K) distance matrix.
    """
    metric = "sqeuclidean" if squared else "euclidean"
    D = cdist(data, centers, metric=metric)
    return D

def variance_objective(
    data: np.ndarray,
    clusters: np.ndarray
) -> float:
    """
    Compute the k-means within-cluster variance objective:
    sum of squared distances of points to their assigned cluster center.

    Args:
        data: (N x F) feature matrix.
        clusters: length-N array of integer labels.

    Returns:
        Scalar total within-cluster variance.
    """
    data = np.asarray(data, dtype=float)
    if data.ndim == 1:
        data = data[:, None]
    clusters = np.asarray(clusters)
    # position of each label among the sorted unique labels = row in `centers`
    _, codes = np.unique(clusters, return_inverse=True)
    centers = cluster_centers(data, clusters)
    D = dist_from_centers(data, centers, squared=True)
    idx = np.arange(data.shape[0])
    return float(D[idx, codes].sum())


def squared_from_mean(data: np.ndarray) -> np.ndarray:
    """Squared deviation of every feature value from its column mean."""
    data = np.asarray(data, dtype=float)
    if data.ndim == 1:
        data = data[:, None]
    return (data - data.mean(axis=0)) ** 2


def kplus_features(data: np.ndarray) -> np.ndarray:
    """Feature matrix extended by :func:`squared_from_mean` columns (k-means extension)."""
    data = np.asarray(data, dtype=float)
    if data.ndim == 1:
        data = data[:, None]
    return np.hstack([data, squared_from_mean(data)])


def kplus_objective(
    data: np.ndarray,
    clusters: np.ndarray
) -> float:
    """
    Variance objective on the k-plus augmented features. Sensitive to
    differences in group means *and* in group variances.
    """
    return variance_objective(kplus_features(data), clusters)


__all__ = [
    "is_distance_matrix",
    "to_matrix",
    "get_dissimilarity_matrix",
    "as_distances",
    "diversity_objective",
    "variance_objective",
    "kplus_objective",
    "kplus_features",
    "squared_from_mean",
    "cluster_centers",
]
