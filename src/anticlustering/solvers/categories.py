"""
Categorical constraints: fold one or several categorical variables into one
constraint partition.
"""
from __future__ import annotations

from typing import Optional
import logging

import numpy as np
import pandas as pd

from ..core.exceptions import InvalidInputError

_LOG = logging.getLogger(__name__)


def _as_frame(categories) -> pd.DataFrame:
    if isinstance(categories, pd.DataFrame):
        return categories.reset_index(drop=True)
    if isinstance(categories, pd.Series):
        return categories.reset_index(drop=True).to_frame()
    if isinstance(categories, np.ndarray):
        if categories.ndim == 1:
            return pd.DataFrame({0: categories})
        if categories.ndim == 2:
            return pd.DataFrame(categories)
        raise InvalidInputError(f"categories must be 1-D or 2-D, got {categories.ndim} dimensions")
    if isinstance(categories, (list, tuple)):
        if len(categories) and all(np.ndim(c) == 1 for c in categories):
            # several label vectors
            lengths = {len(c) for c in categories}
            if len(lengths) != 1:
                raise InvalidInputError(f"categorical variables differ in length: {sorted(lengths)}")
            return pd.DataFrame({k: np.asarray(c) for k, c in enumerate(categories)})
        return pd.DataFrame({0: np.asarray(categories)})
    if np.ndim(categories) == 1:
        # pd.Categorical, pd.Index and other 1-D array-likes
        return pd.DataFrame({0: np.asarray(categories)})
    raise InvalidInputError(f"Unsupported categories type: {type(categories).__name__}")


def merge_categories(categories, n_items: Optional[int] = None) -> np.ndarray:
    """
    Merge categorical variables into a single constraint partition.

    Every distinct combination of category values *observed in the data*
    becomes one class; combinations that never occur get no code.

    Parameters
    ----------
    categories : array-like | list of array-like | pd.DataFrame
        One label vector, several label vectors or a table whose columns are
        categorical variables.
    n_items : int, optional
        Expected number of elements; a length mismatch raises.

    Returns
    -------
    np.ndarray, shape (N,)
        Integer class codes ``0 .. C-1``, numbered in sorted order of the
        value combinations.
    """
    frame = _as_frame(categories)
    if n_items is not None and len(frame) != n_items:
        raise InvalidInputError(
            f"categories have length {len(frame)}, expected N={n_items}"
        )
    codes = frame.groupby(list(frame.columns), sort=True, dropna=False).ngroup()
    return codes.to_numpy(dtype=int)


def oversized_classes(partition: np.ndarray, n_clusters: int) -> np.ndarray:
    """Class ids with more members than there are groups (cannot be fully separated)."""
    classes, counts = np.unique(partition, return_counts=True)
    return classes[counts > n_clusters]


def log_infeasible_classes(partition: np.ndarray, n_clusters: int) -> None:
    """Warn about classes that will be spread best-effort instead of separated."""
    too_big = oversized_classes(partition, n_clusters)
    if len(too_big):
        _LOG.warning(
            "%d constraint class(es) have more than K=%d members; their members "
            "are spread as evenly as possible instead of fully separated.",
            len(too_big), n_clusters,
        )


__all__ = ["merge_categories", "oversized_classes", "log_infeasible_classes"]
