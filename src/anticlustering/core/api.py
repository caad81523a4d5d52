"""
Functional entry point: ``anticlustering(data, K, ...) -> labels``.
"""
from __future__ import annotations

from typing import Any, Callable, Optional, Union
import logging

import numpy as np

from ._config import ExchangeConfig, ILPConfig
from ._registry import get_solver
from .exceptions import InvalidInputError, ObjectiveMismatchError
from ..solvers.objectives import BUILTIN_OBJECTIVES

_LOG = logging.getLogger(__name__)

METHODS = ("exchange", "local-maximum", "ilp", "exact")


def anticlustering(
    data,
    K: Union[int, np.ndarray, list],
    objective: Union[str, Callable[[np.ndarray, np.ndarray], float]] = "diversity",
    method: str = "exchange",
    preclustering: bool = False,
    categories: Optional[Any] = None,
    repetitions: int = 1,
    *,
    random_state: Optional[int] = None,
    n_jobs: int = 1,
    solver_name: str = "glpk",
    time_limit: Optional[int] = None,
) -> np.ndarray:
    """
    Partition the elements of *data* into ``K`` groups that are as similar
    to each other as possible.

    Parameters
    ----------
    data : array-like | pd.DataFrame
        N x F feature table (a 1-D vector is one feature) or an N x N
        dissimilarity matrix (square, symmetric, zero diagonal).
    K : int | array-like
        Number of groups (equal sizes, the first ``N mod K`` groups get one
        extra element) or a length-N initial assignment that fixes K and the
        group sizes.
    objective : {"diversity", "variance", "kplus"} | callable
        Objective to maximise; ``"distance"`` is accepted for
        ``"diversity"``. A callable receives ``(data, labels)``.
    method : {"exchange", "local-maximum", "ilp"}
        ``"exact"`` is accepted for ``"ilp"``.
    preclustering : bool
        Forbid groups of K very similar elements from sharing a group.
    categories : array-like | list of array-like | pd.DataFrame, optional
        Categorical variables to balance across groups (heuristic methods).
    repetitions : int
        Number of exchange runs from independent random starts; the best is
        returned.
    random_state : int, optional
        Seed for the random initial assignments.
    n_jobs : int
        Threads used to run repetitions in parallel.
    solver_name, time_limit :
        External MILP solver (through pyomo) and its time limit in seconds,
        only used for ``method="ilp"``.

    Returns
    -------
    np.ndarray, shape (N,)
        Group label in ``0 .. K-1`` for every element.
    """
    if not isinstance(method, str) or method.lower() not in METHODS:
        raise InvalidInputError(f"Unknown method '{method}'. Available: {list(METHODS)}")
    method = method.lower()
    if not callable(objective) and (
        not isinstance(objective, str) or objective.lower() not in BUILTIN_OBJECTIVES
    ):
        raise InvalidInputError(
            f"Unknown objective '{objective}'. Available: {list(BUILTIN_OBJECTIVES)} or a callable"
        )

    initial_labels = None
    if np.ndim(K) == 0:
        if isinstance(K, bool) or not isinstance(K, (int, np.integer)):
            raise InvalidInputError(f"K must be an integer or an assignment vector, got {K!r}")
        n_clusters = int(K)
    else:
        initial_labels = np.asarray(K)
        n_clusters = len(np.unique(initial_labels))

    if method in ("ilp", "exact"):
        if callable(objective) or objective.lower() not in ("diversity", "distance"):
            name = getattr(objective, "__name__", objective)
            raise ObjectiveMismatchError(
                f"Objective '{name}' is not linearizable; the exact method only "
                "supports the diversity objective."
            )
        if categories is not None:
            raise InvalidInputError("categories cannot be combined with the exact method")
        if initial_labels is not None:
            raise InvalidInputError("the exact method needs K as a number of groups")
        if repetitions != 1:
            _LOG.warning("repetitions=%s ignored by the exact method", repetitions)
        cfg = ILPConfig(
            n_clusters=n_clusters,
            random_state=random_state,
            solver_name=solver_name,
            time_limit=time_limit,
            preclustering=preclustering,
        )
        return get_solver("ilp", config=cfg).fit_predict(data)

    cfg = ExchangeConfig(
        n_clusters=n_clusters,
        random_state=random_state,
        objective=objective,
        method=method,
        preclustering=preclustering,
        categories=categories,
        initial_labels=initial_labels,
        repetitions=repetitions,
        n_jobs=n_jobs,
    )
    return get_solver("exchange", config=cfg).fit_predict(data)


__all__ = ["anticlustering"]
