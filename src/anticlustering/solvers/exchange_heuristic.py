from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional
import logging

import numpy as np

from .objectives import ObjectiveFunction

_LOG = logging.getLogger(__name__)

Method = Literal["exchange", "local-maximum"]
METHODS = ("exchange", "local-maximum")


@dataclass(slots=True)
class ExchangeResult:
    """Outcome of one exchange run."""
    labels   : np.ndarray
    score    : float
    n_passes : int = 0
    n_swaps  : int = 0
    history  : list[float] = field(default_factory=list, repr=False)


class ExchangeHeuristic:
    """
    Exchange method for anticlustering.

    Algorithm (one pass):
      1) Visit the elements in index order.
      2) For element *i* in group *g*, score the swap of *i* with every
         element of every other group (restricted to *i*'s constraint class
         when a constraint partition is given).
      3) Commit the single best swap if it improves the objective by more
         than ``tol``; otherwise leave *i* where it is.

    ``method="exchange"`` runs exactly one pass, ``method="local-maximum"``
    repeats passes until a pass commits no swap. Swaps preserve the group
    sizes of the initial assignment.
    """

    def __init__(
        self,
        objective: ObjectiveFunction,
        categories: Optional[np.ndarray] = None,
        method: Method = "exchange",
        tol: float = 1e-10,
        max_passes: Optional[int] = None,
        track_history: bool = False,
    ):
        """
        Parameters
        ----------
        objective : ObjectiveFunction
            Objective to maximise.
        categories : np.ndarray, shape (N,), optional
            Constraint partition. Only members of the same class are
            exchanged, so the per-group composition of every class stays
            what the initial assignment made it.
        method : {"exchange", "local-maximum"}
            Termination mode.
        tol : float
            Minimum gain for a swap to count as an improvement.
        max_passes : int, optional
            Upper bound on passes for ``"local-maximum"`` (unbounded if None).
        track_history : bool
            Record the objective value after every committed swap.
        """
        if method not in METHODS:
            raise ValueError(f"Unknown exchange method '{method}'. Available: {list(METHODS)}")
        self.objective = objective
        self.categories = None if categories is None else np.asarray(categories)
        self.method = method
        self.tol = tol
        self.max_passes = max_passes
        self.track_history = track_history

        self._class_members: dict = {}
        if self.categories is not None:
            for c in np.unique(self.categories):
                self._class_members[c] = np.flatnonzero(self.categories == c)

    # ------------------------------------------------------------------ #
    def _candidates(self, i: int, labels: np.ndarray) -> np.ndarray:
        """Exchange partners of *i*, ordered by (group, index)."""
        if self.categories is None:
            pool = np.flatnonzero(labels != labels[i])
        else:
            members = self._class_members[self.categories[i]]
            pool = members[labels[members] != labels[i]]
        if len(pool) == 0:
            return pool
        return pool[np.lexsort((pool, labels[pool]))]

    def _pass(self, tracker, history: list[float]) -> int:
        labels = tracker.labels
        n_swaps = 0
        for i in range(len(labels)):
            cand = self._candidates(i, labels)
            if len(cand) == 0:
                continue
            deltas = tracker.swap_deltas(i, cand)
            best = int(np.argmax(deltas))  # first maximum wins
            if deltas[best] > self.tol:
                tracker.swap(i, int(cand[best]), deltas[best])
                n_swaps += 1
                if self.track_history:
                    history.append(tracker.value)
        return n_swaps

    def run(self, labels: np.ndarray, n_clusters: Optional[int] = None) -> ExchangeResult:
        """
        Optimise *labels* (a copy is made) and return the result.

        Parameters
        ----------
        labels : np.ndarray, shape (N,)
            Initial assignment with values ``0 .. K-1``.
        n_clusters : int, optional
            K; inferred from *labels* if omitted.
        """
        labels = np.asarray(labels, dtype=int).copy()
        K = int(labels.max()) + 1 if n_clusters is None else n_clusters
        tracker = self.objective.tracker(labels, K)
        history: list[float] = [tracker.value] if self.track_history else []

        n_passes = n_swaps = 0
        while True:
            swaps = self._pass(tracker, history)
            n_passes += 1
            n_swaps += swaps
            _LOG.debug("Exchange pass %d: %d swap(s), objective=%.6f",
                       n_passes, swaps, tracker.value)
            if self.method == "exchange" or swaps == 0:
                break
            if self.max_passes is not None and n_passes >= self.max_passes:
                _LOG.info("Local maximum search stopped after max_passes=%d", self.max_passes)
                break

        # reported score is a full evaluation, not the accumulated deltas
        return ExchangeResult(
            labels=tracker.labels,
            score=float(self.objective(tracker.labels)),
            n_passes=n_passes,
            n_swaps=n_swaps,
            history=history,
        )


__all__ = ["ExchangeHeuristic", "ExchangeResult", "METHODS"]
