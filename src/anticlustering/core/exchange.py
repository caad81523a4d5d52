"""
Exchange-method solver classes: a thin fit/score/status shell around
:class:`RepetitionDriver`.
"""
import numpy as np

from .base import AntiCluster
from ._registry import register_solver

from ._config import ExchangeConfig, Status
from ..solvers.assignment import group_sizes, normalize_labels
from ..solvers.categories import log_infeasible_classes, merge_categories
from ..solvers.exchange_heuristic import ExchangeResult
from ..solvers.matching_heuristic import precluster
from ..solvers.objectives import ObjectiveFunction, make_objective
from ..solvers.repetitions import RepetitionDriver

from typing import Optional
import logging
import time


_LOG = logging.getLogger(__name__)


@register_solver('exchange', config=ExchangeConfig)
class ExchangeAntiCluster(AntiCluster):
    """
    Anticlustering with the exchange method (optionally repeated until a
    local maximum, optionally restarted ``repetitions`` times).
    """

    def __init__(
            self,
            config : ExchangeConfig
        ):
        super().__init__(config)
        self.cfg = config
        self._objective : Optional[ObjectiveFunction] = None
        self._partition : Optional[np.ndarray] = None
        self._result    : Optional[ExchangeResult] = None

    @property
    def objective_(self) -> ObjectiveFunction:
        if self._objective is None:
            raise RuntimeError("Call `.fit()` first!")
        return self._objective

    @property
    def constraints_(self) -> Optional[np.ndarray]:
        """Constraint partition the exchange partners were restricted to (or None)."""
        return self._partition

    @property
    def n_passes_(self) -> int:
        if self._result is None:
            raise RuntimeError("Call `.fit()` first!")
        return self._result.n_passes

    def _constraint_partition(self, categories: Optional[np.ndarray], K: int) -> Optional[np.ndarray]:
        if self.cfg.preclustering:
            return precluster(self._objective.distance_matrix(), K, categories=categories)
        return categories

    def fit(
            self,
            X: Optional[np.ndarray] = None,
            *,
            D: Optional[np.ndarray] = None
        ) -> "ExchangeAntiCluster":
        data, is_distance = self._resolve_data(X, D)
        N = data.shape[0]

        # validate config and resolve K / group sizes ------------------------
        self.cfg.validate(n_items=N)
        initial = None
        if self.cfg.initial_labels is not None:
            initial, sizes = normalize_labels(self.cfg.initial_labels)
            self.cfg.n_clusters = len(sizes)
        else:
            sizes = group_sizes(N, self.cfg.n_clusters)
        K = self.cfg.n_clusters
        categories = None
        if self.cfg.categories is not None:
            categories = merge_categories(self.cfg.categories, n_items=N)

        self._objective = make_objective(self.cfg.objective, data, is_distance)
        self._partition = self._constraint_partition(categories, K)
        if self._partition is not None:
            log_infeasible_classes(self._partition, K)

        driver = RepetitionDriver(
            self._objective,
            sizes,
            categories=self._partition,
            method=self.cfg.method,
            repetitions=int(self.cfg.repetitions),
            initial_labels=initial,
            random_state=self.cfg.random_state,
            n_jobs=self.cfg.n_jobs,
            tol=self.cfg.tol,
            max_passes=self.cfg.max_passes,
        )

        # solve ------------------------------------------------------------
        _LOG.info("Starting %s anticlustering (%s objective): N=%d, K=%d, repetitions=%d",
                  self.cfg.method, self._objective.name, N, K, self.cfg.repetitions)
        t0 = time.perf_counter()
        self._result = driver.run()
        runtime = time.perf_counter() - t0
        _LOG.info("Exchange anticlustering completed in %.2f seconds, score=%.6f",
                  runtime, self._result.score)

        # set labels and score
        self._set_labels(self._result.labels)
        self._set_score(self._result.score)
        self._set_status(Status.heuristic)
        self._set_runtime(runtime)
        return self


@register_solver('local-maximum', 'local_maximum', config=ExchangeConfig)
class LocalMaximumAntiCluster(ExchangeAntiCluster):
    """ExchangeAntiCluster that repeats passes until a local maximum is reached."""

    def __init__(self, config: ExchangeConfig):
        super().__init__(config)
        if self.cfg.method != "local-maximum":
            _LOG.warning(
                "LocalMaximumAntiCluster should be used with method='local-maximum'. "
                "Setting method='local-maximum'."
            )
            self.cfg.method = "local-maximum"


__all__ = ["ExchangeAntiCluster", "LocalMaximumAntiCluster", "ExchangeConfig"]
