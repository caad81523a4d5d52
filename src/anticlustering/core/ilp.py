
"""Exact anticlustering via integer linear programming.

The diversity objective is linear in "same group" indicators, so the
problem can be handed to an external MILP solver (through pyomo). The
variance family is not linear and is rejected before it gets here.

Example
-------
>>> cfg = ILPConfig(n_clusters=2, solver_name="glpk", time_limit=300)
>>> solver = ILPAntiCluster(cfg)
>>> labels = solver.fit_predict(X)  # X is (N, p) NumPy array
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .base import AntiCluster
from ._registry import register_solver
from ._config import ILPConfig
from ..metrics.dissimilarity_matrix import as_distances, diversity_objective
from ..solvers.edge_ilp import EdgeILP, PyomoEdgeSolver


_LOG = logging.getLogger(__name__)

# ---------- Public solver class -----------------------------------------------------------------
@register_solver("ilp", "exact", config=ILPConfig)
class ILPAntiCluster(AntiCluster):
    """Exact anticlustering via Integer Linear Programming.

    Parameters
    ----------
    config : ILPConfig
        Solver and model hyper‑parameters. With ``preclustering=True`` an
        exact min-diversity clustering into groups of K similar elements is
        solved first and its pairs are forbidden from sharing an anticluster
        (faster, no longer guaranteed optimal).
    """

    def __init__(self, config: ILPConfig):
        super().__init__(config=config)
        self.cfg = config
        self._model         : Optional[EdgeILP] = None
        self._runtime_pre   : float | None = None
        self._runtime_ilp   : float | None = None

    def _backend(self) -> PyomoEdgeSolver:
        return PyomoEdgeSolver(
            solver_name=self.cfg.solver_name,
            time_limit=self.cfg.time_limit,
            mip_gap=self.cfg.mip_gap,
            verbose=self.cfg.verbose,
        )

    def _forbidden_pairs(self, D: np.ndarray, backend: PyomoEdgeSolver) -> list[tuple[int, int]]:
        preclust = EdgeILP.preclustering(D, self.cfg.n_clusters)
        solution = backend.solve(preclust)
        self._runtime_pre = solution.runtime
        _LOG.info(
            "Preclustering completed in %.2f seconds with status: %s",
            self._runtime_pre, solution.status.value
        )
        return preclust.same_group_pairs(solution.x)

    # --------- Fit interface ------------------------------------------------------------
    def fit(
        self,
        X: Optional[np.ndarray] = None,
        *,
        D: Optional[np.ndarray] = None,
    ) -> "ILPAntiCluster":
        """Compute anticlusters from data matrix *X* or a pre‑computed *D*.

        Notes
        -----
        * ``X`` is expected to be feature matrix (N, p); the Euclidean distance
          matrix is computed on the fly.
        * Either ``X`` or ``D`` **must** be supplied.  If both are given, ``D``
          takes precedence.
        """
        data, is_distance = self._resolve_data(X, D)
        D = as_distances(data, is_distance)
        N = D.shape[0]

        # validate & log ----------------------------------------------------
        self.cfg.validate(N)
        backend = self._backend()

        forbidden = []
        if self.cfg.preclustering:
            forbidden = self._forbidden_pairs(D, backend)

        # build model ------------------------------------------------------
        self._model = EdgeILP.anticlustering(D, self.cfg.n_clusters, forbidden_pairs=forbidden)

        # solve ------------------------------------------------------------
        _LOG.info("Starting ILP anticlustering: N=%d, K=%d, preclustering=%s",
                  N, self.cfg.n_clusters, self.cfg.preclustering)
        solution = backend.solve(self._model, warm_start=self.cfg.warm_start)
        self._runtime_ilp = solution.runtime
        labels = self._model.decode(solution.x)
        _LOG.info(
            "ILP anticlustering completed in %.2f seconds with status: %s",
            solution.runtime, solution.status.value
        )

        # set labels and score ----------------------------------------
        self._set_labels(labels)
        self._set_score(diversity_objective(D, labels))
        self._set_status(solution.status, solution.gap)
        self._set_runtime(solution.runtime + (self._runtime_pre or 0.0))

        return self


@register_solver("ilp_precluster", config=ILPConfig)
class PreClusterILPAntiCluster(ILPAntiCluster):
    """ILPAntiCluster with preclustering enabled.

    This is a convenience subclass that sets the `preclustering` flag to True
    and inherits all other parameters from ILPAntiCluster.
    """
    def __init__(self, config: ILPConfig):
        super().__init__(config)
        if not self.cfg.preclustering:
            _LOG.warning(
                "PreClusterILPAntiCluster should be used with preclustering enabled. "
                "Setting preclustering=True."
                )
            self.cfg.preclustering = True

    @property
    def runtime_pre_(self) -> float:
        """Runtime of the preclustering step."""
        if self._runtime_pre is None:
            raise RuntimeError("Call `.fit()` before accessing runtime_pre_.")
        return self._runtime_pre

    @property
    def runtime_ilp_(self) -> float:
        """Runtime of the ILP step."""
        if self._runtime_ilp is None:
            raise RuntimeError("Call `.fit()` before accessing runtime_ilp_.")
        return self._runtime_ilp


__all__ = ["ILPAntiCluster", "PreClusterILPAntiCluster", "ILPConfig"]
