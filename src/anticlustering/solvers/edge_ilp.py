# edge_ilp.py
"""
Exact anticlustering / pre-clustering as a 0/1 integer linear program on
"same group" edge variables (Papenberg & Klau, 2020, (8) - (13)).

The formulation itself (:class:`EdgeILP`) is solver independent: objective
coefficients, a sparse constraint matrix with right-hand sides and senses,
and per-variable upper bounds. :class:`PyomoEdgeSolver` hands it to an
external MILP solver through pyomo and reads the 0/1 vector back.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from itertools import combinations
from typing import Optional, Sequence, Tuple
import logging
import time

import numpy as np
import pyomo.environ as pyo
from scipy import sparse
from scipy.sparse.csgraph import connected_components

from ..core._config import Status
from ..core.exceptions import SolverUnavailableError

_LOG = logging.getLogger(__name__)

Pair = Tuple[int, int]


# ---------------------------------------------------------------------- #
# helpers
# ---------------------------------------------------------------------- #
def pair_index(i: int, j: int, N: int) -> int:
    """Position of pair ``(min(i, j), max(i, j))`` in row-major upper-triangle order."""
    if i > j:
        i, j = j, i
    return i * N - i * (i + 1) // 2 + (j - i - 1)


@lru_cache(maxsize=None)
def _triples(N: int) -> np.ndarray:
    return np.array(list(combinations(range(N), 3)), dtype=int).reshape(-1, 3)


# ---------------------------------------------------------------------- #
# formulation
# ---------------------------------------------------------------------- #
@dataclass(frozen=True)
class EdgeILP:
    """
    0/1 program over one variable ``x_ij`` (i < j) per pair, ``x_ij = 1`` iff
    i and j share a group.

    Attributes
    ----------
    N, n_groups, group_size : int
        Problem size; every group holds exactly ``group_size`` elements.
    sense : {"max", "min"}
        Optimisation direction of ``objective @ x``.
    pairs : np.ndarray, shape (P, 2)
        Variable order.
    objective : np.ndarray, shape (P,)
        Objective coefficients (pairwise dissimilarities).
    A : scipy.sparse.csr_matrix, shape (R, P)
        Constraint matrix: three transitivity rows per triple, then one
        degree row per element.
    rhs : np.ndarray, shape (R,)
    senses : np.ndarray, shape (R,)
        ``"<="`` or ``"=="`` per row.
    upper : np.ndarray, shape (P,)
        Variable upper bounds; forbidden pairs have bound 0.
    """
    N           : int
    n_groups    : int
    group_size  : int
    sense       : str
    pairs       : np.ndarray
    objective   : np.ndarray
    A           : sparse.csr_matrix
    rhs         : np.ndarray
    senses      : np.ndarray
    upper       : np.ndarray

    # ------------------------------------------------------------------ #
    @classmethod
    def build(
        cls,
        D: np.ndarray,
        group_size: int,
        *,
        sense: str = "max",
        forbidden_pairs: Sequence[Pair] = (),
    ) -> "EdgeILP":
        """
        Formulate the partition of ``N`` elements into groups of
        ``group_size`` with extreme sum of within-group dissimilarities.
        """
        D = np.asarray(D, dtype=float)
        N = D.shape[0]
        if D.ndim != 2 or D.shape[1] != N:
            raise ValueError("D must be a square distance matrix.")
        if group_size < 1 or N % group_size:
            raise ValueError(f"N={N} cannot be split into groups of size {group_size}")
        if sense not in ("max", "min"):
            raise ValueError(f"sense must be 'max' or 'min', got {sense!r}")

        I, J = np.triu_indices(N, k=1)
        pairs = np.column_stack([I, J])
        P = len(I)
        objective = D[I, J]

        # ---------- triangle (transitivity) constraints ----------
        T = _triples(N)
        if len(T):
            i, j, k = T[:, 0], T[:, 1], T[:, 2]
            pij = i * N - i * (i + 1) // 2 + (j - i - 1)
            pik = i * N - i * (i + 1) // 2 + (k - i - 1)
            pjk = j * N - j * (j + 1) // 2 + (k - j - 1)
            n_tri = len(T)
            base = np.arange(n_tri) * 3
            rows = np.concatenate([base] * 3 + [base + 1] * 3 + [base + 2] * 3)
            cols = np.concatenate([pij, pik, pjk] * 3)
            vals = np.concatenate([
                np.ones(n_tri), np.ones(n_tri), -np.ones(n_tri),
                np.ones(n_tri), -np.ones(n_tri), np.ones(n_tri),
                -np.ones(n_tri), np.ones(n_tri), np.ones(n_tri),
            ])
            n_tri_rows = 3 * n_tri
        else:
            rows = cols = np.empty(0, dtype=int)
            vals = np.empty(0)
            n_tri_rows = 0

        # ---------- group-size (degree) constraints ----------
        p_all = np.arange(P)
        deg_rows = np.concatenate([I, J]) + n_tri_rows
        deg_cols = np.concatenate([p_all, p_all])
        rows = np.concatenate([rows, deg_rows])
        cols = np.concatenate([cols, deg_cols])
        vals = np.concatenate([vals, np.ones(2 * P)])

        n_rows = n_tri_rows + N
        A = sparse.csr_matrix((vals, (rows, cols)), shape=(n_rows, P))
        rhs = np.concatenate([np.ones(n_tri_rows), np.full(N, group_size - 1.0)])
        senses = np.array(["<="] * n_tri_rows + ["=="] * N)

        upper = np.ones(P)
        for a, b in forbidden_pairs:
            upper[pair_index(int(a), int(b), N)] = 0.0

        return cls(
            N=N,
            n_groups=N // group_size,
            group_size=group_size,
            sense=sense,
            pairs=pairs,
            objective=objective,
            A=A,
            rhs=rhs,
            senses=senses,
            upper=upper,
        )

    @classmethod
    def anticlustering(
        cls,
        D: np.ndarray,
        n_clusters: int,
        forbidden_pairs: Sequence[Pair] = (),
    ) -> "EdgeILP":
        """Exact **max-diversity** anticlustering into ``n_clusters`` equal groups."""
        N = D.shape[0]
        if N % n_clusters:
            raise ValueError(f"N={N} not divisible by K={n_clusters}")
        return cls.build(D, N // n_clusters, sense="max", forbidden_pairs=forbidden_pairs)

    @classmethod
    def preclustering(cls, D: np.ndarray, n_clusters: int) -> "EdgeILP":
        """Exact **min-diversity** clustering into groups of ``n_clusters`` similar elements."""
        return cls.build(D, n_clusters, sense="min")

    # ------------------------------------------------------------------ #
    @property
    def n_variables(self) -> int:
        return len(self.objective)

    def is_feasible(self, x: np.ndarray, atol: float = 1e-6) -> bool:
        """Check a 0/1 vector against all constraints and bounds."""
        x = np.asarray(x, dtype=float)
        if np.any(x > self.upper + atol):
            return False
        lhs = self.A @ x
        le = self.senses == "<="
        return bool(
            np.all(lhs[le] <= self.rhs[le] + atol)
            and np.all(np.abs(lhs[~le] - self.rhs[~le]) <= atol)
        )

    def encode(self, labels: np.ndarray) -> np.ndarray:
        """0/1 vector of a label assignment (used for warm starts)."""
        labels = np.asarray(labels)
        return (labels[self.pairs[:, 0]] == labels[self.pairs[:, 1]]).astype(float)

    def decode(self, x: np.ndarray) -> np.ndarray:
        """
        Turn a solution vector into group labels ``0 .. n_groups-1``.

        The groups are the connected components of the graph whose edges are
        the pairs with ``x >= 0.5``; they are numbered in order of their
        smallest element.
        """
        x = np.asarray(x, dtype=float)
        if x.shape != (self.n_variables,):
            raise ValueError(f"solution vector has shape {x.shape}, expected ({self.n_variables},)")
        on = x >= 0.5
        adj = sparse.coo_matrix(
            (np.ones(on.sum()), (self.pairs[on, 0], self.pairs[on, 1])),
            shape=(self.N, self.N),
        )
        n_comp, labels = connected_components(adj, directed=False)
        if n_comp != self.n_groups:
            raise ValueError(
                f"solution vector describes {n_comp} groups, expected {self.n_groups}"
            )
        return labels.astype(int)

    def same_group_pairs(self, x: np.ndarray) -> list[Pair]:
        """Pairs joined by the solution (the forbidden pairs after preclustering)."""
        on = np.asarray(x, dtype=float) >= 0.5
        return [(int(i), int(j)) for i, j in self.pairs[on]]


# ---------------------------------------------------------------------- #
# solver boundary
# ---------------------------------------------------------------------- #
@dataclass(frozen=True)
class EdgeSolution:
    x           : np.ndarray
    objective   : float
    status      : Status
    gap         : Optional[float]
    runtime     : float


# solver specific option names for a time limit (seconds) and relative MIP gap
_TIME_LIMIT_OPTION = {
    "glpk": "tmlim", "cbc": "sec", "gurobi": "TimeLimit",
    "cplex": "timelimit", "highs": "time_limit", "appsi_highs": "time_limit",
}
_MIP_GAP_OPTION = {
    "glpk": "mipgap", "cbc": "ratio", "gurobi": "MIPGap",
    "cplex": "mipgap", "highs": "mip_rel_gap", "appsi_highs": "mip_rel_gap",
}


class PyomoEdgeSolver:
    """Solve an :class:`EdgeILP` with any MILP solver pyomo can reach."""

    def __init__(
        self,
        solver_name : str = "glpk",
        time_limit  : Optional[int] = None,
        mip_gap     : Optional[float] = None,
        verbose     : bool = False,
    ):
        self.solver_name = solver_name
        self.time_limit = time_limit
        self.mip_gap = mip_gap
        self.verbose = verbose

    def _factory(self):
        solver = pyo.SolverFactory(self.solver_name)
        if solver is None or not solver.available(exception_flag=False):
            raise SolverUnavailableError(
                f"MILP solver '{self.solver_name}' is not available through pyomo."
            )
        return solver

    def available(self) -> bool:
        try:
            self._factory()
        except SolverUnavailableError:
            return False
        return True

    # ------------------------------------------------------------------ #
    @staticmethod
    def to_model(ilp: EdgeILP) -> pyo.ConcreteModel:
        """Translate the formulation into a pyomo model."""
        m = pyo.ConcreteModel("edge_ilp")
        m.P = pyo.Set(initialize=range(ilp.n_variables))
        m.x = pyo.Var(m.P, within=pyo.Binary)

        # fix forbidden pairs to 0
        for p in np.flatnonzero(ilp.upper < 0.5):
            m.x[int(p)].fix(0)

        m.OBJ = pyo.Objective(
            expr=pyo.quicksum(float(c) * m.x[p] for p, c in enumerate(ilp.objective)),
            sense=pyo.maximize if ilp.sense == "max" else pyo.minimize,
        )

        m.rows = pyo.ConstraintList()
        A = ilp.A
        for r in range(A.shape[0]):
            start, stop = A.indptr[r], A.indptr[r + 1]
            lhs = pyo.quicksum(
                float(v) * m.x[int(c)] for c, v in zip(A.indices[start:stop], A.data[start:stop])
            )
            if ilp.senses[r] == "==":
                m.rows.add(lhs == float(ilp.rhs[r]))
            else:
                m.rows.add(lhs <= float(ilp.rhs[r]))
        return m

    def _options(self) -> dict:
        opts = {}
        key = self.solver_name.lower()
        if self.time_limit is not None and key in _TIME_LIMIT_OPTION:
            opts[_TIME_LIMIT_OPTION[key]] = self.time_limit
        if self.mip_gap is not None and key in _MIP_GAP_OPTION:
            opts[_MIP_GAP_OPTION[key]] = self.mip_gap
        return opts

    def solve(self, ilp: EdgeILP, warm_start: Optional[np.ndarray] = None) -> EdgeSolution:
        """
        Solve *ilp* and return the 0/1 vector.

        Raises
        ------
        SolverUnavailableError
            If the solver cannot be reached.
        RuntimeError
            If the solver terminates without a usable solution.
        """
        solver = self._factory()
        model = self.to_model(ilp)
        for k, v in self._options().items():
            solver.options[k] = v

        kwargs = {"tee": self.verbose, "load_solutions": False}
        if warm_start is not None and solver.warm_start_capable():
            x0 = ilp.encode(warm_start)
            for p, v in enumerate(x0):
                if not model.x[p].fixed:
                    model.x[p].value = float(v)
            kwargs["warmstart"] = True

        _LOG.info("Solving edge ILP with %s: %d variables, %d constraints",
                  self.solver_name, ilp.n_variables, ilp.A.shape[0])
        t0 = time.perf_counter()
        results = solver.solve(model, **kwargs)
        runtime = time.perf_counter() - t0

        tc = results.solver.termination_condition
        has_solution = len(results.solution) > 0
        if tc == pyo.TerminationCondition.optimal and has_solution:
            status = Status.optimal
        elif tc == pyo.TerminationCondition.maxTimeLimit and has_solution:
            status = Status.timeout
        else:
            raise RuntimeError(f"ILP solver '{self.solver_name}' terminated with '{tc}' and no solution.")

        model.solutions.load_from(results)
        x = np.array([pyo.value(model.x[p]) for p in range(ilp.n_variables)], dtype=float)
        objective = float(pyo.value(model.OBJ))

        gap = None
        lb, ub = results.problem.lower_bound, results.problem.upper_bound
        if lb is not None and ub is not None and np.isfinite([lb, ub]).all() and ub != 0:
            gap = abs(ub - lb) / abs(ub)

        _LOG.info("Edge ILP finished in %.2f seconds with status %s", runtime, status.value)
        return EdgeSolution(x=x, objective=objective, status=status, gap=gap, runtime=runtime)


__all__ = ["EdgeILP", "EdgeSolution", "PyomoEdgeSolver", "pair_index"]
