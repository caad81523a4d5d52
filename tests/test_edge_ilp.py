from itertools import combinations

import numpy as np
import pytest

from anticlustering import ILPAntiCluster, ILPConfig, PreClusterILPAntiCluster
from anticlustering.core.exceptions import InvalidInputError, SolverUnavailableError
from anticlustering.metrics.dissimilarity_matrix import (
    diversity_objective,
    get_dissimilarity_matrix,
)
from anticlustering.solvers.edge_ilp import EdgeILP, PyomoEdgeSolver, pair_index


requires_glpk = pytest.mark.skipif(
    not PyomoEdgeSolver("glpk").available(), reason="glpk is not installed"
)


@pytest.fixture
def D(six_points):
    return get_dissimilarity_matrix(six_points)


def _best_split(D):
    """Brute force max diversity over all splits of 6 elements into 3 + 3."""
    best = -np.inf
    for first in combinations(range(1, 6), 2):
        labels = np.ones(6, dtype=int)
        labels[[0, *first]] = 0
        best = max(best, diversity_objective(D, labels))
    return best


def test_pair_index_matches_variable_order(D):
    ilp = EdgeILP.anticlustering(D, 2)
    for p, (i, j) in enumerate(ilp.pairs):
        assert pair_index(i, j, 6) == p
        assert pair_index(j, i, 6) == p


def test_formulation_shape(D):
    ilp = EdgeILP.anticlustering(D, 2)
    assert ilp.n_variables == 15
    # three transitivity rows per triple, one degree row per element
    assert ilp.A.shape == (3 * 20 + 6, 15)
    assert ilp.group_size == 3 and ilp.n_groups == 2
    assert ilp.sense == "max"
    assert np.all(ilp.rhs[-6:] == 2.0)
    np.testing.assert_allclose(ilp.objective, D[np.triu_indices(6, k=1)])


def test_preclustering_formulation(D):
    ilp = EdgeILP.preclustering(D, 2)
    assert ilp.sense == "min"
    assert ilp.group_size == 2 and ilp.n_groups == 3


def test_encode_decode(D):
    ilp = EdgeILP.anticlustering(D, 2)
    labels = np.array([1, 0, 1, 0, 1, 0])
    x = ilp.encode(labels)
    assert ilp.is_feasible(x)
    assert ilp.objective @ x == pytest.approx(diversity_objective(D, labels))
    # components are numbered by their smallest element
    np.testing.assert_array_equal(ilp.decode(x), [0, 1, 0, 1, 0, 1])
    assert sorted(ilp.same_group_pairs(x)) == [(0, 2), (0, 4), (1, 3), (1, 5), (2, 4), (3, 5)]


def test_infeasible_vectors(D):
    ilp = EdgeILP.anticlustering(D, 2)
    assert not ilp.is_feasible(ilp.encode([0, 0, 0, 0, 1, 1]))
    x = ilp.encode([0, 0, 0, 1, 1, 1])
    x[pair_index(0, 3, 6)] = 1.0
    assert not ilp.is_feasible(x)


def test_forbidden_pairs_get_zero_upper_bound(D):
    ilp = EdgeILP.anticlustering(D, 2, forbidden_pairs=[(3, 1)])
    assert ilp.upper[pair_index(1, 3, 6)] == 0.0
    assert ilp.upper.sum() == 14
    assert not ilp.is_feasible(ilp.encode([0, 1, 0, 1, 0, 1]))
    assert ilp.is_feasible(ilp.encode([0, 0, 0, 1, 1, 1]))


def test_decode_rejects_bad_vectors(D):
    ilp = EdgeILP.anticlustering(D, 2)
    with pytest.raises(ValueError):
        ilp.decode(np.zeros(15))
    with pytest.raises(ValueError):
        ilp.decode(np.zeros(10))


def test_build_rejects_uneven_groups(D):
    with pytest.raises(ValueError):
        EdgeILP.anticlustering(D, 4)
    with pytest.raises(ValueError):
        EdgeILP.build(D, 3, sense="maximum")


def test_unknown_solver_is_unavailable(D):
    backend = PyomoEdgeSolver("no-such-solver")
    assert not backend.available()
    with pytest.raises(SolverUnavailableError):
        backend.solve(EdgeILP.anticlustering(D, 2))


def test_to_model_fixes_forbidden_pairs(D):
    model = PyomoEdgeSolver.to_model(EdgeILP.anticlustering(D, 2, forbidden_pairs=[(0, 1)]))
    assert model.x[0].fixed
    assert not model.x[1].fixed
    assert len(model.rows) == 66


# ---------------------------------------------------------------------- #
# solver class
# ---------------------------------------------------------------------- #
@pytest.mark.parametrize(
    "kwargs, N",
    [
        (dict(n_clusters=4), 6),
        (dict(n_clusters=2, max_n=4), 6),
        (dict(n_clusters=2, warm_start=np.array([0, 1])), 6),
    ],
)
def test_ilp_validation(kwargs, N):
    X = np.arange(N, dtype=float)
    with pytest.raises(InvalidInputError):
        ILPAntiCluster(ILPConfig(**kwargs)).fit(X)


@requires_glpk
def test_ilp_finds_the_optimum(six_points, D):
    solver = ILPAntiCluster(ILPConfig(n_clusters=2, solver_name="glpk")).fit(six_points)
    assert solver.status_ == "optimal"
    assert solver.score_ == pytest.approx(_best_split(D))
    np.testing.assert_array_equal(np.bincount(solver.labels_), [3, 3])


@requires_glpk
def test_ilp_accepts_distance_matrix(D):
    labels = ILPAntiCluster(ILPConfig(n_clusters=3)).fit_predict(D=D)
    np.testing.assert_array_equal(np.bincount(labels), [2, 2, 2])


@requires_glpk
def test_ilp_with_preclustering(six_points):
    solver = PreClusterILPAntiCluster(ILPConfig(n_clusters=2)).fit(six_points)
    assert solver.cfg.preclustering
    assert solver.runtime_pre_ >= 0.0
    assert solver.runtime_ilp_ >= 0.0
    np.testing.assert_array_equal(np.bincount(solver.labels_), [3, 3])
    # the most similar pairs are split up
    assert solver.labels_[0] != solver.labels_[1]
    assert solver.labels_[4] != solver.labels_[5]


def test_exact_solver_has_no_refitting_predict():
    assert not hasattr(ILPAntiCluster, "predict")
    assert callable(ILPAntiCluster.fit_predict)
