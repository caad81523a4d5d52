import numpy as np
import pytest

from anticlustering import ExchangeAntiCluster, ExchangeConfig, LocalMaximumAntiCluster
from anticlustering.core.exceptions import InvalidInputError
from anticlustering.metrics.dissimilarity_matrix import (
    diversity_objective,
    get_dissimilarity_matrix,
    variance_objective,
)
from anticlustering.solvers.assignment import (
    group_sizes,
    random_assignment,
    stratified_assignment,
)
from anticlustering.solvers.exchange_heuristic import ExchangeHeuristic
from anticlustering.solvers.objectives import DiversityObjective, VarianceObjective


def test_six_points_improve_on_sorted_start(six_points):
    objective = DiversityObjective(get_dissimilarity_matrix(six_points))
    start = np.array([0, 0, 0, 1, 1, 1])
    assert objective(start) == pytest.approx(8.0)

    result = ExchangeHeuristic(objective).run(start)
    assert result.score > 8.0
    np.testing.assert_array_equal(np.bincount(result.labels), [3, 3])
    # the start vector is not modified
    np.testing.assert_array_equal(start, [0, 0, 0, 1, 1, 1])


def test_variance_splits_duplicates():
    X = np.array([[0.0], [0.0], [5.0], [5.0]])
    result = ExchangeHeuristic(VarianceObjective(X)).run(np.array([0, 0, 1, 1]))
    for g in (0, 1):
        np.testing.assert_array_equal(np.sort(X[result.labels == g, 0]), [0.0, 5.0])
    assert result.score == pytest.approx(25.0)


@pytest.mark.parametrize("method", ["exchange", "local-maximum"])
def test_swaps_preserve_group_sizes(method, features, rng):
    sizes = group_sizes(30, 4)
    start = random_assignment(sizes, rng)
    result = ExchangeHeuristic(VarianceObjective(features), method=method).run(start)
    np.testing.assert_array_equal(np.bincount(result.labels), sizes)
    assert result.score >= variance_objective(features, start)


def test_history_is_monotone(features, rng):
    objective = DiversityObjective(get_dissimilarity_matrix(features))
    start = random_assignment(group_sizes(30, 3), rng)
    result = ExchangeHeuristic(objective, method="local-maximum", track_history=True).run(start)

    assert len(result.history) == result.n_swaps + 1
    assert np.all(np.diff(result.history) > 0)
    assert result.history[-1] == pytest.approx(result.score)


def test_local_maximum_is_a_fixed_point(features, rng):
    objective = DiversityObjective(get_dissimilarity_matrix(features))
    start = random_assignment(group_sizes(30, 3), rng)
    result = ExchangeHeuristic(objective, method="local-maximum").run(start)
    assert result.n_passes >= 1

    again = ExchangeHeuristic(objective, method="exchange").run(result.labels)
    assert again.n_swaps == 0
    np.testing.assert_array_equal(again.labels, result.labels)


def test_max_passes_bounds_local_maximum(features, rng):
    objective = VarianceObjective(features)
    start = random_assignment(group_sizes(30, 3), rng)
    result = ExchangeHeuristic(objective, method="local-maximum", max_passes=1).run(start)
    assert result.n_passes == 1


def test_constraint_classes_stay_separated(features, rng):
    # 10 classes of 3 elements, K = 3
    partition = np.repeat(np.arange(10), 3)
    sizes = group_sizes(30, 3)
    start = stratified_assignment(partition, sizes, rng)
    objective = DiversityObjective(get_dissimilarity_matrix(features))

    result = ExchangeHeuristic(objective, categories=partition, method="local-maximum").run(start)
    for cls in range(10):
        assert len(np.unique(result.labels[partition == cls])) == 3


def test_unknown_method_raises(features):
    with pytest.raises(ValueError):
        ExchangeHeuristic(VarianceObjective(features), method="greedy")


# ---------------------------------------------------------------------- #
# solver class
# ---------------------------------------------------------------------- #
def test_solver_fit_sets_results(features):
    cfg = ExchangeConfig(n_clusters=3, objective="variance", random_state=7)
    solver = ExchangeAntiCluster(cfg).fit(features)

    assert solver.labels_.shape == (30,)
    np.testing.assert_array_equal(np.bincount(solver.labels_), [10, 10, 10])
    assert solver.score_ == pytest.approx(variance_objective(features, solver.labels_))
    assert solver.status_ == "heuristic"
    assert solver.runtime_ >= 0.0
    assert solver.n_passes_ == 1
    assert solver.constraints_ is None
    np.testing.assert_array_equal(solver.group_sizes_, [10, 10, 10])
    assert "heuristic" in repr(solver)


def test_solver_is_reproducible(features):
    cfg = dict(n_clusters=3, random_state=11, repetitions=3)
    a = ExchangeAntiCluster(ExchangeConfig(**cfg)).fit_predict(features)
    b = ExchangeAntiCluster(ExchangeConfig(**cfg)).fit_predict(features)
    np.testing.assert_array_equal(a, b)


def test_solver_accepts_distance_matrix(features):
    D = get_dissimilarity_matrix(features)
    solver = ExchangeAntiCluster(ExchangeConfig(n_clusters=2, random_state=0)).fit(D=D)
    assert solver.score_ == pytest.approx(diversity_objective(D, solver.labels_))


def test_solver_rejects_non_distance_matrix(features):
    with pytest.raises(InvalidInputError):
        ExchangeAntiCluster(ExchangeConfig(n_clusters=2)).fit(D=features)


def test_initial_labels_fix_k_and_sizes(features):
    initial = np.array([5] * 20 + [9] * 10)
    cfg = ExchangeConfig(n_clusters=2, initial_labels=initial, random_state=0)
    solver = ExchangeAntiCluster(cfg).fit(features)
    np.testing.assert_array_equal(np.bincount(solver.labels_), [20, 10])
    assert solver.score_ >= diversity_objective(features, initial)


def test_categories_are_balanced(features):
    categories = np.array(["a"] * 12 + ["b"] * 18)
    cfg = ExchangeConfig(n_clusters=3, categories=categories, random_state=3)
    labels = ExchangeAntiCluster(cfg).fit_predict(features)
    for value, size in (("a", 12), ("b", 18)):
        counts = np.bincount(labels[categories == value], minlength=3)
        np.testing.assert_array_equal(counts, [size // 3] * 3)


def test_preclustering_separates_matches(features):
    cfg = ExchangeConfig(n_clusters=3, preclustering=True, random_state=1)
    solver = ExchangeAntiCluster(cfg).fit(features)
    partition = solver.constraints_
    assert partition is not None
    for cls in np.unique(partition):
        members = solver.labels_[partition == cls]
        assert len(np.unique(members)) == len(members)


def test_local_maximum_solver_forces_method(features):
    solver = LocalMaximumAntiCluster(ExchangeConfig(n_clusters=2, method="exchange", random_state=0))
    assert solver.cfg.method == "local-maximum"
    solver.fit(features)
    assert solver.n_passes_ >= 1


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(n_clusters=1),
        dict(n_clusters=31),
        dict(n_clusters=2, method="greedy"),
        dict(n_clusters=2, repetitions=0),
        dict(n_clusters=2, initial_labels=np.zeros(30, dtype=int)),
        dict(n_clusters=2, initial_labels=np.array([0, 1])),
        dict(n_clusters=2, categories=np.zeros(29)),
    ],
)
def test_solver_validation(kwargs, features):
    with pytest.raises(InvalidInputError):
        ExchangeAntiCluster(ExchangeConfig(**kwargs)).fit(features)


def test_unfitted_solver_raises():
    with pytest.raises(RuntimeError):
        ExchangeAntiCluster(ExchangeConfig(n_clusters=2)).labels_


def test_preclustering_matches_stay_inside_categories(features):
    site = np.repeat(["a", "b"], 15)
    cfg = ExchangeConfig(n_clusters=3, preclustering=True, categories=site, random_state=2)
    solver = ExchangeAntiCluster(cfg).fit(features)

    partition = solver.constraints_
    np.testing.assert_array_equal(solver.group_sizes_, [10, 10, 10])
    for m in np.unique(partition):
        members = partition == m
        assert len(np.unique(site[members])) == 1
        assert len(np.unique(solver.labels_[members])) == members.sum()
