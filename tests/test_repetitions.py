import logging

import numpy as np
import pytest

from anticlustering.metrics.dissimilarity_matrix import get_dissimilarity_matrix
from anticlustering.solvers.assignment import group_sizes
from anticlustering.solvers.objectives import DiversityObjective
from anticlustering.solvers.repetitions import RepetitionDriver


@pytest.fixture
def objective(features):
    return DiversityObjective(get_dissimilarity_matrix(features))


def test_best_of_repetitions(objective):
    driver = RepetitionDriver(objective, group_sizes(30, 3), repetitions=5, random_state=42)
    best = driver.run()
    singles = [driver.run_single(r) for r in range(5)]
    assert best.score == pytest.approx(max(s.score for s in singles))
    assert all(best.score >= s.score for s in singles)


def test_threads_give_the_same_result(objective):
    kwargs = dict(repetitions=4, random_state=42, method="local-maximum")
    serial = RepetitionDriver(objective, group_sizes(30, 3), n_jobs=1, **kwargs).run()
    threaded = RepetitionDriver(objective, group_sizes(30, 3), n_jobs=3, **kwargs).run()
    np.testing.assert_array_equal(serial.labels, threaded.labels)
    assert serial.score == pytest.approx(threaded.score)


def test_initial_labels_seed_first_repetition(objective):
    initial = np.repeat([0, 1, 2], 10)
    driver = RepetitionDriver(
        objective, group_sizes(30, 3), repetitions=2, initial_labels=initial, random_state=0
    )
    seeds = driver.seeds()
    np.testing.assert_array_equal(driver.start_labels(0, seeds[0]), initial)
    other = driver.start_labels(1, seeds[1])
    np.testing.assert_array_equal(np.bincount(other), [10, 10, 10])


def test_repetitions_must_be_positive(objective):
    with pytest.raises(ValueError):
        RepetitionDriver(objective, group_sizes(30, 3), repetitions=0)


def test_initial_labels_are_rebalanced_under_constraints(objective, caplog):
    initial = np.repeat([0, 1], 15)
    pairs = np.repeat(np.arange(15), 2)
    driver = RepetitionDriver(
        objective, np.array([15, 15]), categories=pairs, initial_labels=initial, random_state=0
    )
    with caplog.at_level(logging.WARNING):
        start = driver.start_labels(0, driver.seeds()[0])
    assert "rebalanced" in caplog.text
    np.testing.assert_array_equal(np.bincount(start), [15, 15])
    for cls in range(15):
        assert start[2 * cls] != start[2 * cls + 1]

    result = driver.run()
    for cls in range(15):
        assert result.labels[2 * cls] != result.labels[2 * cls + 1]


def test_balanced_initial_labels_are_kept(objective):
    initial = np.tile([0, 1], 15)
    pairs = np.repeat(np.arange(15), 2)
    driver = RepetitionDriver(
        objective, np.array([15, 15]), categories=pairs, initial_labels=initial
    )
    np.testing.assert_array_equal(driver.start_labels(0, driver.seeds()[0]), initial)
