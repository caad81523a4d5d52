import numpy as np
import pytest

from anticlustering.core.exceptions import InvalidInputError
from anticlustering.metrics.dissimilarity_matrix import get_dissimilarity_matrix
from anticlustering.solvers.matching_heuristic import (
    UNMATCHED,
    MatchingHeuristic,
    matching,
    precluster,
    replace_unmatched,
)


def test_matches_similar_elements(six_points):
    matches = matching(six_points, p=3)
    np.testing.assert_array_equal(matches, [0, 0, 0, 1, 1, 1])


@pytest.mark.parametrize("order", ["extreme", "index", "random"])
def test_match_sizes_and_leftovers(order, rng):
    X = rng.normal(size=(11, 2))
    matches = matching(X, p=3, order=order, random_state=3)
    ids, counts = np.unique(matches[matches != UNMATCHED], return_counts=True)
    assert len(ids) == 3
    assert np.all(counts == 3)
    assert np.sum(matches == UNMATCHED) == 2


def test_sort_output_ranks_tightest_match_first():
    x = np.array([0.0, 5.0, 20.0, 20.5, 40.0, 42.0])
    matches = matching(x, p=2, order="index")
    np.testing.assert_array_equal(matches, [2, 2, 0, 0, 1, 1])
    unsorted = matching(x, p=2, order="index", sort_output=False)
    np.testing.assert_array_equal(unsorted, [0, 0, 1, 1, 2, 2])


def test_match_within_keeps_matches_inside_a_class(rng):
    X = rng.normal(size=(12, 2))
    within = np.array([0, 1] * 6)
    matches = matching(X, p=2, match_within=within)
    for m in np.unique(matches):
        assert len(np.unique(within[matches == m])) == 1


def test_match_between_takes_one_per_class(rng):
    X = rng.normal(size=(12, 2))
    between = np.array([0, 1, 2] * 4)
    matches = matching(X, p=None, match_between=between)
    assert np.all(matches != UNMATCHED)
    for m in np.unique(matches):
        np.testing.assert_array_equal(np.sort(between[matches == m]), [0, 1, 2])


def test_match_between_with_unequal_classes(rng):
    X = rng.normal(size=(7, 2))
    between = np.array([0, 0, 0, 0, 1, 1, 1])
    matches = matching(X, p=2, match_between=between)
    assert np.sum(matches == UNMATCHED) == 1
    assert np.all(matches[between == 1] != UNMATCHED)


def test_invalid_match_requests(six_points):
    with pytest.raises(InvalidInputError):
        matching(six_points, p=3, match_between=[0, 1, 0, 1, 0, 1])
    with pytest.raises(InvalidInputError):
        matching(six_points, p=None)
    with pytest.raises(InvalidInputError):
        matching(six_points, p=7)
    with pytest.raises(InvalidInputError):
        MatchingHeuristic(get_dissimilarity_matrix(six_points), 2, order="largest")


def test_replace_unmatched():
    out = replace_unmatched(np.array([0, -1, 1, -1]))
    np.testing.assert_array_equal(out, [0, 2, 1, 3])
    np.testing.assert_array_equal(replace_unmatched([0, 0]), [0, 0])


def test_precluster_partition(six_points):
    D = get_dissimilarity_matrix(np.append(six_points, 6.0))
    partition = precluster(D, 3)
    assert partition[0] == partition[1] == partition[2]
    assert partition[3] == partition[4] == partition[5]
    # the leftover element is a class of its own
    assert np.sum(partition == partition[6]) == 1
