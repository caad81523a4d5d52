"""
Initial assignments for the exchange heuristic.

Group-size policy: with ``K`` groups and ``N`` elements, the first
``N mod K`` groups receive one element more than the others.
"""
from __future__ import annotations

from typing import Optional
import logging

import numpy as np

from ..core.exceptions import InvalidInputError

_LOG = logging.getLogger(__name__)


def group_sizes(n_items: int, n_clusters: int) -> np.ndarray:
    """Sizes of ``n_clusters`` groups covering ``n_items`` elements."""
    if n_clusters <= 1:
        raise InvalidInputError(f"K must be >= 2, got K={n_clusters}")
    if n_clusters > n_items:
        raise InvalidInputError(f"K={n_clusters} exceeds the number of elements N={n_items}")
    base, extra = divmod(n_items, n_clusters)
    sizes = np.full(n_clusters, base, dtype=int)
    sizes[:extra] += 1
    return sizes


def labels_from_sizes(sizes: np.ndarray) -> np.ndarray:
    """Sorted label vector ``[0, .., 0, 1, .., K-1]`` with the given group sizes."""
    return np.repeat(np.arange(len(sizes)), sizes)


def normalize_labels(labels) -> tuple[np.ndarray, np.ndarray]:
    """
    Map an arbitrary label vector onto ``0 .. K-1``.

    Returns
    -------
    labels : np.ndarray
        Integer codes in the sorted order of the distinct input labels.
    sizes : np.ndarray
        Number of elements per code.
    """
    labels = np.asarray(labels)
    if labels.ndim != 1:
        raise InvalidInputError("an initial assignment must be a 1-D vector")
    _, codes, sizes = np.unique(labels, return_inverse=True, return_counts=True)
    return codes.astype(int), sizes.astype(int)


def random_assignment(sizes: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Uniformly random labels with exactly the requested group sizes."""
    labels = labels_from_sizes(sizes)
    rng.shuffle(labels)
    return labels


def stratified_assignment(
    partition: np.ndarray,
    sizes: np.ndarray,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Random labels with the requested group sizes that spread every
    constraint class as evenly as possible across groups.

    Classes are visited in random order and their (shuffled) members are
    dealt to the groups in turn, skipping groups that are already full. With
    the sizes of :func:`group_sizes` a class of size ``s`` therefore puts at
    most ``ceil(s / K)`` members into any group, and a class with ``s <= K``
    members ends up in ``s`` distinct groups. Other size vectors are served
    best-effort.

    Parameters
    ----------
    partition : np.ndarray, shape (N,)
        Constraint class of every element.
    sizes : np.ndarray, shape (K,)
        Target group sizes; must sum to N.
    rng : np.random.Generator
        Source of randomness.
    """
    partition = np.asarray(partition)
    N = partition.shape[0]
    if int(np.sum(sizes)) != N:
        raise InvalidInputError(f"group sizes sum to {int(np.sum(sizes))}, expected N={N}")

    K = len(sizes)
    capacity = np.asarray(sizes, dtype=int).copy()
    labels = np.full(N, -1, dtype=int)

    classes = np.unique(partition)
    rng.shuffle(classes)
    # dealing starts at group 0: with the default size policy no group is
    # ever full before the last element, so nothing is skipped
    g = 0
    for cls in classes:
        members = np.flatnonzero(partition == cls)
        rng.shuffle(members)
        for i in members:
            while capacity[g] == 0:
                g = (g + 1) % K
            labels[i] = g
            capacity[g] -= 1
            g = (g + 1) % K

    _LOG.debug("Stratified assignment over %d classes, sizes=%s", len(classes), sizes)
    return labels


def _class_counts(labels: np.ndarray, partition: np.ndarray, n_clusters: int):
    _, codes, sizes = np.unique(partition, return_inverse=True, return_counts=True)
    counts = np.zeros((len(sizes), n_clusters), dtype=int)
    np.add.at(counts, (codes, labels), 1)
    caps = -(-sizes // n_clusters)  # ceil(size / K)
    return codes, counts, caps


def class_excess(labels: np.ndarray, partition: np.ndarray, n_clusters: int) -> int:
    """Members placed beyond ``ceil(size / K)`` of their class in some group, summed."""
    _, counts, caps = _class_counts(np.asarray(labels), np.asarray(partition), n_clusters)
    return int(np.clip(counts - caps[:, None], 0, None).sum())


def repair_assignment(
    labels: np.ndarray,
    partition: np.ndarray,
    n_clusters: int,
) -> np.ndarray:
    """
    Spread the constraint classes of an existing assignment by swapping
    elements between groups, keeping group sizes and as many labels as
    possible.

    A member of a class holding more than ``ceil(size / K)`` elements in its
    group is swapped with an element of a group that still has room for the
    class, provided the partner's own class has room in the first group.
    Every swap lowers :func:`class_excess`; the repair stops when the excess
    is zero or no such swap exists.
    """
    labels = np.asarray(labels, dtype=int).copy()
    codes, counts, caps = _class_counts(labels, np.asarray(partition), n_clusters)

    for c in range(len(caps)):
        for g in range(n_clusters):
            while counts[c, g] > caps[c]:
                i = np.flatnonzero((codes == c) & (labels == g))[0]
                partner = None
                for h in np.argsort(counts[c], kind="stable"):
                    if counts[c, h] >= caps[c]:
                        break
                    cand = np.flatnonzero((labels == h) & (codes != c))
                    cand = cand[counts[codes[cand], g] < caps[codes[cand]]]
                    if len(cand):
                        partner = (int(h), int(cand[0]))
                        break
                if partner is None:
                    break
                h, j = partner
                labels[i], labels[j] = h, g
                counts[c, g] -= 1
                counts[c, h] += 1
                counts[codes[j], h] -= 1
                counts[codes[j], g] += 1
    return labels


def initial_assignment(
    sizes: np.ndarray,
    rng: np.random.Generator,
    partition: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Random initial labels; stratified over *partition* when one is given."""
    if partition is None:
        return random_assignment(sizes, rng)
    return stratified_assignment(partition, sizes, rng)


__all__ = [
    "group_sizes",
    "labels_from_sizes",
    "normalize_labels",
    "random_assignment",
    "stratified_assignment",
    "initial_assignment",
    "class_excess",
    "repair_assignment",
]
