import logging
from typing import Literal, Optional

import numpy as np

from ..core.exceptions import InvalidInputError
from ..metrics.dissimilarity_matrix import as_distances, to_matrix

_LOG = logging.getLogger(__name__)

Order = Literal["extreme", "index", "random"]
UNMATCHED = -1


class MatchingHeuristic:
    """
    Greedy nearest-neighbour matching of elements into small groups ("matches")
    of ``p`` mutually similar elements.

    Procedure:
      1. Order the unmatched elements by the ordering policy.
      2. Take the next unmatched element and its ``p-1`` nearest unmatched
         neighbours (ties broken by lower index); they form one match.
      3. Remove them from the pool and repeat until fewer than ``p``
         elements are left. Those leftovers stay unmatched (``-1``).

    Ordering policies:
      * ``"extreme"`` (default) – elements with the largest mean distance to
        the other elements of their pool are matched first, so that outliers
        still find reasonably close partners;
      * ``"index"``  – ascending row order;
      * ``"random"`` – a seeded random permutation.
    """

    def __init__(
        self,
        D: np.ndarray,
        p: int,
        *,
        order: Order = "extreme",
        random_state: Optional[int] = None,
    ):
        """
        Parameters
        ----------
        D : np.ndarray, shape (N, N)
            Dissimilarity matrix.
        p : int
            Size of a match.
        order : {"extreme", "index", "random"}
            Which unmatched element is matched next.
        random_state : int, optional
            Seed for ``order="random"``.
        """
        N = D.shape[0]
        if p < 2 or p > N:
            raise InvalidInputError(f"Match size p must lie in [2, N={N}], got p={p}")
        if order not in ("extreme", "index", "random"):
            raise InvalidInputError(f"Unknown matching order '{order}'")
        self.D = D
        self.N = N
        self.p = p
        self.order = order
        self.rng = np.random.default_rng(random_state)

    # ------------------------------------------------------------------ #
    def solve(
        self,
        match_within: Optional[np.ndarray] = None,
        match_between: Optional[np.ndarray] = None,
        sort_output: bool = True,
    ) -> np.ndarray:
        """
        Run the matching.

        Parameters
        ----------
        match_within : np.ndarray, shape (N,), optional
            Matches are only formed among elements sharing a label.
        match_between : np.ndarray, shape (N,), optional
            Every match takes exactly one element of each label; the match
            size then equals the number of labels.
        sort_output : bool
            Renumber matches so that the most similar one gets id 0.

        Returns
        -------
        np.ndarray, shape (N,)
            Match id per element, ``-1`` for elements left unmatched.
        """
        for name, lab in (("match_within", match_within), ("match_between", match_between)):
            if lab is not None and len(lab) != self.N:
                raise InvalidInputError(f"{name} has length {len(lab)}, expected N={self.N}")

        matches = np.full(self.N, UNMATCHED, dtype=int)
        if match_within is None:
            pools = [np.arange(self.N)]
        else:
            match_within = np.asarray(match_within)
            pools = [np.flatnonzero(match_within == c) for c in np.unique(match_within)]

        next_id = 0
        for pool in pools:
            if match_between is None:
                next_id = self._match_pool(pool, matches, next_id)
            else:
                next_id = self._match_between(pool, np.asarray(match_between), matches, next_id)

        n_left = int(np.sum(matches == UNMATCHED))
        _LOG.debug("Matching formed %d matches of size %d, %d element(s) unmatched",
                   next_id, self.p, n_left)

        if sort_output:
            matches = self._sort_by_similarity(matches)
        return matches

    # ------------------------------------------------------------------ #
    def _ordered(self, pool: np.ndarray) -> np.ndarray:
        if self.order == "index":
            return pool
        if self.order == "random":
            return self.rng.permutation(pool)
        if len(pool) < 2:
            return pool
        sub = self.D[np.ix_(pool, pool)]
        extremity = sub.sum(axis=1) / (len(pool) - 1)
        return pool[np.argsort(-extremity, kind="stable")]

    def _match_pool(self, pool: np.ndarray, matches: np.ndarray, next_id: int) -> int:
        free = np.zeros(self.N, dtype=bool)
        free[pool] = True
        for i in self._ordered(pool):
            if not free[i]:
                continue
            cand = pool[free[pool]]
            cand = cand[cand != i]
            if len(cand) < self.p - 1:
                break
            nearest = cand[np.argsort(self.D[i, cand], kind="stable")[: self.p - 1]]
            members = np.append(nearest, i)
            matches[members] = next_id
            free[members] = False
            next_id += 1
        return next_id

    def _match_between(
        self,
        pool: np.ndarray,
        between: np.ndarray,
        matches: np.ndarray,
        next_id: int,
    ) -> int:
        classes = np.unique(between[pool])
        if len(classes) < 2:
            _LOG.debug("Pool of %d element(s) has a single match_between class; left unmatched",
                       len(pool))
            return next_id
        members = {c: pool[between[pool] == c] for c in classes}
        # anchors come from the smallest class; ties go to the first class
        anchor_cls = min(classes, key=lambda c: len(members[c]))
        others = [c for c in classes if c != anchor_cls]
        free = np.zeros(self.N, dtype=bool)
        free[pool] = True

        for a in self._ordered(members[anchor_cls]):
            group = [a]
            for c in others:
                cand = members[c][free[members[c]]]
                if len(cand) == 0:
                    return next_id
                group.append(cand[np.argmin(self.D[a, cand])])
            matches[group] = next_id
            free[group] = False
            next_id += 1
        return next_id

    def _sort_by_similarity(self, matches: np.ndarray) -> np.ndarray:
        ids = np.unique(matches[matches != UNMATCHED])
        if len(ids) == 0:
            return matches
        within = np.empty(len(ids))
        for k, m in enumerate(ids):
            idx = np.flatnonzero(matches == m)
            within[k] = self.D[np.ix_(idx, idx)].sum() / 2
        rank = np.empty(len(ids), dtype=int)
        rank[np.argsort(within, kind="stable")] = np.arange(len(ids))
        out = matches.copy()
        for k, m in enumerate(ids):
            out[matches == m] = rank[k]
        return out


# ---------------------------------------------------------------------- #
# functional interface
# ---------------------------------------------------------------------- #
def matching(
    data,
    p: Optional[int] = 2,
    *,
    match_within=None,
    match_between=None,
    order: Order = "extreme",
    sort_output: bool = True,
    random_state: Optional[int] = None,
) -> np.ndarray:
    """
    Match elements of a feature table or dissimilarity matrix into groups of
    ``p`` similar elements. See :class:`MatchingHeuristic`.

    With ``match_between`` the match size is the number of distinct labels;
    ``p`` may be ``None`` or must agree with it.
    """
    X, is_distance = to_matrix(data)
    D = as_distances(X, is_distance)
    if match_between is not None:
        n_between = len(np.unique(np.asarray(match_between)))
        if p is not None and p != n_between:
            raise InvalidInputError(
                f"p={p} does not match the {n_between} match_between classes"
            )
        p = n_between
    elif p is None:
        raise InvalidInputError("p is required unless match_between is given")
    return MatchingHeuristic(D, p, order=order, random_state=random_state).solve(
        match_within=match_within,
        match_between=match_between,
        sort_output=sort_output,
    )


def replace_unmatched(matches: np.ndarray) -> np.ndarray:
    """Give every unmatched element (``-1``) its own fresh match id."""
    matches = np.asarray(matches, dtype=int).copy()
    missing = matches == UNMATCHED
    n_missing = int(missing.sum())
    if n_missing == 0:
        return matches
    start = matches.max(initial=UNMATCHED) + 1
    matches[missing] = np.arange(start, start + n_missing)
    return matches


def precluster(
    D: np.ndarray,
    n_clusters: int,
    categories: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Constraint partition for the exchange method: matches of ``K`` similar
    elements (within each category, if given) that must end up in different
    groups. Leftover elements become singletons.
    """
    matches = MatchingHeuristic(D, n_clusters).solve(
        match_within=categories, sort_output=False
    )
    partition = replace_unmatched(matches)
    _LOG.info("Preclustering: %d constraint classes for N=%d, K=%d",
              len(np.unique(partition)), D.shape[0], n_clusters)
    return partition


__all__ = ["MatchingHeuristic", "matching", "replace_unmatched", "precluster"]
