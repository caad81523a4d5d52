"""
Restart driver: run the exchange heuristic from several random initial
assignments and keep the best result.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Optional
import logging

import numpy as np

from .assignment import (
    class_excess,
    initial_assignment,
    repair_assignment,
    stratified_assignment,
)
from .exchange_heuristic import ExchangeHeuristic, ExchangeResult, Method
from .objectives import ObjectiveFunction

_LOG = logging.getLogger(__name__)


class RepetitionDriver:
    """
    Best-of-R exchange optimisation.

    Every repetition starts from its own random assignment (group sizes fixed,
    stratified over the constraint partition if there is one) drawn from an
    independent child seed of ``random_state``. When the caller supplied an
    initial assignment, repetition 0 starts from it (repaired to spread the
    constraint classes, if needed).

    Repetitions share the objective data and the constraint partition
    read-only; with ``n_jobs > 1`` they run in a thread pool.
    """

    def __init__(
        self,
        objective: ObjectiveFunction,
        sizes: np.ndarray,
        *,
        categories: Optional[np.ndarray] = None,
        method: Method = "exchange",
        repetitions: int = 1,
        initial_labels: Optional[np.ndarray] = None,
        random_state: Optional[int] = None,
        n_jobs: int = 1,
        tol: float = 1e-10,
        max_passes: Optional[int] = None,
    ):
        if repetitions < 1:
            raise ValueError(f"repetitions must be >= 1, got {repetitions}")
        self.objective = objective
        self.sizes = np.asarray(sizes, dtype=int)
        self.categories = categories
        self.repetitions = repetitions
        self.initial_labels = initial_labels
        self.random_state = random_state
        self.n_jobs = max(1, int(n_jobs))
        self.heuristic = ExchangeHeuristic(
            objective,
            categories=categories,
            method=method,
            tol=tol,
            max_passes=max_passes,
        )

    def seeds(self) -> list[np.random.SeedSequence]:
        """One independent seed per repetition."""
        return np.random.SeedSequence(self.random_state).spawn(self.repetitions)

    def start_labels(self, rep: int, seed: np.random.SeedSequence) -> np.ndarray:
        """
        Initial assignment of repetition *rep*.

        Under a constraint partition the caller's assignment is repaired
        first, since exchanges within a class never change how the class is
        spread over the groups. When the repair cannot reach the balance of a
        stratified draw with the same group sizes, that draw is used instead.
        """
        rng = np.random.default_rng(seed)
        if rep == 0 and self.initial_labels is not None:
            labels = np.asarray(self.initial_labels, dtype=int).copy()
            if self.categories is None:
                return labels
            return self._balanced(labels, rng)
        return initial_assignment(self.sizes, rng, self.categories)

    def _balanced(self, labels: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        K = len(self.sizes)
        before = class_excess(labels, self.categories, K)
        if before == 0:
            return labels
        repaired = repair_assignment(labels, self.categories, K)
        after = class_excess(repaired, self.categories, K)
        if after > 0:
            drawn = stratified_assignment(self.categories, self.sizes, rng)
            if class_excess(drawn, self.categories, K) < after:
                _LOG.warning(
                    "Initial assignment could not be repaired to balance the constraint "
                    "classes; starting from a stratified assignment with the same group sizes."
                )
                return drawn
        _LOG.warning(
            "Initial assignment rebalanced for the constraint classes: %d misplaced "
            "member(s) before, %d after.", before, after,
        )
        return repaired

    def run_single(self, rep: int, seed: Optional[np.random.SeedSequence] = None) -> ExchangeResult:
        """Run repetition *rep* (with its own seed unless *seed* is given)."""
        if seed is None:
            seed = self.seeds()[rep]
        labels = self.start_labels(rep, seed)
        result = self.heuristic.run(labels, n_clusters=len(self.sizes))
        _LOG.debug("Repetition %d: score=%.6f after %d pass(es), %d swap(s)",
                   rep, result.score, result.n_passes, result.n_swaps)
        return result

    def run(self) -> ExchangeResult:
        """Run all repetitions and return the one with the highest objective."""
        seeds = self.seeds()
        reps = range(self.repetitions)
        if self.n_jobs > 1 and self.repetitions > 1:
            with ThreadPoolExecutor(max_workers=self.n_jobs) as executor:
                results = list(executor.map(self.run_single, reps, seeds))
        else:
            results = [self.run_single(r, s) for r, s in zip(reps, seeds)]

        # max() keeps the first of equal scores, i.e. the lowest repetition
        best = max(results, key=lambda res: res.score)
        _LOG.info("Best of %d repetition(s): score=%.6f", self.repetitions, best.score)
        return best


__all__ = ["RepetitionDriver"]
