"""
Algorithmic building blocks behind the solver classes in ``anticlustering.core``.
"""
from .assignment import group_sizes, random_assignment, stratified_assignment
from .categories import merge_categories
from .edge_ilp import EdgeILP, PyomoEdgeSolver
from .exchange_heuristic import ExchangeHeuristic, ExchangeResult
from .matching_heuristic import MatchingHeuristic, matching, precluster, replace_unmatched
from .objectives import (
    CallableObjective,
    DiversityObjective,
    ObjectiveFunction,
    VarianceObjective,
    make_objective,
)
from .repetitions import RepetitionDriver
