"""
anticlustering – public API
"""
from importlib.metadata import PackageNotFoundError, version as _pkg_version

from .core import (
    AntiCluster,
    ExchangeAntiCluster,
    ExchangeConfig,
    ILPAntiCluster,
    ILPConfig,
    InvalidInputError,
    LocalMaximumAntiCluster,
    ObjectiveMismatchError,
    PreClusterILPAntiCluster,
    SolverUnavailableError,
    anticlustering,
    get_solver,
)
from .metrics import diversity_objective, kplus_objective, variance_objective
from .solvers import matching, merge_categories

__all__ = [
    "anticlustering",
    "AntiCluster",
    "ExchangeAntiCluster",
    "LocalMaximumAntiCluster",
    "ILPAntiCluster",
    "PreClusterILPAntiCluster",
    "ExchangeConfig",
    "ILPConfig",
    "InvalidInputError",
    "ObjectiveMismatchError",
    "SolverUnavailableError",
    "get_solver",
    "diversity_objective",
    "variance_objective",
    "kplus_objective",
    "matching",
    "merge_categories",
    "__version__",
]

try:
    __version__ = _pkg_version(__name__)
except PackageNotFoundError:  # running from a source checkout
    __version__ = "0.0.0"
