
from ._registry import available_solvers, get_solver, register_solver
from .base import AntiCluster, BaseConfig
from ._config import ExchangeConfig, ILPConfig, Status
from .exceptions import (
    AnticlusteringError,
    InvalidInputError,
    ObjectiveMismatchError,
    SolverUnavailableError,
)
from .exchange import ExchangeAntiCluster, LocalMaximumAntiCluster
from .ilp import ILPAntiCluster, PreClusterILPAntiCluster
from .api import anticlustering
