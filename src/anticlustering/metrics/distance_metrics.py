"""
Pairwise distance kernels used by the objectives and the matching heuristic.
"""
import numpy as np
from scipy.spatial.distance import cdist

def compute_euclidean_distances(data: np.ndarray) -> np.ndarray:
    """
    Compute pairwise Euclidean distances.

    """
    return cdist(data, data, metric='euclidean')
