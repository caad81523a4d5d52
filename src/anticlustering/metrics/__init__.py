from .dissimilarity_matrix import (
    diversity_objective,
    get_dissimilarity_matrix,
    is_distance_matrix,
    kplus_objective,
    to_matrix,
    variance_objective,
)
