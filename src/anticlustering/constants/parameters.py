# src/<project>/parameters.py
class Parameters:
    """String constants for YAML parameter paths."""

    class Anticluster:
        ALL             = "params:anticluster"   # k, objective, method, preclustering, repetitions, ...
