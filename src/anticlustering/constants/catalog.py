# src/<project>/catalog.py
class Catalog:
    """String constants for dataset names."""

    class Data:
        FEATURES                = "anticluster_features"     # input table, one row per element
        ANTICLUSTER_ASSIGNMENTS = "anticluster_assignments"  # group label per row
