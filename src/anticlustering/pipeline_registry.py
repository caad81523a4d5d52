"""Project pipelines."""

from kedro.pipeline import Pipeline

from anticlustering.pipelines.anticluster import create_pipeline as anticluster_pl


def register_pipelines() -> dict[str, Pipeline]:
    """Register the project's pipelines.

    Returns:
        A mapping from pipeline names to ``Pipeline`` objects.
    """
    anticluster = anticluster_pl()
    return {
        "__default__": anticluster,
        "anticluster": anticluster,
    }
