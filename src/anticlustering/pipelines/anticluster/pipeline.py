from kedro.pipeline import Pipeline, node

from ...constants import Parameters as P, Catalog as C
from .nodes import assign_anticlusters


def create_pipeline(**kwargs):
    """
    One-node pipeline:
        Input  : feature table + ``anticluster`` parameters
        Outputs: group label per row
    """
    return Pipeline(
        [
            node(
                func=assign_anticlusters,
                inputs=[
                    C.Data.FEATURES,
                    P.Anticluster.ALL,
                ],
                outputs=C.Data.ANTICLUSTER_ASSIGNMENTS,
                name="assign_anticlusters",
            ),
        ]
    )
