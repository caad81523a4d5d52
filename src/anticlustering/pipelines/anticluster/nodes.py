from typing import Any, Dict, List, Optional
import logging

import pandas as pd

from ...core import anticlustering
from ...core.exceptions import InvalidInputError

_LOG = logging.getLogger(__name__)


def _select_columns(
    features    : pd.DataFrame,
    columns     : Optional[List[str]],
    what        : str,
) -> pd.DataFrame:
    if not columns:
        return features.iloc[:, 0:0]
    missing = [c for c in columns if c not in features.columns]
    if missing:
        raise InvalidInputError(f"{what} column(s) not found in the input table: {missing}")
    return features[list(columns)]


def assign_anticlusters(
    features    : pd.DataFrame,
    params      : Dict[str, Any],
) -> pd.Series:
    """
    Run anticlustering on a table with one row per element.

    Parameters
    ----------
    features : pd.DataFrame
        Input table. Numeric feature columns are taken from
        ``params["feature_columns"]`` (all numeric non-category columns if
        absent),
        categorical variables from ``params["category_columns"]``.
    params : dict
        ``anticluster`` block of the parameters file: ``k``, ``objective``,
        ``method``, ``preclustering``, ``repetitions``, ``random_state``.

    Returns
    -------
    pd.Series
        Group label per row, indexed like *features*, named ``anticluster``.
    """
    cats = _select_columns(features, params.get("category_columns"), "category")
    feature_cols = params.get("feature_columns")
    if feature_cols:
        X = _select_columns(features, feature_cols, "feature")
    else:
        X = features.select_dtypes("number").drop(columns=cats.columns, errors="ignore")

    _LOG.info("Anticlustering %d rows on %d feature column(s), %d categorical column(s)",
              len(features), X.shape[1], cats.shape[1])

    labels = anticlustering(
        X,
        K=int(params.get("k", 2)),
        objective=params.get("objective", "diversity"),
        method=params.get("method", "exchange"),
        preclustering=bool(params.get("preclustering", False)),
        categories=cats if cats.shape[1] else None,
        repetitions=int(params.get("repetitions", 1)),
        random_state=params.get("random_state"),
    )
    return pd.Series(labels, index=features.index, name="anticluster")
