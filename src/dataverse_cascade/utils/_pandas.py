# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Internal pandas helpers"""

from __future__ import annotations

from typing import Iterable, List

import pandas as pd

from ..models.results import DeleteResult

RESULT_COLUMNS = ["entity", "record_id", "succeeded", "message"]


def results_to_dataframe(results: Iterable[DeleteResult]) -> pd.DataFrame:
    """Convert delete results to a DataFrame with one row per result, in cascade order.

    :param results: Results returned by a cascade.
    :return: DataFrame with columns ``entity``, ``record_id``, ``succeeded`` and ``message``
        (``None`` for successful rows).
    """
    rows = [
        {
            "entity": r.entity_name,
            "record_id": r.record_id,
            "succeeded": r.succeeded,
            "message": r.message,
        }
        for r in results
    ]
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)


def ids_from_series(ids: pd.Series) -> List[str]:
    """Extract record ids from a Series, dropping missing values and converting to strings."""
    return [str(v) for v in ids if pd.notna(v)]
