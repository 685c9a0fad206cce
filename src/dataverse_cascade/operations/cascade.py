# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Cascade delete operations namespace."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Union

import pandas as pd

from ..models.metadata import RestrictDependency
from ..models.results import DeleteResult
from ..utils._pandas import ids_from_series, results_to_dataframe
from .deleter import RecordId

if TYPE_CHECKING:
    from ..client import DataverseClient


class CascadeOperations:
    """
    Restrict-aware delete operations.

    Accessed via ``client.cascade``.

    Example::

        # Delete two accounts and everything that restricts their deletion
        results = client.cascade.delete("account", [id1, id2])
        for r in results:
            print(r.entity_name, r.record_id, r.outcome)

        # Inspect what would block deletion of a table's records
        for dep in client.cascade.restrict_dependencies("account"):
            print(f"{dep.dependent_entity}.{dep.dependent_lookup_field}")
    """

    def __init__(self, client: "DataverseClient") -> None:
        """
        Initialize CascadeOperations.

        :param client: Parent DataverseClient instance.
        :type client: DataverseClient
        """
        self._client = client

    def delete(self, table: str, ids: Union[RecordId, Iterable[RecordId]]) -> List[DeleteResult]:
        """
        Delete records, first deleting every record that restricts their deletion.

        Records are deleted in batches of ``DataverseConfig.batch_size``. When the client
        is configured ``read_only``, dependencies are discovered but deletions are simulated.

        :param table: Table logical name (e.g., ``"account"``).
        :type table: str
        :param ids: A single GUID or any iterable of GUIDs (list, set, generator, ...).
        :type ids: str or uuid.UUID or list
        :return: One result per record submitted for deletion, dependents first.
        :rtype: list[DeleteResult]

        :raises ~dataverse_cascade.core.errors.ValidationError: If ``ids`` is malformed.
        :raises ~dataverse_cascade.core.errors.DataverseError: If a metadata, lookup or batch
            request fails; the cascade stops at the first such failure.
        """
        return self._client._get_deleter().cascade_delete(table, ids)

    def restrict_dependencies(self, table: str) -> List[RestrictDependency]:
        """
        List the relationships whose ``Restrict`` delete behavior can block deletion of ``table`` records.

        :param table: Table logical name.
        :type table: str
        :rtype: list[RestrictDependency]
        """
        return self._client._get_deleter().resolver.resolve_restrict_dependencies(table)

    def delete_dataframe(self, table: str, ids: Union[pd.Series, Iterable[RecordId]]) -> pd.DataFrame:
        """
        Cascade-delete the ids held in a Series and return the results as a DataFrame.

        Missing values in ``ids`` are ignored.

        :param table: Table logical name.
        :type table: str
        :param ids: Series (or list) of record GUIDs.
        :return: One row per result with columns ``entity``, ``record_id``, ``succeeded``, ``message``.
        :rtype: pandas.DataFrame

        Example::

            df = pd.read_csv("accounts_to_remove.csv")
            report = client.cascade.delete_dataframe("account", df["accountid"])
            print(report[~report["succeeded"]])
        """
        if isinstance(ids, pd.Series):
            ids = ids_from_series(ids)
        return results_to_dataframe(self.delete(table, ids))
