# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
The capabilities a data store must offer for cascade deletion.

:class:`~dataverse_cascade.data._odata._ODataClient` implements this protocol
against the Dataverse Web API; tests supply in-memory fakes.
"""

from __future__ import annotations

from typing import List, Protocol, Sequence, runtime_checkable

from ..models.metadata import OneToManyRelationshipMetadata
from ..models.results import BulkDeleteOutcome


@runtime_checkable
class CascadeStore(Protocol):
    """Metadata lookup, bulk query and batched delete."""

    def get_one_to_many_relationships(self, entity_name: str) -> List[OneToManyRelationshipMetadata]:
        """
        Return the one-to-many relationships in which ``entity_name`` is the referenced side.

        :raises ~dataverse_cascade.core.errors.MetadataError: If the entity is unknown or the
            metadata cannot be retrieved.
        """
        ...

    def find_records_by_lookup(
        self, entity_name: str, lookup_field: str, referenced_ids: Sequence[str]
    ) -> List[str]:
        """
        Return ids of every ``entity_name`` record whose ``lookup_field`` is one of ``referenced_ids``.

        Implementations exhaust any server-side paging before returning.

        :raises ~dataverse_cascade.core.errors.QueryError: If the query fails.
        """
        ...

    def bulk_delete(self, entity_name: str, ids: Sequence[str]) -> List[BulkDeleteOutcome]:
        """
        Delete ``ids`` in one request, returning one outcome per id in request order.

        :raises ~dataverse_cascade.core.errors.BatchExecutionError: If the request itself
            cannot be executed.
        """
        ...


__all__ = ["CascadeStore"]
