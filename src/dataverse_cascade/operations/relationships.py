# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Restrict dependency discovery."""

from __future__ import annotations

import logging
from typing import List

from ..core.errors import MetadataError
from ..data.store import CascadeStore
from ..models.metadata import RestrictDependency

logger = logging.getLogger(__name__)


class RelationshipResolver:
    """
    Finds the relationships that block deletion of a table's records.

    Only one-to-many relationships whose delete behavior is exactly ``Restrict``
    qualify; ``Cascade``, ``RemoveLink`` and ``NoCascade`` relationships are
    handled by the service itself when the parent record is deleted.

    :param store: Store providing relationship metadata.
    :type store: ~dataverse_cascade.data.store.CascadeStore
    """

    def __init__(self, store: CascadeStore) -> None:
        self._store = store

    def resolve_restrict_dependencies(self, entity_name: str) -> List[RestrictDependency]:
        """
        Return the restrict dependencies of ``entity_name`` in store order.

        Metadata is read on every call and never cached.

        :param entity_name: Logical name of the referenced table.
        :type entity_name: :class:`str`
        :return: One dependency per qualifying relationship.
        :rtype: :class:`list` of :class:`~dataverse_cascade.models.metadata.RestrictDependency`
        :raises ~dataverse_cascade.core.errors.MetadataError: If metadata cannot be read, or a
            restrict relationship does not name its lookup attribute.
        """
        dependencies: List[RestrictDependency] = []
        for relationship in self._store.get_one_to_many_relationships(entity_name):
            if not relationship.cascade_configuration.restricts_delete:
                continue
            if not relationship.referencing_attribute:
                raise MetadataError(
                    f"Restrict relationship '{relationship.schema_name}' on '{entity_name}' "
                    "does not specify a referencing attribute.",
                    details={"entity": entity_name, "relationship": relationship.schema_name},
                )
            dependencies.append(
                RestrictDependency(
                    required_entity=entity_name,
                    dependent_entity=relationship.referencing_entity,
                    dependent_lookup_field=relationship.referencing_attribute,
                )
            )
        logger.debug(
            "Entity %s has %d restrict delete dependenc%s",
            entity_name,
            len(dependencies),
            "y" if len(dependencies) == 1 else "ies",
        )
        return dependencies
