# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Relationship metadata types for Microsoft Dataverse.

These classes mirror the relationship metadata entity types returned by the
Dataverse Web API, reduced to what restrict-aware deletion needs.

See: https://learn.microsoft.com/en-us/power-apps/developer/data-platform/webapi/reference/metadataentitytypes
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..common.constants import (
    CASCADE_BEHAVIOR_NO_CASCADE,
    CASCADE_BEHAVIOR_REMOVE_LINK,
    CASCADE_BEHAVIOR_RESTRICT,
)


@dataclass
class CascadeConfiguration:
    """
    Defines cascade behavior for relationship operations.

    :param assign: Cascade behavior for assign operations.
    :type assign: str
    :param delete: Cascade behavior for delete operations.
    :type delete: str
    :param merge: Cascade behavior for merge operations.
    :type merge: str
    :param reparent: Cascade behavior for reparent operations.
    :type reparent: str
    :param share: Cascade behavior for share operations.
    :type share: str
    :param unshare: Cascade behavior for unshare operations.
    :type unshare: str

    Valid values for each parameter:
        - "Cascade": Perform the operation on all related records
        - "NoCascade": Do not perform the operation on related records
        - "RemoveLink": Remove the relationship link but keep the records
        - "Restrict": Prevent the operation if related records exist
    """

    assign: str = CASCADE_BEHAVIOR_NO_CASCADE
    delete: str = CASCADE_BEHAVIOR_REMOVE_LINK
    merge: str = CASCADE_BEHAVIOR_NO_CASCADE
    reparent: str = CASCADE_BEHAVIOR_NO_CASCADE
    share: str = CASCADE_BEHAVIOR_NO_CASCADE
    unshare: str = CASCADE_BEHAVIOR_NO_CASCADE

    @property
    def restricts_delete(self) -> bool:
        """True when deleting the referenced record is blocked by referencing records."""
        return self.delete == CASCADE_BEHAVIOR_RESTRICT

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CascadeConfiguration":
        """Build from a Web API ``CascadeConfiguration`` complex value; missing keys keep defaults."""
        data = data or {}
        defaults = cls()
        return cls(
            assign=data.get("Assign") or defaults.assign,
            delete=data.get("Delete") or defaults.delete,
            merge=data.get("Merge") or defaults.merge,
            reparent=data.get("Reparent") or defaults.reparent,
            share=data.get("Share") or defaults.share,
            unshare=data.get("Unshare") or defaults.unshare,
        )


@dataclass
class OneToManyRelationshipMetadata:
    """
    Metadata for a one-to-many entity relationship.

    :param schema_name: Schema name for the relationship (e.g., "new_account_orders").
    :type schema_name: str
    :param referenced_entity: Logical name of the referenced (parent) entity.
    :type referenced_entity: str
    :param referencing_entity: Logical name of the referencing (child) entity.
    :type referencing_entity: str
    :param referenced_attribute: Attribute on the referenced entity (typically the primary key).
    :type referenced_attribute: str
    :param cascade_configuration: Cascade behavior configuration.
    :type cascade_configuration: CascadeConfiguration
    :param referencing_attribute: Lookup attribute on the referencing entity.
    :type referencing_attribute: Optional[str]
    :param referencing_navigation_property: Single-valued navigation property on the referencing entity.
    :type referencing_navigation_property: Optional[str]
    """

    schema_name: str
    referenced_entity: str
    referencing_entity: str
    referenced_attribute: str
    cascade_configuration: CascadeConfiguration = field(default_factory=CascadeConfiguration)
    referencing_attribute: Optional[str] = None
    referencing_navigation_property: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OneToManyRelationshipMetadata":
        """Build from a ``OneToManyRelationshipMetadata`` item of a Web API response."""
        return cls(
            schema_name=data.get("SchemaName") or "",
            referenced_entity=data.get("ReferencedEntity") or "",
            referencing_entity=data.get("ReferencingEntity") or "",
            referenced_attribute=data.get("ReferencedAttribute") or "",
            cascade_configuration=CascadeConfiguration.from_dict(data.get("CascadeConfiguration")),
            referencing_attribute=data.get("ReferencingAttribute"),
            referencing_navigation_property=data.get("ReferencingEntityNavigationPropertyName"),
        )


@dataclass(frozen=True)
class RestrictDependency:
    """
    A relationship that blocks deletion of ``required_entity`` records while
    ``dependent_entity`` records reference them through ``dependent_lookup_field``.

    :param required_entity: Logical name of the referenced entity being deleted.
    :type required_entity: str
    :param dependent_entity: Logical name of the referencing entity.
    :type dependent_entity: str
    :param dependent_lookup_field: Lookup attribute on ``dependent_entity`` holding the reference.
    :type dependent_lookup_field: str
    """

    required_entity: str
    dependent_entity: str
    dependent_lookup_field: str


__all__ = [
    "CascadeConfiguration",
    "OneToManyRelationshipMetadata",
    "RestrictDependency",
]
