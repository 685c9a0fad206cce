# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Relationship metadata operations for Dataverse Web API.

This module provides mixin functionality for reading the one-to-many
relationships of a table.
"""

from __future__ import annotations

import logging
from typing import List

import requests

from ..core._error_codes import HTTP_404, METADATA_TABLE_NOT_FOUND, METADATA_UNREACHABLE
from ..core.errors import HttpError, MetadataError
from ..models.metadata import OneToManyRelationshipMetadata

logger = logging.getLogger(__name__)

_RELATIONSHIP_SELECT = ",".join(
    [
        "SchemaName",
        "ReferencedEntity",
        "ReferencedAttribute",
        "ReferencingEntity",
        "ReferencingAttribute",
        "ReferencingEntityNavigationPropertyName",
        "CascadeConfiguration",
    ]
)


class _RelationshipOperationsMixin:
    """
    Mixin providing relationship metadata reads.

    This mixin is designed to be used with _ODataClient and depends on:
    - self.api: The API base URL
    - self._headers(): Method to get auth headers
    - self._request(): Method to make HTTP requests (raises HttpError on failure)
    - self._escape_odata_quotes(): OData literal escaping
    """

    def get_one_to_many_relationships(self, entity_name: str) -> List[OneToManyRelationshipMetadata]:
        """
        Retrieve the one-to-many relationships in which ``entity_name`` is the referenced table.

        Issues ``GET EntityDefinitions(LogicalName='<entity>')/OneToManyRelationships``.
        Results are never cached; relationship configuration can change while a
        long-running cascade is in progress.

        :param entity_name: Logical name of the referenced table, e.g. ``"account"``.
        :type entity_name: ``str``

        :return: Relationships in the order returned by the service.
        :rtype: ``list[OneToManyRelationshipMetadata]``

        :raises MetadataError: If the table does not exist or metadata cannot be retrieved.
        """
        url = (
            f"{self.api}/EntityDefinitions(LogicalName='{self._escape_odata_quotes(entity_name)}')"
            "/OneToManyRelationships"
        )
        params = {"$select": _RELATIONSHIP_SELECT}
        try:
            r = self._request("get", url, headers=self._headers(), params=params)
        except HttpError as exc:
            if exc.subcode == HTTP_404:
                raise MetadataError(
                    f"Table '{entity_name}' not found.",
                    subcode=METADATA_TABLE_NOT_FOUND,
                    status_code=exc.status_code,
                    details={"entity": entity_name, **exc.details},
                ) from exc
            raise MetadataError(
                f"Failed to retrieve relationships for '{entity_name}': {exc.message}",
                subcode=exc.subcode,
                status_code=exc.status_code,
                details={"entity": entity_name, **exc.details},
                is_transient=exc.is_transient,
            ) from exc
        except requests.exceptions.RequestException as exc:
            raise MetadataError(
                f"Metadata service unreachable while reading relationships for '{entity_name}': {exc}",
                subcode=METADATA_UNREACHABLE,
                details={"entity": entity_name},
                is_transient=True,
            ) from exc

        items = self._json_value(r)
        relationships = [OneToManyRelationshipMetadata.from_dict(item) for item in items if isinstance(item, dict)]
        logger.debug("Table %s has %d one-to-many relationship(s)", entity_name, len(relationships))
        return relationships
