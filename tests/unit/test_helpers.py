# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Shared test utilities for unit tests.

Provides an in-memory cascade store, mock authentication and a scripted HTTP
client so tests exercise the real code paths without a Dataverse environment.
"""

import json
import types

from dataverse_cascade.data._odata import _ODataClient
from dataverse_cascade.models.metadata import CascadeConfiguration, OneToManyRelationshipMetadata
from dataverse_cascade.models.results import BulkDeleteOutcome


def guid(n):
    """Deterministic GUID string for test records, e.g. guid(1) -> '00000000-...-000000000001'."""
    return f"00000000-0000-0000-0000-{n:012d}"


def relationship(referenced, referencing, attribute, delete="Restrict", schema_name=None):
    """Build a one-to-many relationship with the given delete behavior."""
    return OneToManyRelationshipMetadata(
        schema_name=schema_name or f"{referencing}_{attribute}_{referenced}",
        referenced_entity=referenced,
        referencing_entity=referencing,
        referenced_attribute=f"{referenced}id",
        cascade_configuration=CascadeConfiguration(delete=delete),
        referencing_attribute=attribute,
    )


class FakeStore:
    """In-memory CascadeStore that records every call.

    Args:
        relationships: Mapping of entity name to its one-to-many relationships.
        references: Mapping of (dependent entity, lookup field) to
            {referenced id: [dependent ids]}.
        faults: Mapping of (entity, id) to the fault message bulk delete reports.

    Lookups skip records that were already deleted successfully, as the service would.
    """

    def __init__(self, relationships=None, references=None, faults=None):
        self.relationships = relationships or {}
        self.references = references or {}
        self.faults = faults or {}
        self.calls = []
        self.deleted = set()

    def get_one_to_many_relationships(self, entity_name):
        self.calls.append(("relationships", entity_name))
        return list(self.relationships.get(entity_name, []))

    def find_records_by_lookup(self, entity_name, lookup_field, referenced_ids):
        self.calls.append(("lookup", entity_name, lookup_field, list(referenced_ids)))
        mapping = self.references.get((entity_name, lookup_field), {})
        found = []
        for referenced_id in referenced_ids:
            for dependent_id in mapping.get(referenced_id, []):
                if (entity_name, dependent_id) not in self.deleted:
                    found.append(dependent_id)
        return found

    def bulk_delete(self, entity_name, ids):
        self.calls.append(("delete", entity_name, list(ids)))
        outcomes = []
        for record_id in ids:
            message = self.faults.get((entity_name, record_id))
            if message is None:
                self.deleted.add((entity_name, record_id))
            outcomes.append(BulkDeleteOutcome(record_id, message))
        return outcomes

    def calls_of(self, kind):
        return [c for c in self.calls if c[0] == kind]


class DummyAuth:
    """Mock authentication provider returning a fixed access token."""

    def _acquire_token(self, scope):
        class Token:
            access_token = "test_token"

        return Token()


class DummyHTTPClient:
    """Mock HTTP client that returns pre-configured responses.

    Args:
        responses: List of (status_code, headers, body) tuples to return in sequence.
            A dict body is served as JSON, a str body as raw text. An exception
            instance is raised instead of returning a response.

    Attributes:
        calls: List of (method, url, kwargs) tuples recording all requests made.
    """

    def __init__(self, responses):
        self._responses = list(responses)
        self.calls = []

    def _request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if not self._responses:
            raise AssertionError("No more dummy responses configured")
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        status, headers, body = item
        resp = types.SimpleNamespace()
        resp.status_code = status
        resp.headers = headers
        if isinstance(body, dict):
            resp.text = json.dumps(body)

            def json_func():
                return body

        else:
            resp.text = body or ""

            def json_func():
                raise ValueError("non-json")

        resp.json = json_func
        return resp

    def close(self):
        pass


class TestableClient(_ODataClient):
    """_ODataClient with mocked HTTP for testing.

    Args:
        responses: List of (status_code, headers, body) tuples for the mock HTTP client.
        org_url: Organization URL (default: "https://org.example").
        config: Optional DataverseConfig.
    """

    __test__ = False

    def __init__(self, responses, org_url="https://org.example", config=None):
        super().__init__(DummyAuth(), org_url, config)
        self._http = DummyHTTPClient(responses)


def make_entity_definition(logical_name, entity_set_name, primary_id_attr):
    """EntityDefinitions(LogicalName='...') response body."""
    return {
        "LogicalName": logical_name,
        "EntitySetName": entity_set_name,
        "PrimaryIdAttribute": primary_id_attr,
    }


def make_batch_response(boundary, parts):
    """Build a multipart/mixed $batch response body.

    Args:
        boundary: Response boundary.
        parts: List of (status line, body or None, content id or None) tuples.
    """
    lines = []
    for status_line, body, content_id in parts:
        lines.append(f"--{boundary}")
        lines.append("Content-Type: application/http")
        lines.append("Content-Transfer-Encoding: binary")
        if content_id is not None:
            lines.append(f"Content-ID: {content_id}")
        lines.append("")
        lines.append(status_line)
        if body is not None:
            lines.append("Content-Type: application/json; odata.metadata=minimal")
            lines.append("OData-Version: 4.0")
            lines.append("")
            lines.append(json.dumps(body) if isinstance(body, dict) else body)
        else:
            lines.append("OData-Version: 4.0")
            lines.append("")
        lines.append("")
    lines.append(f"--{boundary}--")
    return "\r\n".join(lines)


MD_ACCOUNT = make_entity_definition("account", "accounts", "accountid")
MD_CONTACT = make_entity_definition("contact", "contacts", "contactid")
