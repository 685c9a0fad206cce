# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Tests for reading one-to-many relationship metadata."""

import unittest

import requests

from dataverse_cascade.core._error_codes import METADATA_TABLE_NOT_FOUND, METADATA_UNREACHABLE
from dataverse_cascade.core.errors import MetadataError
from dataverse_cascade.models.metadata import OneToManyRelationshipMetadata
from tests.unit.test_helpers import TestableClient

RELATIONSHIPS = {
    "value": [
        {
            "SchemaName": "contact_customer_accounts",
            "ReferencedEntity": "account",
            "ReferencedAttribute": "accountid",
            "ReferencingEntity": "contact",
            "ReferencingAttribute": "parentcustomerid",
            "ReferencingEntityNavigationPropertyName": "parentcustomerid_account",
            "CascadeConfiguration": {"Assign": "Cascade", "Delete": "Restrict", "Merge": "NoCascade"},
        },
        {
            "SchemaName": "account_parent_account",
            "ReferencedEntity": "account",
            "ReferencedAttribute": "accountid",
            "ReferencingEntity": "account",
            "ReferencingAttribute": "parentaccountid",
            "CascadeConfiguration": {"Delete": "RemoveLink"},
        },
    ]
}


class TestGetOneToManyRelationships(unittest.TestCase):
    def test_request_shape(self):
        c = TestableClient([(200, {}, RELATIONSHIPS)])

        c.get_one_to_many_relationships("account")

        method, url, kwargs = c._http.calls[0]
        self.assertEqual(method, "get")
        self.assertEqual(
            url, "https://org.example/api/data/v9.2/EntityDefinitions(LogicalName='account')/OneToManyRelationships"
        )
        select = kwargs["params"]["$select"].split(",")
        self.assertIn("ReferencingAttribute", select)
        self.assertIn("CascadeConfiguration", select)

    def test_parses_relationships_in_order(self):
        c = TestableClient([(200, {}, RELATIONSHIPS)])

        rels = c.get_one_to_many_relationships("account")

        self.assertEqual(len(rels), 2)
        self.assertIsInstance(rels[0], OneToManyRelationshipMetadata)
        self.assertEqual(rels[0].referencing_entity, "contact")
        self.assertEqual(rels[0].referencing_attribute, "parentcustomerid")
        self.assertEqual(rels[0].referencing_navigation_property, "parentcustomerid_account")
        self.assertTrue(rels[0].cascade_configuration.restricts_delete)
        self.assertFalse(rels[1].cascade_configuration.restricts_delete)

    def test_empty_value(self):
        c = TestableClient([(200, {}, {"value": []})])
        self.assertEqual(c.get_one_to_many_relationships("account"), [])

    def test_not_cached(self):
        c = TestableClient([(200, {}, RELATIONSHIPS), (200, {}, RELATIONSHIPS)])
        c.get_one_to_many_relationships("account")
        c.get_one_to_many_relationships("account")
        self.assertEqual(len(c._http.calls), 2)

    def test_unknown_table(self):
        c = TestableClient([(404, {}, {"error": {"code": "0x80040217", "message": "Not found"}})])

        with self.assertRaises(MetadataError) as ctx:
            c.get_one_to_many_relationships("new_missing")

        self.assertEqual(ctx.exception.subcode, METADATA_TABLE_NOT_FOUND)
        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(ctx.exception.details["entity"], "new_missing")

    def test_transient_failure(self):
        c = TestableClient([(503, {"Retry-After": "2"}, {"error": {"message": "Busy"}})])

        with self.assertRaises(MetadataError) as ctx:
            c.get_one_to_many_relationships("account")

        self.assertEqual(ctx.exception.subcode, "http_503")
        self.assertTrue(ctx.exception.is_transient)
        self.assertEqual(ctx.exception.details["retry_after"], 2)

    def test_unreachable(self):
        c = TestableClient([requests.exceptions.ConnectionError("refused")])

        with self.assertRaises(MetadataError) as ctx:
            c.get_one_to_many_relationships("account")

        self.assertEqual(ctx.exception.subcode, METADATA_UNREACHABLE)


if __name__ == "__main__":
    unittest.main()
