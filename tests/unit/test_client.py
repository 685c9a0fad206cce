# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import unittest
from unittest.mock import MagicMock

from azure.core.credentials import TokenCredential

from dataverse_cascade import DataverseClient, __version__
from dataverse_cascade.core.config import DataverseConfig
from dataverse_cascade.core.telemetry import NoOpTelemetryManager, TelemetryConfig, TelemetryManager
from dataverse_cascade.data._odata import _ODataClient
from dataverse_cascade.operations.deleter import CascadeDeleter


class TestDataverseClient(unittest.TestCase):
    def setUp(self):
        """Set up test fixtures before each test method."""
        self.mock_credential = MagicMock(spec=TokenCredential)
        self.base_url = "https://example.crm.dynamics.com"

    def test_version(self):
        self.assertIsInstance(__version__, str)

    def test_trailing_slash_removed(self):
        client = DataverseClient(self.base_url + "/", self.mock_credential)
        self.assertEqual(client._base_url, self.base_url)

    def test_empty_base_url_rejected(self):
        with self.assertRaises(ValueError):
            DataverseClient("", self.mock_credential)
        with self.assertRaises(ValueError):
            DataverseClient("/", self.mock_credential)

    def test_credential_must_be_token_credential(self):
        with self.assertRaises(TypeError):
            DataverseClient(self.base_url, object())

    def test_default_config(self):
        client = DataverseClient(self.base_url, self.mock_credential)
        self.assertEqual(client._config.batch_size, 1000)
        self.assertFalse(client._config.read_only)

    def test_odata_client_is_lazy_and_cached(self):
        client = DataverseClient(self.base_url, self.mock_credential)
        self.assertIsNone(client._odata)

        odata = client._get_odata()

        self.assertIsInstance(odata, _ODataClient)
        self.assertIs(client._get_odata(), odata)
        self.assertEqual(odata.api, f"{self.base_url}/api/data/v9.2")

    def test_deleter_uses_configured_batch_size(self):
        client = DataverseClient(self.base_url, self.mock_credential, DataverseConfig(batch_size=25))

        deleter = client._get_deleter()

        self.assertIsInstance(deleter, CascadeDeleter)
        self.assertEqual(deleter.batch_size, 25)
        self.assertIs(deleter._store, client._get_odata())
        self.assertIs(client._get_deleter(), deleter)
        self.assertIsInstance(deleter._telemetry, NoOpTelemetryManager)

    def test_deleter_telemetry_from_config(self):
        config = DataverseConfig(telemetry=TelemetryConfig(enable_logging=True))
        client = DataverseClient(self.base_url, self.mock_credential, config)
        self.assertIsInstance(client._get_deleter()._telemetry, TelemetryManager)

    def test_token_scope(self):
        self.mock_credential.get_token.return_value = MagicMock(token="abc")
        client = DataverseClient(self.base_url, self.mock_credential)

        headers = client._get_odata()._headers()

        self.mock_credential.get_token.assert_called_once_with(f"{self.base_url}/.default")
        self.assertEqual(headers["Authorization"], "Bearer abc")
        self.assertIn("x-ms-client-request-id", headers)


if __name__ == "__main__":
    unittest.main()
