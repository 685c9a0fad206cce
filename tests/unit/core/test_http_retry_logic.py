# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from unittest.mock import Mock, patch

import pytest
import requests

from dataverse_cascade.core._http import _HttpClient


class TestHttpClientRetryLogic:
    """Test retry logic in _HttpClient."""

    def test_default_configuration(self):
        client = _HttpClient()
        assert client.max_attempts == 5
        assert client.base_delay == 0.5
        assert client.max_backoff == 60.0
        assert client.jitter is True
        assert client.transient_status_codes == {429, 502, 503, 504}

    def test_custom_configuration(self):
        client = _HttpClient(retries=3, backoff=1.0, max_backoff=30.0, jitter=False)
        assert client.max_attempts == 3
        assert client.base_delay == 1.0
        assert client.max_backoff == 30.0
        assert client.jitter is False

    @patch("requests.request")
    def test_successful_request_no_retry(self, mock_request):
        mock_request.return_value = Mock(status_code=200)

        response = _HttpClient()._request("GET", "https://test.example.com")

        assert response.status_code == 200
        assert mock_request.call_count == 1

    @patch("requests.request")
    @patch("time.sleep")
    def test_network_error_retry(self, mock_sleep, mock_request):
        mock_request.side_effect = [
            requests.exceptions.ConnectionError("Network error"),
            requests.exceptions.ConnectionError("Network error"),
            Mock(status_code=200),
        ]

        response = _HttpClient(jitter=False)._request("GET", "https://test.example.com")

        assert response.status_code == 200
        assert mock_request.call_count == 3
        # exponential backoff: 0.5, 1.0
        assert [c.args[0] for c in mock_sleep.call_args_list] == [0.5, 1.0]

    @patch("requests.request")
    @patch("time.sleep")
    def test_retry_after_header_respected(self, mock_sleep, mock_request):
        mock_request.side_effect = [
            Mock(status_code=429, headers={"Retry-After": "5"}),
            Mock(status_code=200, headers={}),
        ]

        response = _HttpClient(jitter=False)._request("GET", "https://test.example.com")

        assert response.status_code == 200
        mock_sleep.assert_called_once_with(5)

    @patch("requests.request")
    @patch("time.sleep")
    def test_retry_after_header_capped_at_max_backoff(self, mock_sleep, mock_request):
        mock_request.side_effect = [
            Mock(status_code=429, headers={"Retry-After": "120"}),
            Mock(status_code=200, headers={}),
        ]

        _HttpClient(jitter=False, max_backoff=30.0)._request("GET", "https://test.example.com")

        mock_sleep.assert_called_once_with(30.0)

    @patch("requests.request")
    @patch("time.sleep")
    def test_invalid_retry_after_header_fallback(self, mock_sleep, mock_request):
        mock_request.side_effect = [
            Mock(status_code=429, headers={"Retry-After": "invalid"}),
            Mock(status_code=200, headers={}),
        ]

        _HttpClient(jitter=False)._request("GET", "https://test.example.com")

        mock_sleep.assert_called_once_with(0.5)

    @patch("requests.request")
    def test_non_transient_error_no_retry(self, mock_request):
        mock_request.return_value = Mock(status_code=404, headers={})

        response = _HttpClient()._request("GET", "https://test.example.com")

        assert response.status_code == 404
        assert mock_request.call_count == 1

    @patch("requests.request")
    @patch("time.sleep")
    def test_last_transient_response_returned(self, mock_sleep, mock_request):
        mock_request.return_value = Mock(status_code=503, headers={})

        response = _HttpClient(retries=3, jitter=False)._request("POST", "https://test.example.com")

        assert response.status_code == 503
        assert mock_request.call_count == 3
        assert mock_sleep.call_count == 2

    @patch("requests.request")
    @patch("time.sleep")
    def test_max_attempts_respected(self, mock_sleep, mock_request):
        mock_request.side_effect = requests.exceptions.ConnectionError("Network error")

        client = _HttpClient(retries=2, jitter=False)

        with pytest.raises(requests.exceptions.ConnectionError):
            client._request("GET", "https://test.example.com")

        assert mock_request.call_count == 2
        assert mock_sleep.call_count == 1

    @patch("requests.request")
    @patch("time.sleep")
    def test_exponential_backoff_capped(self, mock_sleep, mock_request):
        mock_request.side_effect = [
            requests.exceptions.ConnectionError("Network error"),
            requests.exceptions.ConnectionError("Network error"),
            requests.exceptions.ConnectionError("Network error"),
            Mock(status_code=200),
        ]

        client = _HttpClient(retries=4, backoff=10.0, max_backoff=15.0, jitter=False)
        client._request("GET", "https://test.example.com")

        # 10.0 * 2**n capped at 15.0
        assert [c.args[0] for c in mock_sleep.call_args_list] == [10.0, 15.0, 15.0]

    @patch("requests.request")
    @patch("time.sleep")
    @patch("random.uniform")
    def test_jitter_applied(self, mock_uniform, mock_sleep, mock_request):
        mock_uniform.return_value = 0.1
        mock_request.side_effect = [
            requests.exceptions.ConnectionError("Network error"),
            Mock(status_code=200),
        ]

        _HttpClient(jitter=True, backoff=1.0)._request("GET", "https://test.example.com")

        mock_uniform.assert_called_with(-0.25, 0.25)
        mock_sleep.assert_called_with(1.1)

    @patch("requests.request")
    def test_method_specific_timeouts(self, mock_request):
        mock_request.return_value = Mock(status_code=200)
        client = _HttpClient()

        client._request("GET", "https://test.example.com")
        assert mock_request.call_args.kwargs["timeout"] == 10

        client._request("POST", "https://test.example.com")
        assert mock_request.call_args.kwargs["timeout"] == 120

        client._request("DELETE", "https://test.example.com")
        assert mock_request.call_args.kwargs["timeout"] == 120

    @patch("requests.request")
    def test_custom_timeout_respected(self, mock_request):
        mock_request.return_value = Mock(status_code=200)

        _HttpClient(timeout=30.0)._request("GET", "https://test.example.com")

        assert mock_request.call_args.kwargs["timeout"] == 30.0

    @patch("requests.request")
    def test_explicit_timeout_wins(self, mock_request):
        mock_request.return_value = Mock(status_code=200)

        _HttpClient(timeout=30.0)._request("GET", "https://test.example.com", timeout=3)

        assert mock_request.call_args.kwargs["timeout"] == 3

    @pytest.mark.parametrize("status_code", [429, 502, 503, 504])
    @patch("requests.request")
    @patch("time.sleep")
    def test_all_transient_status_codes_retried(self, mock_sleep, mock_request, status_code):
        mock_request.side_effect = [Mock(status_code=status_code, headers={}), Mock(status_code=200, headers={})]

        response = _HttpClient(jitter=False)._request("GET", "https://test.example.com")

        assert response.status_code == 200
        assert mock_request.call_count == 2
        mock_sleep.assert_called_once_with(0.5)
