# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import pytest

from dataverse_cascade.core._error_codes import HTTP_404
from dataverse_cascade.core.errors import HttpError
from tests.unit.test_helpers import TestableClient


def test_http_404_subcode_and_service_code():
    responses = [
        (
            404,
            {"x-ms-correlation-request-id": "cid1", "x-ms-service-request-id": "rid1"},
            {"error": {"code": "0x80040217", "message": "Entity does not exist"}},
        )
    ]
    c = TestableClient(responses)
    with pytest.raises(HttpError) as ei:
        c._request("get", c.api + "/accounts(abc)")
    err = ei.value.to_dict()
    assert err["subcode"] == HTTP_404
    assert err["message"] == "Entity does not exist"
    assert err["details"]["service_error_code"] == "0x80040217"
    assert err["details"]["correlation_id"] == "cid1"
    assert err["details"]["request_id"] == "rid1"
    assert err["is_transient"] is False
    assert err["source"] == "server"


def test_http_429_transient_and_retry_after():
    responses = [
        (
            429,
            {"Retry-After": "7"},
            {"error": {"message": "Throttle"}},
        )
    ]
    c = TestableClient(responses)
    with pytest.raises(HttpError) as ei:
        c._request("get", c.api + "/accounts")
    err = ei.value.to_dict()
    assert err["is_transient"] is True
    assert err["subcode"] == "http_429"
    assert err["details"]["retry_after"] == 7


def test_http_500_body_excerpt():
    responses = [(500, {"REQ_ID": "rid2"}, "Internal failure XYZ stack truncated")]
    c = TestableClient(responses)
    with pytest.raises(HttpError) as ei:
        c._request("get", c.api + "/accounts")
    err = ei.value.to_dict()
    assert err["subcode"] == "http_500"
    assert err["message"] == "HTTP 500"
    assert "Internal failure" in err["details"]["body_excerpt"]
    assert err["details"]["request_id"] == "rid2"


def test_body_excerpt_is_truncated():
    c = TestableClient([(400, {}, "x" * 500)])
    with pytest.raises(HttpError) as ei:
        c._request("get", c.api + "/accounts")
    assert len(ei.value.details["body_excerpt"]) == 200


def test_non_numeric_retry_after_is_ignored():
    c = TestableClient([(503, {"Retry-After": "soon"}, {"error": {"message": "Busy"}})])
    with pytest.raises(HttpError) as ei:
        c._request("get", c.api + "/accounts")
    assert "retry_after" not in ei.value.details
    assert ei.value.is_transient is True


def test_success_response_is_returned():
    c = TestableClient([(200, {}, {"value": []})])
    r = c._request("get", c.api + "/accounts")
    assert r.status_code == 200
