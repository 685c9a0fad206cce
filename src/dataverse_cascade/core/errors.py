# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Structured error hierarchy for cascade deletion.

Every collaborator failure surfaces as a :class:`DataverseError` subclass so
callers can tell which capability failed (relationship metadata, dependent
lookup or batch execution) and, once a cascade is running, at which entity,
batch and depth it failed (see ``details``).
"""

from __future__ import annotations

import datetime as _dt
from typing import Any, Dict, List, Optional

from ._error_codes import CASCADE_CYCLE_DETECTED


class DataverseError(Exception):
    """
    Base structured error for the cascade delete package.

    :param message: Human readable message.
    :type message: :class:`str`
    :param code: Stable error category (``validation_error``, ``metadata_error``, ...).
    :type code: :class:`str`
    :param subcode: Optional finer grained code, see :mod:`~dataverse_cascade.core._error_codes`.
    :type subcode: :class:`str` | None
    :param status_code: HTTP status code when the error came from the service.
    :type status_code: :class:`int` | None
    :param details: Free-form diagnostic details. Cascade context (``entity``,
        ``batch``, ``depth``) is added here while the error propagates.
    :type details: :class:`dict` | None
    :param source: ``"client"`` or ``"server"``.
    :type source: :class:`str` | None
    :param is_transient: Whether retrying the same call could succeed.
    :type is_transient: :class:`bool`
    """

    def __init__(
        self,
        message: str,
        *,
        code: str,
        subcode: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        source: Optional[str] = None,
        is_transient: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.subcode = subcode
        self.status_code = status_code
        self.details = details or {}
        self.source = source or "client"
        self.is_transient = is_transient
        self.timestamp = _dt.datetime.now(_dt.timezone.utc).isoformat().replace("+00:00", "Z")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "subcode": self.subcode,
            "status_code": self.status_code,
            "details": self.details,
            "source": self.source,
            "is_transient": self.is_transient,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"{self.__class__.__name__}(code={self.code!r}, subcode={self.subcode!r}, message={self.message!r})"


class ValidationError(DataverseError):
    def __init__(self, message: str, *, subcode: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="validation_error", subcode=subcode, details=details, source="client")


class _StoreError(DataverseError):
    """Failure of one of the store capabilities a cascade depends on."""

    _code = "store_error"

    def __init__(
        self,
        message: str,
        *,
        subcode: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        is_transient: bool = False,
    ):
        super().__init__(
            message,
            code=self._code,
            subcode=subcode,
            status_code=status_code,
            details=details,
            source="server" if status_code else "client",
            is_transient=is_transient,
        )


class MetadataError(_StoreError):
    """Relationship or entity metadata could not be retrieved."""

    _code = "metadata_error"


class QueryError(_StoreError):
    """A dependent-record lookup query failed."""

    _code = "query_error"


class BatchExecutionError(_StoreError):
    """
    A bulk-delete request could not be dispatched or its response could not be read.

    Distinct from per-record faults, which are reported as
    :class:`~dataverse_cascade.models.results.Failure` outcomes.
    """

    _code = "batch_execution_error"


class CycleDetectedError(DataverseError):
    """The restrict dependency recursion re-entered a frame it is already resolving."""

    def __init__(self, message: str, *, chain: List[str], details: Optional[Dict[str, Any]] = None):
        d = details or {}
        d["chain"] = list(chain)
        super().__init__(message, code="cascade_error", subcode=CASCADE_CYCLE_DETECTED, details=d, source="client")
        self.chain = list(chain)


class HttpError(DataverseError):
    def __init__(
        self,
        message: str,
        status_code: int,
        is_transient: bool = False,
        subcode: Optional[str] = None,
        service_error_code: Optional[str] = None,
        correlation_id: Optional[str] = None,
        request_id: Optional[str] = None,
        body_excerpt: Optional[str] = None,
        retry_after: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        d = details or {}
        if service_error_code is not None:
            d["service_error_code"] = service_error_code
        if correlation_id is not None:
            d["correlation_id"] = correlation_id
        if request_id is not None:
            d["request_id"] = request_id
        if body_excerpt is not None:
            d["body_excerpt"] = body_excerpt
        if retry_after is not None:
            d["retry_after"] = retry_after
        super().__init__(
            message,
            code="http_error",
            subcode=subcode,
            status_code=status_code,
            details=d,
            source="server",
            is_transient=is_transient,
        )


__all__ = [
    "DataverseError",
    "ValidationError",
    "MetadataError",
    "QueryError",
    "BatchExecutionError",
    "CycleDetectedError",
    "HttpError",
]
