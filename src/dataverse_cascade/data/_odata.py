# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Dataverse Web API client implementing the :class:`~dataverse_cascade.data.store.CascadeStore` capabilities.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import requests

from ..common.constants import DEFAULT_PAGE_SIZE, PREFER_MAX_PAGE_SIZE, WEB_API_PATH
from ..core._error_codes import (
    HTTP_404,
    METADATA_ENTITYSET_NAME_MISSING,
    METADATA_TABLE_NOT_FOUND,
    METADATA_UNREACHABLE,
    QUERY_UNREACHABLE,
    _http_subcode,
    _is_transient_status,
)
from ..core._http import _HttpClient
from ..core.config import DataverseConfig
from ..core.errors import HttpError, MetadataError, QueryError
from ..utils._batching import partition
from ._batch import _BatchOperationsMixin
from ._relationships import _RelationshipOperationsMixin

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _EntityInfo:
    logical_name: str
    entity_set_name: str
    primary_id_attribute: str


class _ODataClient(_RelationshipOperationsMixin, _BatchOperationsMixin):
    """Dataverse Web API client: relationship metadata, dependent lookups and batched deletes.

    :param auth: Authentication manager providing ``_acquire_token(scope)``.
    :param base_url: Organization URL, e.g. ``"https://org.crm.dynamics.com"``.
    :type base_url: :class:`str`
    :param config: Optional configuration; defaults from :meth:`DataverseConfig.from_env`.
    :type config: ~dataverse_cascade.core.config.DataverseConfig | None
    :param session: Optional pooled session shared with the owning client.
    :type session: :class:`requests.Session` | None
    """

    @staticmethod
    def _escape_odata_quotes(value: str) -> str:
        """Escape single quotes for OData queries (by doubling them)."""
        return value.replace("'", "''")

    def __init__(
        self,
        auth,
        base_url: str,
        config: Optional[DataverseConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.auth = auth
        self.base_url = (base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("base_url is required.")
        self.api = f"{self.base_url}{WEB_API_PATH}"
        self.config = config or DataverseConfig.from_env()
        self._http = _HttpClient(
            retries=self.config.http_retries,
            backoff=self.config.http_backoff,
            timeout=self.config.http_timeout,
            max_backoff=self.config.http_max_backoff,
            session=session,
        )
        # Cache: logical name -> entity set name and primary id attribute
        self._entity_info_cache: Dict[str, _EntityInfo] = {}

    def _headers(self) -> Dict[str, str]:
        """Build standard OData headers with bearer auth."""
        scope = f"{self.base_url}/.default"
        token = self.auth._acquire_token(scope).access_token
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
            "OData-MaxVersion": "4.0",
            "OData-Version": "4.0",
            "x-ms-client-request-id": str(uuid.uuid4()),
        }

    def _request(self, method: str, url: str, **kwargs: Any):
        """Send a request and raise :class:`HttpError` for any non-2xx response."""
        r = self._http._request(method, url, **kwargs)
        if r.status_code >= 400:
            self._raise_http_error(r)
        return r

    @staticmethod
    def _raise_http_error(r) -> None:
        headers = getattr(r, "headers", None) or {}
        text = getattr(r, "text", "") or ""
        service_code: Optional[str] = None
        message = f"HTTP {r.status_code}"
        try:
            body = r.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            err = body["error"]
            service_code = err.get("code")
            if err.get("message"):
                message = str(err["message"])
        retry_after: Optional[int] = None
        if "Retry-After" in headers:
            try:
                retry_after = int(headers["Retry-After"])
            except (TypeError, ValueError):
                retry_after = None
        raise HttpError(
            message,
            status_code=r.status_code,
            is_transient=_is_transient_status(r.status_code),
            subcode=_http_subcode(r.status_code),
            service_error_code=service_code,
            correlation_id=headers.get("x-ms-correlation-request-id"),
            request_id=headers.get("x-ms-service-request-id") or headers.get("REQ_ID"),
            body_excerpt=text[:200] if text and body is None else None,
            retry_after=retry_after,
        )

    @staticmethod
    def _json_value(r) -> List[Any]:
        try:
            body = r.json()
        except ValueError:
            return []
        if not isinstance(body, dict):
            return []
        value = body.get("value")
        return value if isinstance(value, list) else []

    # ----------------------------- Entity metadata ---------------------------------
    def _entity_info(self, entity_name: str) -> _EntityInfo:
        """Resolve entity set name and primary id attribute for a logical name (cached)."""
        cached = self._entity_info_cache.get(entity_name)
        if cached:
            return cached
        url = f"{self.api}/EntityDefinitions(LogicalName='{self._escape_odata_quotes(entity_name)}')"
        params = {"$select": "LogicalName,EntitySetName,PrimaryIdAttribute"}
        try:
            r = self._request("get", url, headers=self._headers(), params=params)
        except HttpError as exc:
            subcode = METADATA_TABLE_NOT_FOUND if exc.subcode == HTTP_404 else exc.subcode
            raise MetadataError(
                f"Unable to resolve table '{entity_name}': {exc.message}",
                subcode=subcode,
                status_code=exc.status_code,
                details={"table": entity_name, **exc.details},
                is_transient=exc.is_transient,
            ) from exc
        except requests.exceptions.RequestException as exc:
            raise MetadataError(
                f"Metadata service unreachable while resolving table '{entity_name}': {exc}",
                subcode=METADATA_UNREACHABLE,
                details={"table": entity_name},
                is_transient=True,
            ) from exc

        try:
            md = r.json()
        except ValueError:
            md = {}
        entity_set = md.get("EntitySetName") if isinstance(md, dict) else None
        if not entity_set:
            raise MetadataError(
                f"Metadata response missing EntitySetName for table '{entity_name}'.",
                subcode=METADATA_ENTITYSET_NAME_MISSING,
                details={"table": entity_name},
            )
        info = _EntityInfo(
            logical_name=md.get("LogicalName") or entity_name,
            entity_set_name=entity_set,
            primary_id_attribute=md.get("PrimaryIdAttribute") or f"{entity_name}id",
        )
        self._entity_info_cache[entity_name] = info
        return info

    def _entity_set_name(self, entity_name: str) -> str:
        return self._entity_info(entity_name).entity_set_name

    # ----------------------------- Dependent lookup ---------------------------------
    def find_records_by_lookup(
        self, entity_name: str, lookup_field: str, referenced_ids: Sequence[str]
    ) -> List[str]:
        """
        Return ids of ``entity_name`` records whose ``lookup_field`` references any of ``referenced_ids``.

        Referenced ids are split into chunks of ``config.lookup_chunk_size`` and each chunk is
        queried with the ``Microsoft.Dynamics.CRM.In`` function; every page is followed through
        ``@odata.nextLink``. Duplicate ids are dropped, first occurrence wins.

        :raises QueryError: If any page of the query fails.
        :raises MetadataError: If ``entity_name`` cannot be resolved to an entity set.
        """
        referenced = list(referenced_ids)
        if not referenced:
            return []
        info = self._entity_info(entity_name)
        found: List[str] = []
        seen = set()
        for chunk in partition(referenced, self.config.lookup_chunk_size):
            for record_id in self._query_lookup_chunk(info, lookup_field, chunk):
                if record_id not in seen:
                    seen.add(record_id)
                    found.append(record_id)
        return found

    def _query_lookup_chunk(self, info: _EntityInfo, lookup_field: str, chunk: List[str]) -> List[str]:
        values = ",".join(f"'{self._escape_odata_quotes(str(v))}'" for v in chunk)
        params: Optional[Dict[str, str]] = {
            "$select": info.primary_id_attribute,
            "$filter": (
                f"Microsoft.Dynamics.CRM.In(PropertyName='{self._escape_odata_quotes(lookup_field)}',"
                f"PropertyValues=[{values}])"
            ),
        }
        url: Optional[str] = f"{self.api}/{info.entity_set_name}"
        ids: List[str] = []
        page = 0
        while url:
            page += 1
            headers = self._headers().copy()
            headers["Prefer"] = PREFER_MAX_PAGE_SIZE.format(size=DEFAULT_PAGE_SIZE)
            logger.debug("Querying %s by %s (page %d)", info.logical_name, lookup_field, page)
            try:
                r = self._request("get", url, headers=headers, params=params)
            except HttpError as exc:
                raise QueryError(
                    f"Lookup of '{info.logical_name}' records by '{lookup_field}' failed: {exc.message}",
                    subcode=exc.subcode,
                    status_code=exc.status_code,
                    details={
                        "lookup_entity": info.logical_name,
                        "lookup_field": lookup_field,
                        "page": page,
                        **exc.details,
                    },
                    is_transient=exc.is_transient,
                ) from exc
            except requests.exceptions.RequestException as exc:
                raise QueryError(
                    f"Lookup of '{info.logical_name}' records by '{lookup_field}' could not be sent: {exc}",
                    subcode=QUERY_UNREACHABLE,
                    details={"lookup_entity": info.logical_name, "lookup_field": lookup_field, "page": page},
                    is_transient=True,
                ) from exc
            try:
                body = r.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            for row in body.get("value") or []:
                if isinstance(row, dict) and row.get(info.primary_id_attribute):
                    ids.append(str(row[info.primary_id_attribute]))
            next_link = body.get("@odata.nextLink")
            url = next_link if isinstance(next_link, str) and next_link else None
            # nextLink already carries the query options
            params = None
        return ids

    def close(self) -> None:
        """Release the underlying HTTP client."""
        self._http.close()
