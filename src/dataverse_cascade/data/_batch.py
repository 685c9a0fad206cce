# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Bulk delete through the Dataverse Web API ``$batch`` endpoint.

Each id becomes one ``DELETE`` part of a ``multipart/mixed`` batch sent with
``Prefer: odata.continue-on-error`` so a failing record does not stop the rest
of the batch. Each response part is translated into a
:class:`~dataverse_cascade.models.results.BulkDeleteOutcome`.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import requests

from ..common.constants import PREFER_CONTINUE_ON_ERROR
from ..core._error_codes import BATCH_MALFORMED_RESPONSE, BATCH_UNREACHABLE
from ..core.errors import BatchExecutionError, HttpError
from ..models.results import BulkDeleteOutcome

logger = logging.getLogger(__name__)

_BOUNDARY_RE = re.compile(r'boundary="?([^";]+)"?', re.IGNORECASE)
_CONTENT_ID_RE = re.compile(r"^Content-ID:\s*(\S+)\s*$", re.IGNORECASE | re.MULTILINE)
_STATUS_LINE_RE = re.compile(r"^HTTP/\d(?:\.\d)?\s+(\d{3})(?:\s+(.*))?$")

MISSING_RESPONSE_MESSAGE = "No response was returned for this record in the batch."


@dataclass
class _BatchPart:
    """One ``application/http`` part of a batch response."""

    status_code: int
    reason: str = ""
    body: str = ""
    content_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def fault_message(self) -> str:
        """Service error message of a failed part, falling back to the status line."""
        if self.body:
            try:
                payload = json.loads(self.body)
            except ValueError:
                payload = None
            if isinstance(payload, dict):
                err = payload.get("error")
                if isinstance(err, dict) and err.get("message"):
                    return str(err["message"])
            excerpt = self.body.strip()
            if excerpt and payload is None:
                return excerpt[:512]
        reason = f" {self.reason}" if self.reason else ""
        return f"HTTP {self.status_code}{reason}"


def _build_batch_body(boundary: str, api: str, entity_set: str, ids: Sequence[str]) -> str:
    """Build a ``multipart/mixed`` body with one ``DELETE`` request per id (Content-ID is 1-based)."""
    lines: List[str] = []
    for index, record_id in enumerate(ids, start=1):
        lines.extend(
            [
                f"--{boundary}",
                "Content-Type: application/http",
                "Content-Transfer-Encoding: binary",
                f"Content-ID: {index}",
                "",
                f"DELETE {api}/{entity_set}({record_id}) HTTP/1.1",
                "",
                "",
            ]
        )
    lines.append(f"--{boundary}--")
    lines.append("")
    return "\r\n".join(lines)


def _parse_part(segment: str) -> Optional[_BatchPart]:
    text = segment.replace("\r\n", "\n").strip("\n")
    if not text:
        return None
    mime_headers, _, http_message = text.partition("\n\n")
    content_id_match = _CONTENT_ID_RE.search(mime_headers)
    http_message = http_message.lstrip("\n")
    status_line, _, rest = http_message.partition("\n")
    status_match = _STATUS_LINE_RE.match(status_line.strip())
    if not status_match:
        raise BatchExecutionError(
            f"Unrecognised status line in batch response part: {status_line.strip()[:100]!r}",
            subcode=BATCH_MALFORMED_RESPONSE,
        )
    if rest.startswith("\n"):
        body = rest[1:]
    else:
        _, _, body = rest.partition("\n\n")
    return _BatchPart(
        status_code=int(status_match.group(1)),
        reason=(status_match.group(2) or "").strip(),
        body=body.strip(),
        content_id=content_id_match.group(1) if content_id_match else None,
    )


def _parse_batch_response(content_type: Optional[str], text: str) -> List[_BatchPart]:
    """
    Split a ``multipart/mixed`` batch response into its parts, in response order.

    :raises BatchExecutionError: If the response is not a multipart batch response.
    """
    match = _BOUNDARY_RE.search(content_type or "")
    if not match:
        raise BatchExecutionError(
            f"Batch response is not multipart (Content-Type: {content_type!r}).",
            subcode=BATCH_MALFORMED_RESPONSE,
        )
    delimiter = f"--{match.group(1)}"
    parts: List[_BatchPart] = []
    for segment in (text or "").split(delimiter)[1:]:
        if segment.startswith("--"):
            break
        part = _parse_part(segment)
        if part is not None:
            parts.append(part)
    return parts


def _match_outcomes(ids: Sequence[str], parts: List[_BatchPart]) -> List[BulkDeleteOutcome]:
    """
    Pair response parts with requested ids.

    Parts are matched by Content-ID when every part carries a usable one, otherwise
    by position. Ids left without a part are reported as faults.
    """
    by_index: Dict[int, _BatchPart] = {}
    content_ids = [p.content_id for p in parts]
    if parts and all(cid is not None and cid.isdigit() for cid in content_ids):
        for part in parts:
            by_index[int(part.content_id) - 1] = part
    else:
        by_index = dict(enumerate(parts))

    outcomes: List[BulkDeleteOutcome] = []
    for index, record_id in enumerate(ids):
        part = by_index.get(index)
        if part is None:
            outcomes.append(BulkDeleteOutcome(record_id, MISSING_RESPONSE_MESSAGE))
        elif part.ok:
            outcomes.append(BulkDeleteOutcome(record_id))
        else:
            outcomes.append(BulkDeleteOutcome(record_id, part.fault_message()))
    return outcomes


class _BatchOperationsMixin:
    """
    Mixin providing bulk delete through ``$batch``.

    This mixin is designed to be used with _ODataClient and depends on:
    - self.api: The API base URL
    - self.config: DataverseConfig (``read_only``)
    - self._headers(): Method to get auth headers
    - self._request(): Method to make HTTP requests (raises HttpError on failure)
    - self._entity_set_name(): Logical name to entity set name resolution
    """

    def bulk_delete(self, entity_name: str, ids: Sequence[str]) -> List[BulkDeleteOutcome]:
        """
        Delete records in a single ``$batch`` request.

        :param entity_name: Logical name of the table.
        :type entity_name: ``str``
        :param ids: Record GUIDs to delete.
        :type ids: ``Sequence[str]``

        :return: One outcome per id, in request order.
        :rtype: ``list[BulkDeleteOutcome]``

        :raises BatchExecutionError: If the batch cannot be sent, the service rejects the
            batch as a whole, or the response cannot be parsed.
        """
        ids = list(ids)
        if not ids:
            return []
        if self.config.read_only:
            logger.info("Read-only connection: simulated deletion of %d %s record(s)", len(ids), entity_name)
            return [BulkDeleteOutcome(record_id) for record_id in ids]

        entity_set = self._entity_set_name(entity_name)
        boundary = f"batch_{uuid.uuid4()}"
        body = _build_batch_body(boundary, self.api, entity_set, ids)
        headers = self._headers().copy()
        headers["Content-Type"] = f"multipart/mixed; boundary={boundary}"
        headers["Prefer"] = PREFER_CONTINUE_ON_ERROR

        logger.debug("Executing $batch with %d delete request(s) on %s", len(ids), entity_name)
        try:
            r = self._request("post", f"{self.api}/$batch", headers=headers, data=body.encode("utf-8"))
        except HttpError as exc:
            raise BatchExecutionError(
                f"Batch delete on '{entity_name}' was rejected: {exc.message}",
                subcode=exc.subcode,
                status_code=exc.status_code,
                details={"entity": entity_name, "requested": len(ids), **exc.details},
                is_transient=exc.is_transient,
            ) from exc
        except requests.exceptions.RequestException as exc:
            raise BatchExecutionError(
                f"Batch delete on '{entity_name}' could not be sent: {exc}",
                subcode=BATCH_UNREACHABLE,
                details={"entity": entity_name, "requested": len(ids)},
                is_transient=True,
            ) from exc

        parts = _parse_batch_response(r.headers.get("Content-Type"), r.text)
        if len(parts) != len(ids):
            logger.warning("Batch on %s returned %d part(s) for %d request(s)", entity_name, len(parts), len(ids))
        return _match_outcomes(ids, parts)
