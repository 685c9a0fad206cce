# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Restrict-aware cascade deletion.

:class:`CascadeDeleter` deletes records of a table in size-bounded batches.
Before each batch is deleted, every record that references the batch through a
``Restrict`` relationship is deleted first, recursively, so the service never
refuses the parent deletion because of a dependent record.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable as IterableABC
from typing import FrozenSet, Generator, Iterable, List, Optional, Set, Tuple, Union

from ..core._error_codes import (
    BATCH_MALFORMED_RESPONSE,
    VALIDATION_BATCH_SIZE,
    VALIDATION_ENTITY_NAME_EMPTY,
    VALIDATION_IDS_NOT_LIST,
    VALIDATION_INVALID_GUID,
)
from ..core.config import DEFAULT_BATCH_SIZE
from ..core.errors import BatchExecutionError, CycleDetectedError, DataverseError, ValidationError
from ..core.telemetry import BatchContext, CascadeContext, NoOpTelemetryManager
from ..data.store import CascadeStore
from ..models.metadata import RestrictDependency
from ..models.results import BulkDeleteOutcome, DeleteResult
from ..utils._batching import partition
from .relationships import RelationshipResolver

logger = logging.getLogger(__name__)

RecordId = Union[str, uuid.UUID]

# A pending sub-cascade: (dependent entity, dependent ids, depth)
_Request = Tuple[str, List[str], int]
_Frame = Generator[_Request, List[DeleteResult], List[DeleteResult]]


class _CascadeState:
    """Per-invocation bookkeeping, owned by the top-level call."""

    def __init__(self) -> None:
        # (entity, record id) pairs already submitted for deletion
        self.attempted: Set[Tuple[str, str]] = set()
        # (entity, batch ids) frames whose dependents are being resolved, outermost first
        self.chain: List[Tuple[str, FrozenSet[str]]] = []
        self.active: Set[Tuple[str, FrozenSet[str]]] = set()

    def pending(self, entity_name: str, ids: Iterable[str]) -> List[str]:
        """Ids not yet submitted in this cascade, deduplicated, in input order."""
        out: List[str] = []
        seen: Set[str] = set()
        for record_id in ids:
            if record_id in seen or (entity_name, record_id) in self.attempted:
                continue
            seen.add(record_id)
            out.append(record_id)
        return out

    def mark_attempted(self, entity_name: str, ids: Iterable[str]) -> None:
        self.attempted.update((entity_name, record_id) for record_id in ids)


def _annotate(exc: DataverseError, entity_name: str, depth: int, batch: Optional[int] = None) -> None:
    # Innermost frame annotates first; outer frames keep its values.
    exc.details.setdefault("entity", entity_name)
    exc.details.setdefault("depth", depth)
    exc.details.setdefault("batch", batch)


def _normalize_ids(ids: Union[RecordId, Iterable[RecordId]]) -> List[str]:
    if isinstance(ids, (str, uuid.UUID)):
        ids = [ids]
    if isinstance(ids, (bytes, bytearray)) or not isinstance(ids, IterableABC):
        raise ValidationError(
            f"ids must be a GUID or an iterable of GUIDs, got {type(ids).__name__}",
            subcode=VALIDATION_IDS_NOT_LIST,
        )
    normalized: List[str] = []
    for value in ids:
        if isinstance(value, uuid.UUID):
            normalized.append(str(value))
            continue
        if not isinstance(value, str):
            raise ValidationError(
                f"Record ids must be str or uuid.UUID, got {type(value).__name__}",
                subcode=VALIDATION_INVALID_GUID,
            )
        try:
            normalized.append(str(uuid.UUID(value.strip().strip("{}"))))
        except ValueError:
            raise ValidationError(
                f"'{value}' is not a valid GUID",
                subcode=VALIDATION_INVALID_GUID,
                details={"record_id": value},
            ) from None
    return normalized


class CascadeDeleter:
    """
    Deletes records after recursively deleting their restrict-dependent records.

    Batches, and the sub-cascades of each batch, run strictly in sequence. Results
    come back in processing order: the results of a batch's dependents precede the
    batch's own results, and dependents of different relationships follow the order
    in which the relationships were discovered.

    Sub-cascades are kept on an explicit stack rather than the interpreter's call
    stack, so arbitrarily deep dependency chains (for example a long self-referencing
    parent hierarchy) do not hit the recursion limit.

    Any :class:`~dataverse_cascade.core.errors.DataverseError` raised by the store
    (metadata, lookup or batch execution failure) aborts the whole cascade. Before it
    propagates its ``details`` gain ``entity``, ``batch`` (1-based) and ``depth``
    (0 for the requested table) of the frame where it happened.

    :param store: Store providing relationship metadata, lookups and bulk delete.
    :type store: ~dataverse_cascade.data.store.CascadeStore
    :param batch_size: Maximum records per bulk-delete request (default 1000).
    :type batch_size: :class:`int`
    :param resolver: Optional resolver; defaults to a :class:`RelationshipResolver` over ``store``.
    :param telemetry: Optional telemetry manager receiving cascade and batch events.

    :raises ~dataverse_cascade.core.errors.ValidationError: If ``batch_size`` is not a positive integer.

    Example::

        deleter = CascadeDeleter(store, batch_size=500)
        results = deleter.cascade_delete("account", account_ids)
        failed = [r for r in results if not r.succeeded]
    """

    def __init__(
        self,
        store: CascadeStore,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        resolver: Optional[RelationshipResolver] = None,
        telemetry=None,
    ) -> None:
        self._store = store
        self._resolver = resolver or RelationshipResolver(store)
        self._telemetry = telemetry or NoOpTelemetryManager()
        self.batch_size = batch_size

    @property
    def resolver(self) -> RelationshipResolver:
        """Resolver used to discover restrict dependencies."""
        return self._resolver

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @batch_size.setter
    def batch_size(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValidationError(
                f"batch_size must be a positive integer, got {value!r}",
                subcode=VALIDATION_BATCH_SIZE,
            )
        self._batch_size = value

    def cascade_delete(
        self, entity_name: str, ids: Union[RecordId, Iterable[RecordId]]
    ) -> List[DeleteResult]:
        """
        Delete ``ids`` of ``entity_name`` together with everything that restricts their deletion.

        Each record receives exactly one result per call, even when it is reached more
        than once (for example through two restrict relationships or a self-referencing
        hierarchy). A batch is still submitted when some of its dependents failed to
        delete; those failures surface as failed results of the batch itself.

        :param entity_name: Logical name of the table, e.g. ``"account"``. Case-sensitive.
        :type entity_name: :class:`str`
        :param ids: A GUID or any iterable of GUIDs (``str`` or :class:`uuid.UUID`).
        :return: One result per record submitted for deletion at any depth.
        :rtype: :class:`list` of :class:`~dataverse_cascade.models.results.DeleteResult`

        :raises ~dataverse_cascade.core.errors.ValidationError: For an empty table name or malformed ids.
        :raises ~dataverse_cascade.core.errors.MetadataError: If relationship metadata cannot be read.
        :raises ~dataverse_cascade.core.errors.QueryError: If a dependent lookup fails.
        :raises ~dataverse_cascade.core.errors.BatchExecutionError: If a bulk-delete request fails as a whole.
        :raises ~dataverse_cascade.core.errors.CycleDetectedError: If the dependency recursion would never end.
        """
        if not isinstance(entity_name, str) or not entity_name.strip():
            raise ValidationError("entity_name must be a non-empty string", subcode=VALIDATION_ENTITY_NAME_EMPTY)
        record_ids = _normalize_ids(ids)
        state = _CascadeState()
        return self._run(self._cascade(entity_name, record_ids, state, 0), state)

    def _run(self, root: _Frame, state: _CascadeState) -> List[DeleteResult]:
        """Drive entity-level frames until the root frame returns.

        A frame yields ``(entity, ids, depth)`` to request a sub-cascade and is resumed
        with that sub-cascade's results, or with its exception thrown in.
        """
        stack: List[_Frame] = [root]
        reply: Optional[List[DeleteResult]] = None
        error: Optional[Exception] = None
        while True:
            frame = stack[-1]
            try:
                if error is not None:
                    request = frame.throw(error)
                else:
                    request = frame.send(reply)
            except StopIteration as done:
                stack.pop()
                if not stack:
                    return done.value
                reply, error = done.value, None
                continue
            except Exception as exc:
                stack.pop()
                if not stack:
                    raise
                reply, error = None, exc
                continue
            entity_name, ids, depth = request
            stack.append(self._cascade(entity_name, ids, state, depth))
            reply, error = None, None

    def _cascade(self, entity_name: str, ids: List[str], state: _CascadeState, depth: int) -> _Frame:
        try:
            dependencies = self._resolver.resolve_restrict_dependencies(entity_name)
        except DataverseError as exc:
            _annotate(exc, entity_name, depth)
            raise

        batches = partition(ids, self._batch_size)
        context = CascadeContext(
            entity_name=entity_name,
            record_count=len(ids),
            batch_count=len(batches),
            depth=depth,
            dependent_entities=[d.dependent_entity for d in dependencies],
        )
        results: List[DeleteResult] = []
        with self._telemetry.trace_cascade(context):
            for number, batch in enumerate(batches, start=1):
                try:
                    batch_results = yield from self._process_batch(
                        entity_name, batch, dependencies, state, depth, number, len(batches)
                    )
                    results.extend(batch_results)
                except DataverseError as exc:
                    _annotate(exc, entity_name, depth, number)
                    raise
        return results

    def _process_batch(
        self,
        entity_name: str,
        batch: List[str],
        dependencies: List[RestrictDependency],
        state: _CascadeState,
        depth: int,
        number: int,
        batch_count: int,
    ) -> _Frame:
        pending = state.pending(entity_name, batch)
        if not pending:
            logger.debug("Batch %d of %d on %s was already processed in this cascade", number, batch_count, entity_name)
            return []

        results: List[DeleteResult] = []
        if dependencies:
            frame = (entity_name, frozenset(pending))
            if frame in state.active:
                chain = [entity for entity, _ in state.chain] + [entity_name]
                raise CycleDetectedError(
                    f"Restrict dependencies of '{entity_name}' lead back to records already being resolved: "
                    + " -> ".join(chain),
                    chain=chain,
                )
            state.chain.append(frame)
            state.active.add(frame)
            try:
                for dependency in dependencies:
                    dependent_ids = self._store.find_records_by_lookup(
                        dependency.dependent_entity, dependency.dependent_lookup_field, pending
                    )
                    logger.debug(
                        "Found %d dependent record(s) on %s in batch %d of %s",
                        len(dependent_ids),
                        dependency.dependent_entity,
                        number,
                        entity_name,
                    )
                    if dependent_ids:
                        request = (dependency.dependent_entity, [str(i) for i in dependent_ids], depth + 1)
                        results.extend((yield request))
            finally:
                state.chain.pop()
                state.active.discard(frame)
            # a self-referencing relationship may already have deleted part of this batch
            pending = state.pending(entity_name, pending)
            if not pending:
                return results

        state.mark_attempted(entity_name, pending)
        outcomes = self._store.bulk_delete(entity_name, pending)
        batch_results = self._to_results(entity_name, pending, outcomes)
        self._telemetry.record_batch(
            BatchContext(
                entity_name=entity_name,
                batch_number=number,
                batch_count=batch_count,
                depth=depth,
                requested=len(pending),
                succeeded=sum(1 for r in batch_results if r.succeeded),
            )
        )
        results.extend(batch_results)
        return results

    @staticmethod
    def _to_results(entity_name: str, ids: List[str], outcomes: List[BulkDeleteOutcome]) -> List[DeleteResult]:
        if len(outcomes) != len(ids):
            raise BatchExecutionError(
                f"Bulk delete on '{entity_name}' returned {len(outcomes)} outcome(s) for {len(ids)} request(s)",
                subcode=BATCH_MALFORMED_RESPONSE,
                details={"requested": len(ids), "returned": len(outcomes)},
            )
        return [
            DeleteResult(entity_name=entity_name, record_id=record_id, outcome=outcome.to_outcome())
            for record_id, outcome in zip(ids, outcomes)
        ]
