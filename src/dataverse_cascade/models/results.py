# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Result types for cascade deletion.

- :class:`Success` / :class:`Failure`: the two possible outcomes of one record deletion
- :class:`DeleteResult`: one attempted record deletion and its outcome
- :class:`BulkDeleteOutcome`: what a store reports for one id of a bulk-delete request

Example::

    for result in client.cascade.delete("account", ids):
        if isinstance(result.outcome, Failure):
            print(f"{result.entity_name} {result.record_id}: {result.outcome.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Union


@dataclass(frozen=True)
class Success:
    """The record was deleted."""

    def __str__(self) -> str:
        return "Success"


@dataclass(frozen=True)
class Failure:
    """
    The record could not be deleted.

    :param message: Fault message reported by the service for this record.
    :type message: :class:`str`
    """

    message: str

    def __str__(self) -> str:
        return self.message


DeleteOutcome = Union[Success, Failure]

SUCCESS = Success()


@dataclass(frozen=True)
class BulkDeleteOutcome:
    """
    Per-record outcome of a bulk-delete request as reported by the store.

    :param record_id: The id that was requested for deletion.
    :type record_id: :class:`str`
    :param fault_message: Fault message when this record failed, ``None`` on success.
    :type fault_message: :class:`str` | None
    """

    record_id: str
    fault_message: Optional[str] = None

    def to_outcome(self) -> DeleteOutcome:
        if self.fault_message is None:
            return SUCCESS
        return Failure(self.fault_message)


@dataclass(frozen=True)
class DeleteResult:
    """
    One attempted record deletion.

    :param entity_name: Logical name of the entity the record belongs to.
    :type entity_name: :class:`str`
    :param record_id: The record GUID.
    :type record_id: :class:`str`
    :param outcome: :class:`Success` or :class:`Failure`.
    :type outcome: :class:`Success` | :class:`Failure`
    """

    entity_name: str
    record_id: str
    outcome: DeleteOutcome

    @property
    def succeeded(self) -> bool:
        return isinstance(self.outcome, Success)

    @property
    def message(self) -> Optional[str]:
        """Failure message, ``None`` for successful deletions."""
        if isinstance(self.outcome, Failure):
            return self.outcome.message
        return None


def count_successes(results: Iterable[DeleteResult]) -> int:
    return sum(1 for r in results if r.succeeded)


def failures(results: Iterable[DeleteResult]) -> List[DeleteResult]:
    """Return the failed results, preserving order."""
    return [r for r in results if not r.succeeded]


__all__ = [
    "Success",
    "Failure",
    "DeleteOutcome",
    "BulkDeleteOutcome",
    "DeleteResult",
    "count_successes",
    "failures",
]
