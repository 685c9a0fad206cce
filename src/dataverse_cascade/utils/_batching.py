# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Batching helper."""

from __future__ import annotations

from typing import Iterable, List, TypeVar

T = TypeVar("T")


def partition(items: Iterable[T], size: int) -> List[List[T]]:
    """
    Split ``items`` into consecutive batches of at most ``size`` elements.

    Order is preserved and only the last batch may be shorter. An empty input
    yields no batches.

    :param items: Items to split.
    :type items: Iterable
    :param size: Maximum batch size, at least 1.
    :type size: :class:`int`
    :return: List of batches.
    :rtype: :class:`list` of :class:`list`
    :raises ValueError: If ``size`` is less than 1.

    Example::

        partition(["a", "b", "c"], 2)  # [["a", "b"], ["c"]]
    """
    if size < 1:
        raise ValueError(f"size must be at least 1, got {size}")
    batches: List[List[T]] = []
    current: List[T] = []
    for item in items:
        current.append(item)
        if len(current) == size:
            batches.append(current)
            current = []
    if current:
        batches.append(current)
    return batches
