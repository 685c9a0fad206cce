# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Helpers for cascade deletion.
"""

from ._batching import partition

__all__ = ["partition"]
