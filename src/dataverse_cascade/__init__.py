# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Restrict-aware cascade deletion for Microsoft Dataverse.

Deletes records in size-bounded batches after first removing, recursively,
every dependent record that a ``Restrict`` delete relationship would otherwise
use to block the deletion.
"""

from .__version__ import __version__
from .client import DataverseClient

__all__ = ["DataverseClient", "__version__"]
