# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Data models and type definitions for cascade deletion.
"""

from .metadata import CascadeConfiguration, OneToManyRelationshipMetadata, RestrictDependency
from .results import (
    BulkDeleteOutcome,
    DeleteOutcome,
    DeleteResult,
    Failure,
    Success,
)

__all__ = [
    "CascadeConfiguration",
    "OneToManyRelationshipMetadata",
    "RestrictDependency",
    "BulkDeleteOutcome",
    "DeleteOutcome",
    "DeleteResult",
    "Failure",
    "Success",
]
