# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Operation namespaces and the cascade algorithm.
"""

from .cascade import CascadeOperations
from .deleter import CascadeDeleter
from .relationships import RelationshipResolver

__all__ = ["CascadeOperations", "CascadeDeleter", "RelationshipResolver"]
