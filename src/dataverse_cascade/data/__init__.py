# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Data access layer for cascade deletion.

This module contains the store protocol consumed by the cascade algorithm and
its Dataverse Web API implementation.
"""

from .store import CascadeStore

__all__ = ["CascadeStore"]
