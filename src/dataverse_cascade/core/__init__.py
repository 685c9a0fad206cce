# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Core infrastructure components for cascade deletion.

This module contains the foundational components including configuration,
error handling and telemetry.
"""

from .config import DataverseConfig
from .errors import (
    BatchExecutionError,
    CycleDetectedError,
    DataverseError,
    HttpError,
    MetadataError,
    QueryError,
    ValidationError,
)
from .telemetry import TelemetryConfig, TelemetryHook

__all__ = [
    "DataverseConfig",
    "DataverseError",
    "ValidationError",
    "MetadataError",
    "QueryError",
    "BatchExecutionError",
    "CycleDetectedError",
    "HttpError",
    "TelemetryConfig",
    "TelemetryHook",
]
