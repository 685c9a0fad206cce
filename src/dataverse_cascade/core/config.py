# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ._error_codes import VALIDATION_BATCH_SIZE, VALIDATION_LOOKUP_CHUNK_SIZE
from .errors import ValidationError
from .telemetry import TelemetryConfig

DEFAULT_BATCH_SIZE = 1000
DEFAULT_LOOKUP_CHUNK_SIZE = 100


@dataclass(frozen=True)
class DataverseConfig:
    """
    Configuration settings for cascade delete operations.

    :param http_retries: Maximum number of attempts for HTTP requests (default: 5).
    :type http_retries: int or None
    :param http_backoff: Base delay in seconds for exponential backoff (default: 0.5).
    :type http_backoff: float or None
    :param http_max_backoff: Maximum delay between retry attempts in seconds (default: 60.0).
    :type http_max_backoff: float or None
    :param http_timeout: Request timeout in seconds (default: method-dependent).
    :type http_timeout: float or None
    :param batch_size: Maximum number of records deleted per bulk-delete request (default: 1000,
        which is also the Dataverse ``$batch`` request limit).
    :type batch_size: int
    :param lookup_chunk_size: Maximum number of referenced ids placed in a single dependent
        lookup query, bounding URL length (default: 100).
    :type lookup_chunk_size: int
    :param read_only: When True, dependency discovery runs against the live environment but
        deletions are only simulated and reported as successful.
    :type read_only: bool
    :param telemetry: Optional telemetry (logging and hooks) configuration.
    :type telemetry: ~dataverse_cascade.core.telemetry.TelemetryConfig or None

    :raises ~dataverse_cascade.core.errors.ValidationError: If ``batch_size`` or
        ``lookup_chunk_size`` is not a positive integer.
    """

    http_retries: Optional[int] = None
    http_backoff: Optional[float] = None
    http_max_backoff: Optional[float] = None
    http_timeout: Optional[float] = None

    batch_size: int = DEFAULT_BATCH_SIZE
    lookup_chunk_size: int = DEFAULT_LOOKUP_CHUNK_SIZE
    read_only: bool = False

    telemetry: Optional[TelemetryConfig] = None

    def __post_init__(self) -> None:
        if isinstance(self.batch_size, bool) or not isinstance(self.batch_size, int) or self.batch_size < 1:
            raise ValidationError(
                f"batch_size must be a positive integer, got {self.batch_size!r}",
                subcode=VALIDATION_BATCH_SIZE,
            )
        if (
            isinstance(self.lookup_chunk_size, bool)
            or not isinstance(self.lookup_chunk_size, int)
            or self.lookup_chunk_size < 1
        ):
            raise ValidationError(
                f"lookup_chunk_size must be a positive integer, got {self.lookup_chunk_size!r}",
                subcode=VALIDATION_LOOKUP_CHUNK_SIZE,
            )

    @classmethod
    def from_env(cls) -> "DataverseConfig":
        """
        Create a configuration instance with default settings.

        :return: Configuration instance with default values.
        :rtype: ~dataverse_cascade.core.config.DataverseConfig
        """
        # Environment-free defaults
        return cls(
            http_retries=None,  # Will default to 5 in _HttpClient
            http_backoff=None,  # Will default to 0.5 in _HttpClient
            http_max_backoff=None,  # Will default to 60.0 in _HttpClient
            http_timeout=None,  # Will use method-dependent defaults in _HttpClient
            batch_size=DEFAULT_BATCH_SIZE,
            lookup_chunk_size=DEFAULT_LOOKUP_CHUNK_SIZE,
            read_only=False,
        )
