# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Telemetry infrastructure for cascade deletion.

Progress of a cascade is reported through a standard :mod:`logging` logger, an
extensible hook system and, when the ``opentelemetry`` API is installed and
enabled, one trace span per entity level plus per-batch counters.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generator, List, Optional, Protocol, Union, runtime_checkable

from ..common.constants import (
    OTEL_ATTR_CASCADE_DEPTH,
    OTEL_ATTR_CASCADE_RECORD_COUNT,
    OTEL_ATTR_DATAVERSE_TABLE,
    OTEL_ATTR_DB_OPERATION,
    OTEL_ATTR_DB_SYSTEM,
)

# Optional OpenTelemetry imports
try:
    from opentelemetry import metrics, trace
    from opentelemetry.trace import Status, StatusCode

    _OTEL_AVAILABLE = True
except ImportError:
    _OTEL_AVAILABLE = False
    trace = None  # type: ignore
    metrics = None  # type: ignore
    Status = None  # type: ignore
    StatusCode = None  # type: ignore

logger = logging.getLogger(__name__)

_INSTRUMENTATION_NAME = "dataverse_cascade"
_SCHEMA_URL = "https://opentelemetry.io/schemas/1.21.0"


# --- settings ---


@dataclass(frozen=True)
class TelemetryConfig:
    """Configuration for cascade telemetry.

    Every signal is opt-in. Tracing and metrics need the ``opentelemetry-api``
    package (``pip install dataverse-cascade-delete[telemetry]``) and are silently
    off without it.

    Example:
        Progress logging at INFO::

            config = DataverseConfig(
                telemetry=TelemetryConfig(enable_logging=True, log_level="INFO")
            )

        Spans and metrics for an OTel exporter::

            config = DataverseConfig(
                telemetry=TelemetryConfig(enable_tracing=True, enable_metrics=True)
            )

        Custom hook::

            config = DataverseConfig(
                telemetry=TelemetryConfig(hooks=[MyCascadeHook()])
            )
    """

    enable_tracing: bool = False
    enable_metrics: bool = False
    enable_logging: bool = False

    log_level: str = "INFO"
    logger_name: str = "dataverse_cascade"

    hooks: List["TelemetryHook"] = field(default_factory=list)


# --- event payloads ---


@dataclass
class CascadeContext:
    """Context passed to telemetry hooks for each entity level of a cascade."""

    entity_name: str
    record_count: int
    batch_count: int
    depth: int
    dependent_entities: List[str] = field(default_factory=list)
    start_time: float = field(default_factory=time.perf_counter)

    # Set while a span is open
    _span: Optional[Any] = field(default=None, repr=False)


@dataclass
class BatchContext:
    """Outcome of one bulk-delete batch."""

    entity_name: str
    batch_number: int
    batch_count: int
    depth: int
    requested: int
    succeeded: int

    @property
    def failed(self) -> int:
        return self.requested - self.succeeded


# --- hooks ---


@runtime_checkable
class TelemetryHook(Protocol):
    """Protocol for custom cascade telemetry hooks.

    A hook may define any subset of these methods; missing ones are skipped.

    Example:
        class StatsdHook:
            def __init__(self, statsd):
                self.statsd = statsd

            def on_batch_end(self, batch: BatchContext):
                self.statsd.incr("cascade.deleted", batch.succeeded)
                self.statsd.incr("cascade.failed", batch.failed)
    """

    def on_cascade_start(self, context: CascadeContext) -> None:
        """Called once per entity level, after dependencies are resolved."""
        ...

    def on_batch_end(self, batch: BatchContext) -> None:
        """Called after each bulk-delete batch completes."""
        ...

    def on_cascade_end(self, context: CascadeContext, duration_ms: float) -> None:
        """Called when every batch of an entity level has been processed."""
        ...

    def on_cascade_error(self, context: CascadeContext, error: Exception) -> None:
        """Called when an entity level is aborted by an exception."""
        ...


# --- dispatch ---


class TelemetryManager:
    """Routes cascade events to the configured logger, hooks and OpenTelemetry instruments."""

    def __init__(self, config: Optional[TelemetryConfig] = None) -> None:
        self._config = config or TelemetryConfig()
        self._tracer: Optional[Any] = None
        self._meter: Optional[Any] = None
        self._logger: Optional[logging.Logger] = None
        self._hooks = list(self._config.hooks)

        self._cascade_duration: Optional[Any] = None
        self._batch_count: Optional[Any] = None
        self._deleted_count: Optional[Any] = None
        self._failed_count: Optional[Any] = None

        if self.is_tracing_enabled:
            self._tracer = trace.get_tracer(_INSTRUMENTATION_NAME, schema_url=_SCHEMA_URL)
        if self.is_metrics_enabled:
            self._meter = metrics.get_meter(_INSTRUMENTATION_NAME, schema_url=_SCHEMA_URL)
            self._setup_metrics()
        if self._config.enable_logging:
            self._logger = logging.getLogger(self._config.logger_name)
            self._logger.setLevel(getattr(logging, self._config.log_level.upper()))

    @property
    def is_tracing_enabled(self) -> bool:
        return self._config.enable_tracing and _OTEL_AVAILABLE

    @property
    def is_metrics_enabled(self) -> bool:
        return self._config.enable_metrics and _OTEL_AVAILABLE

    def _setup_metrics(self) -> None:
        self._cascade_duration = self._meter.create_histogram(
            name="dataverse.cascade.duration",
            description="Duration of one entity level of a cascade delete",
            unit="ms",
        )
        self._batch_count = self._meter.create_counter(
            name="dataverse.cascade.batch.count",
            description="Number of bulk-delete batches submitted",
            unit="1",
        )
        self._deleted_count = self._meter.create_counter(
            name="dataverse.cascade.record.deleted",
            description="Number of records deleted",
            unit="1",
        )
        self._failed_count = self._meter.create_counter(
            name="dataverse.cascade.record.failed",
            description="Number of records the service refused to delete",
            unit="1",
        )

    @contextmanager
    def trace_cascade(self, context: CascadeContext) -> Generator[CascadeContext, None, None]:
        """Wrap one entity level of a cascade.

        Usage:
            with telemetry.trace_cascade(context):
                for batch in batches:
                    ...
        """
        if self._logger:
            self._logger.info(
                "Entity %s has %d restrict delete dependenc%s: (%s); %d record(s) in %d batch(es)",
                context.entity_name,
                len(context.dependent_entities),
                "y" if len(context.dependent_entities) == 1 else "ies",
                ",".join(context.dependent_entities),
                context.record_count,
                context.batch_count,
                extra={"entity": context.entity_name, "depth": context.depth},
            )
        self._dispatch("on_cascade_start", context)

        if self._tracer:
            context._span = self._tracer.start_span(
                f"Dataverse cascade.delete {context.entity_name}",
                kind=trace.SpanKind.INTERNAL,
                attributes={
                    OTEL_ATTR_DB_SYSTEM: "dataverse",
                    OTEL_ATTR_DB_OPERATION: "cascade.delete",
                    OTEL_ATTR_DATAVERSE_TABLE: context.entity_name,
                    OTEL_ATTR_CASCADE_DEPTH: context.depth,
                    OTEL_ATTR_CASCADE_RECORD_COUNT: context.record_count,
                },
            )

        try:
            yield context
        except Exception as e:
            if context._span:
                context._span.set_status(Status(StatusCode.ERROR, str(e)))
                context._span.record_exception(e)
            self._dispatch("on_cascade_error", context, e)
            raise
        else:
            self._complete(context)
        finally:
            if context._span:
                context._span.end()
                context._span = None

    def _complete(self, context: CascadeContext) -> None:
        duration_ms = (time.perf_counter() - context.start_time) * 1000
        if self._cascade_duration:
            self._cascade_duration.record(duration_ms, {"table": context.entity_name, "depth": context.depth})
        if self._logger:
            self._logger.info(
                "All batches completed for %s in %.1fms",
                context.entity_name,
                duration_ms,
                extra={"entity": context.entity_name, "depth": context.depth},
            )
        self._dispatch("on_cascade_end", context, duration_ms)

    def record_batch(self, batch: BatchContext) -> None:
        """Record the outcome of one bulk-delete batch."""
        if self._batch_count:
            attributes = {"table": batch.entity_name}
            self._batch_count.add(1, attributes)
            self._deleted_count.add(batch.succeeded, attributes)
            if batch.failed:
                self._failed_count.add(batch.failed, attributes)
        if self._logger:
            level = logging.WARNING if batch.failed else logging.INFO
            self._logger.log(
                level,
                "Batch %d of %d on %s completed with %d success(es) of %d",
                batch.batch_number,
                batch.batch_count,
                batch.entity_name,
                batch.succeeded,
                batch.requested,
                extra={"entity": batch.entity_name, "depth": batch.depth},
            )
        self._dispatch("on_batch_end", batch)

    def _dispatch(self, method: str, *args: Any) -> None:
        """Dispatch to all registered hooks; hook failures never break a cascade."""
        for hook in self._hooks:
            if hasattr(hook, method):
                try:
                    getattr(hook, method)(*args)
                except Exception:
                    logger.debug("Telemetry hook %r failed in %s", hook, method, exc_info=True)


# --- disabled ---


class NoOpTelemetryManager:
    """Stand-in used when every telemetry signal is off."""

    @contextmanager
    def trace_cascade(self, context: CascadeContext) -> Generator[CascadeContext, None, None]:
        yield context

    def record_batch(self, batch: BatchContext) -> None:
        pass


def create_telemetry_manager(
    config: Optional[TelemetryConfig],
) -> Union[TelemetryManager, NoOpTelemetryManager]:
    """Return a dispatching manager, or the no-op one when there is nothing to emit to."""
    if config is None:
        return NoOpTelemetryManager()
    has_any_enabled = config.enable_tracing or config.enable_metrics or config.enable_logging or config.hooks
    if not has_any_enabled:
        return NoOpTelemetryManager()
    return TelemetryManager(config)


__all__ = [
    "TelemetryConfig",
    "TelemetryHook",
    "TelemetryManager",
    "NoOpTelemetryManager",
    "CascadeContext",
    "BatchContext",
    "create_telemetry_manager",
]
