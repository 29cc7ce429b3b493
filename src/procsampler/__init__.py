"""Process resource sampler with a typed metric store."""

from procsampler.metrics import (
    MetricConflict,
    MetricKind,
    MetricNotDeclared,
    MetricStore,
)
from procsampler.sampler import (
    CommandFallbackSource,
    ProcessSampler,
    ProcessSource,
    StructuredSource,
    new_process_store,
)

__all__ = [
    "CommandFallbackSource",
    "MetricConflict",
    "MetricKind",
    "MetricNotDeclared",
    "MetricStore",
    "ProcessSampler",
    "ProcessSource",
    "StructuredSource",
    "new_process_store",
]
