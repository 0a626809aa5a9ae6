"""Plan execution: backends, probing, batches, and the background worker."""

from .batch import BatchEntryResult, BatchReport, BatchRequest, BatchRunner
from .errors import (
    ExecutionError,
    ExecutionPreconditionError,
    ExternalToolFailureError,
    ExternalToolMissingError,
    OutputEmptyError,
    ProbeError,
    UnsupportedConversionError,
)
from .executor import ExecutionResult, PlanExecutor
from .probe import MediaProber
from .worker import ConversionWorker

__all__ = [
    "BatchEntryResult",
    "BatchReport",
    "BatchRequest",
    "BatchRunner",
    "ConversionWorker",
    "ExecutionError",
    "ExecutionPreconditionError",
    "ExecutionResult",
    "ExternalToolFailureError",
    "ExternalToolMissingError",
    "MediaProber",
    "OutputEmptyError",
    "PlanExecutor",
    "ProbeError",
    "UnsupportedConversionError",
]
