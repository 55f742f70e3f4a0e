"""
Size-constrained PDF splitting.

Given a PDF and a byte ceiling, produce contiguous page-ordered parts that
each measure at or under the ceiling:
- It only knows page counts and byte sizes, reported by external oracles.
- It never edits page content (no recompression, no re-rendering).
- A document already under the ceiling is published unchanged as one part.
"""

from .contracts import (
    DEFAULT_MAX_SIZE_BYTES,
    ExitCode,
    PageRange,
    PartitionPlan,
    Segment,
    SplitEngineName,
    SplitPdfConfig,
    SplitPdfError,
    SplitPdfOutput,
    SplitPdfResult,
)
from .errors import (
    MaterializationError,
    MaxAttemptsExceededError,
    MissingToolError,
    OutputWriteError,
    PartitionCancelledError,
    PartitionError,
    SizeDeterminationError,
    UnsplittablePageError,
)
from .module import exit_code_for, run_split_pdf
from .partitioner import AdaptivePartitioner, partition

__all__ = [
    "AdaptivePartitioner",
    "DEFAULT_MAX_SIZE_BYTES",
    "ExitCode",
    "MaterializationError",
    "MaxAttemptsExceededError",
    "MissingToolError",
    "OutputWriteError",
    "PageRange",
    "PartitionCancelledError",
    "PartitionError",
    "PartitionPlan",
    "Segment",
    "SizeDeterminationError",
    "SplitEngineName",
    "SplitPdfConfig",
    "SplitPdfError",
    "SplitPdfOutput",
    "SplitPdfResult",
    "UnsplittablePageError",
    "exit_code_for",
    "partition",
    "run_split_pdf",
]
