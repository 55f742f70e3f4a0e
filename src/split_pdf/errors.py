from __future__ import annotations

from typing import Any

from .contracts import ExitCode, PageRange


class PartitionError(Exception):
    """
    Base for every fatal splitting failure.

    `code` is the stable identifier written to manifests, `detail` carries the
    page/range context a human needs to decide whether the limit or the
    document is at fault.
    """

    code = "SPLIT_FAILED"
    exit_code = ExitCode.MATERIALIZATION_FAILED

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = dict(detail or {})


class SizeDeterminationError(PartitionError):
    code = "SPLIT_SIZE_DETERMINATION_FAILED"
    exit_code = ExitCode.SIZE_DETERMINATION_FAILED


class MaterializationError(PartitionError):
    code = "SPLIT_MATERIALIZATION_FAILED"
    exit_code = ExitCode.MATERIALIZATION_FAILED

    def __init__(
        self,
        message: str,
        *,
        page_range: PageRange | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        merged = dict(detail or {})
        if page_range is not None:
            merged.setdefault("start_page", page_range.start)
            merged.setdefault("end_page", page_range.end)
        super().__init__(message, detail=merged)
        self.page_range = page_range


class UnsplittablePageError(PartitionError):
    code = "SPLIT_UNSPLITTABLE_PAGE"
    exit_code = ExitCode.UNSPLITTABLE_PAGE

    def __init__(self, *, page: int, size_bytes: int, max_size_bytes: int) -> None:
        size_mib = size_bytes / 1024 / 1024
        super().__init__(
            f"Single page (page {page}) is {size_mib:.1f} MiB and exceeds the size limit; "
            "it cannot be split on a page boundary",
            detail={"page": page, "size_bytes": size_bytes, "max_size_bytes": max_size_bytes},
        )
        self.page = page
        self.size_bytes = size_bytes


class MaxAttemptsExceededError(PartitionError):
    code = "SPLIT_MAX_ATTEMPTS_EXCEEDED"
    exit_code = ExitCode.MAX_ATTEMPTS_EXCEEDED

    def __init__(self, *, part_num: int, start_page: int, attempts: int, last_range: PageRange) -> None:
        super().__init__(
            f"Failed to create part {part_num} within size limit after {attempts} attempts",
            detail={
                "part_num": part_num,
                "start_page": start_page,
                "attempts": attempts,
                "last_start_page": last_range.start,
                "last_end_page": last_range.end,
            },
        )
        self.part_num = part_num
        self.attempts = attempts


class PartitionCancelledError(PartitionError):
    code = "SPLIT_CANCELLED"
    exit_code = ExitCode.CANCELLED


class OutputWriteError(PartitionError):
    code = "SPLIT_OUTPUT_WRITE_FAILED"
    exit_code = ExitCode.OUTPUT_WRITE_FAILED


class MissingToolError(PartitionError):
    """The backend binary or library is not installed; the document was never read."""

    code = "SPLIT_MISSING_TOOL"
    exit_code = ExitCode.MISSING_TOOL

    def __init__(self, message: str, *, tool: str, package: str | None = None) -> None:
        super().__init__(message, detail={"tool": tool, "package": package or tool})
        self.tool = tool
