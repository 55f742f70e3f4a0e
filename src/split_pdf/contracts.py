from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum, IntEnum
from pathlib import Path
from typing import Any, Iterator

MIB = 1024 * 1024

# Submission portals cap uploads at 25 MiB; keep a small margin under it.
DEFAULT_MAX_SIZE_BYTES = 25 * MIB - 256 * 1024
DEFAULT_SAFETY_MARGIN = 0.90
DEFAULT_SHRINK_RATIO = 0.20
DEFAULT_MAX_ATTEMPTS = 20


class SplitEngineName(str, Enum):
    """
    Page-range extraction backend identifiers.
    """

    PYPDFIUM2 = "pypdfium2"
    QPDF = "qpdf"


class PartitionState(str, Enum):
    IDLE = "idle"
    ESTIMATING = "estimating"
    PROBING_SEGMENT = "probing_segment"
    ACCEPTED = "accepted"
    SHRINK_RETRY = "shrink_retry"
    DONE = "done"
    FAILED = "failed"


class ExitCode(IntEnum):
    OK = 0
    INPUT_NOT_FOUND = 3
    SIZE_DETERMINATION_FAILED = 10
    MATERIALIZATION_FAILED = 11
    UNSPLITTABLE_PAGE = 12
    MAX_ATTEMPTS_EXCEEDED = 13
    CANCELLED = 14
    OUTPUT_WRITE_FAILED = 15
    MISSING_TOOL = 16


@dataclass(frozen=True, slots=True)
class PageRange:
    start: int  # 1-indexed
    end: int  # inclusive

    def __post_init__(self) -> None:
        if self.start < 1:
            raise ValueError(f"page ranges are 1-indexed, got start={self.start}")
        if self.end < self.start:
            raise ValueError(f"invalid page range: {self.start}-{self.end}")

    @property
    def page_count(self) -> int:
        return self.end - self.start + 1

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


@dataclass(frozen=True, slots=True)
class Attempt:
    attempt_num: int  # 1-indexed within one segment's search
    page_range: PageRange
    measured_size: int
    accepted: bool


@dataclass(frozen=True, slots=True)
class Segment:
    page_range: PageRange
    artifact: Path
    measured_size: int
    attempts: int = 1


@dataclass(frozen=True, slots=True)
class PartitionPlan:
    """
    Ordered, size-verified segments covering pages 1..page_count exactly once.

    `bypassed` is True when the whole document already fit under the ceiling;
    its single segment then points at the untouched input document.
    """

    page_count: int
    max_size_bytes: int
    segments: tuple[Segment, ...]
    bypassed: bool = False

    def __post_init__(self) -> None:
        if not self.segments:
            raise ValueError("a partition plan needs at least one segment")
        if self.segments[0].page_range.start != 1:
            raise ValueError("first segment must start at page 1")
        for prev, nxt in zip(self.segments, self.segments[1:]):
            if prev.page_range.end + 1 != nxt.page_range.start:
                raise ValueError(
                    f"segments are not contiguous: {prev.page_range} then {nxt.page_range}"
                )
        if self.segments[-1].page_range.end != self.page_count:
            raise ValueError(
                f"last segment ends at {self.segments[-1].page_range.end}, "
                f"document has {self.page_count} pages"
            )
        for seg in self.segments:
            if seg.measured_size > self.max_size_bytes:
                raise ValueError(f"segment {seg.page_range} exceeds the size ceiling")

    @property
    def is_split(self) -> bool:
        return len(self.segments) > 1

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def __getitem__(self, idx: int) -> Segment:
        return self.segments[idx]


@dataclass(frozen=True, slots=True)
class SplitPdfError:
    code: str
    message: str
    detail: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class SplitPdfOutput:
    part_num: int  # 1-indexed; index i in the output list is part i+1
    path: str
    start_page: int
    end_page: int
    size_bytes: int


@dataclass(frozen=True, slots=True)
class SplitPdfResult:
    ok: bool
    engine: SplitEngineName
    source_pdf: str
    max_size_bytes: int
    page_count: int | None
    split: bool
    outputs: list[SplitPdfOutput]
    errors: list[SplitPdfError]
    meta: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class SplitPdfConfig:
    """
    Splitting configuration.

    Everything is passed explicitly: the library reads no environment
    variables and invents no output directories.
    """

    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES
    safety_margin: float = DEFAULT_SAFETY_MARGIN
    shrink_ratio: float = DEFAULT_SHRINK_RATIO
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    engine: SplitEngineName = SplitEngineName.PYPDFIUM2
    timeout_s: float = 300.0
    work_dir: Path | None = None  # parent for the per-run temp directory
    compute_source_sha256: bool = False

    def __post_init__(self) -> None:
        if self.max_size_bytes <= 0:
            raise ValueError("max_size_bytes must be a positive integer")
        if not 0.0 < self.safety_margin <= 1.0:
            raise ValueError("safety_margin must be in (0, 1]")
        if not 0.0 < self.shrink_ratio < 1.0:
            raise ValueError("shrink_ratio must be in (0, 1)")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.work_dir is not None and not isinstance(self.work_dir, Path):
            raise TypeError("work_dir must be pathlib.Path or None")
