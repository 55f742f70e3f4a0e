from __future__ import annotations

import logging
import math
from fractions import Fraction
from pathlib import Path
from typing import Callable

from .contracts import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_SAFETY_MARGIN,
    DEFAULT_SHRINK_RATIO,
    Attempt,
    PageRange,
    PartitionPlan,
    PartitionState,
    Segment,
)
from .engines.base import PageCounter, RangeMaterializer, SizeOracle
from .errors import (
    MaterializationError,
    MaxAttemptsExceededError,
    PartitionCancelledError,
    PartitionError,
    SizeDeterminationError,
    UnsplittablePageError,
)
from .estimator import estimate_pages_per_segment
from .sizes import format_size
from .workspace import RunWorkspace

logger = logging.getLogger(__name__)


def shrink_window(window: int, ratio: float = DEFAULT_SHRINK_RATIO) -> int:
    """
    Next candidate window after an oversized attempt.

    Removes floor(window * ratio) pages, at least one, and never goes below 1.
    """

    if window <= 1:
        return 1
    reduction = max(1, math.floor(window * Fraction(str(ratio))))
    return max(1, window - reduction)


class AdaptivePartitioner:
    """
    Greedy estimate -> materialize -> measure -> accept/shrink loop.

    Each segment starts where the previous one ended. The first segment probes
    `initial_window` pages; later segments re-apply the last accepted window.
    An oversized candidate is released at once and the window shrinks by
    `shrink_ratio` (at least one page) until it fits, the window is a single
    page (UnsplittablePageError) or `max_attempts` trials are spent
    (MaxAttemptsExceededError).
    """

    def __init__(
        self,
        *,
        size_oracle: SizeOracle,
        range_materializer: RangeMaterializer,
        workspace: RunWorkspace,
        max_size_bytes: int,
        shrink_ratio: float = DEFAULT_SHRINK_RATIO,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        should_cancel: Callable[[], bool] | None = None,
    ) -> None:
        if max_size_bytes <= 0:
            raise ValueError("max_size_bytes must be positive")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.size_oracle = size_oracle
        self.range_materializer = range_materializer
        self.workspace = workspace
        self.max_size_bytes = max_size_bytes
        self.shrink_ratio = shrink_ratio
        self.max_attempts = max_attempts
        self.should_cancel = should_cancel
        self.state = PartitionState.IDLE

    def run(self, *, document: Path, page_count: int, initial_window: int) -> tuple[Segment, ...]:
        if page_count < 1:
            raise ValueError("page_count must be >= 1")
        if initial_window < 1:
            raise ValueError("initial_window must be >= 1")

        accepted: list[Segment] = []
        try:
            start = 1
            window = initial_window
            while start <= page_count:
                segment = self._probe_segment(
                    document=document,
                    page_count=page_count,
                    part_num=len(accepted) + 1,
                    start=start,
                    window=window,
                )
                accepted.append(segment)
                window = segment.page_range.page_count
                start = segment.page_range.end + 1
        except BaseException:
            self.state = PartitionState.FAILED
            for seg in accepted:
                self.workspace.release(seg.artifact)
            raise

        self.state = PartitionState.DONE
        return tuple(accepted)

    def _probe_segment(
        self, *, document: Path, page_count: int, part_num: int, start: int, window: int
    ) -> Segment:
        history: list[Attempt] = []
        candidate = PageRange(start, min(start + window - 1, page_count))

        for attempt_num in range(1, self.max_attempts + 1):
            if self.should_cancel is not None and self.should_cancel():
                raise PartitionCancelledError(
                    f"Cancelled before attempt {attempt_num} of part {part_num}",
                    detail={"part_num": part_num, "start_page": start},
                )

            self.state = PartitionState.PROBING_SEGMENT
            candidate = PageRange(start, min(start + window - 1, page_count))
            logger.debug(f"Creating part {part_num} (attempt {attempt_num}): pages {candidate}")

            artifact, size = self._materialize_and_measure(
                document=document, page_range=candidate, part_num=part_num, attempt_num=attempt_num
            )
            attempt = Attempt(
                attempt_num=attempt_num,
                page_range=candidate,
                measured_size=size,
                accepted=size <= self.max_size_bytes,
            )
            history.append(attempt)

            if attempt.accepted:
                self.state = PartitionState.ACCEPTED
                logger.debug(f"Part {part_num} complete: {format_size(size)}, pages {candidate}")
                return Segment(page_range=candidate, artifact=artifact, measured_size=size, attempts=attempt_num)

            self.state = PartitionState.SHRINK_RETRY
            self.workspace.release(artifact)
            logger.debug(f"Part {part_num} too large ({format_size(size)}), reducing page count...")

            if candidate.page_count == 1:
                raise UnsplittablePageError(page=start, size_bytes=size, max_size_bytes=self.max_size_bytes)
            window = shrink_window(candidate.page_count, self.shrink_ratio)

        err = MaxAttemptsExceededError(
            part_num=part_num, start_page=start, attempts=self.max_attempts, last_range=candidate
        )
        err.detail["history"] = [
            {"start_page": a.page_range.start, "end_page": a.page_range.end, "size_bytes": a.measured_size}
            for a in history
        ]
        raise err

    def _materialize_and_measure(
        self, *, document: Path, page_range: PageRange, part_num: int, attempt_num: int
    ) -> tuple[Path, int]:
        out_file = self.workspace.new_artifact_path(
            f"part{part_num:03d}_attempt{attempt_num:02d}_p{page_range.start}-{page_range.end}.pdf"
        )
        artifact = out_file
        try:
            artifact = self.range_materializer.materialize_range(
                pdf_file=document, page_range=page_range, out_file=out_file
            )
            if artifact != out_file:
                self.workspace.adopt(artifact)
            if not artifact.exists() or artifact.stat().st_size == 0:
                raise MaterializationError(
                    f"Failed to create part {part_num}: no output for pages {page_range}",
                    page_range=page_range,
                )
            size = self.size_oracle.measure(artifact=artifact)
        except PartitionError:
            self._release_candidate(out_file, artifact)
            raise
        except Exception as e:
            self._release_candidate(out_file, artifact)
            raise MaterializationError(
                f"Failed to create part {part_num}: {e}",
                page_range=page_range,
                detail={"error": repr(e)},
            ) from e
        return artifact, size

    def _release_candidate(self, out_file: Path, artifact: Path) -> None:
        self.workspace.release(out_file)
        if artifact != out_file:
            self.workspace.release(artifact)


def _measure_document(document: Path, size_oracle: SizeOracle) -> int:
    try:
        size = size_oracle.measure(artifact=document)
    except PartitionError:
        raise
    except Exception as e:
        raise SizeDeterminationError(
            f"Could not determine file size for: {document}",
            detail={"error": repr(e)},
        ) from e
    if size is None or size < 0:
        raise SizeDeterminationError(
            f"Could not determine file size for: {document}", detail={"size_bytes": size}
        )
    return size


def _count_pages(document: Path, page_counter: PageCounter) -> int:
    try:
        page_count = page_counter.get_page_count(pdf_file=document)
    except PartitionError:
        raise
    except Exception as e:
        raise SizeDeterminationError(
            f"Could not determine page count for: {document}",
            detail={"error": repr(e)},
        ) from e
    if page_count is None or page_count < 1:
        raise SizeDeterminationError(
            f"Could not determine page count for: {document}", detail={"page_count": page_count}
        )
    return page_count


def partition(
    document: Path,
    max_size_bytes: int,
    page_counter: PageCounter,
    size_oracle: SizeOracle,
    range_materializer: RangeMaterializer,
    *,
    workspace: RunWorkspace,
    safety_margin: float = DEFAULT_SAFETY_MARGIN,
    shrink_ratio: float = DEFAULT_SHRINK_RATIO,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    should_cancel: Callable[[], bool] | None = None,
) -> PartitionPlan:
    """
    Split `document` into contiguous page ranges that each measure <= `max_size_bytes`.

    A document already under the ceiling comes back as a single bypassed
    segment pointing at the document itself; the range materializer is not
    called. Every artifact produced here lives in `workspace`; on failure the
    ones produced so far are released before the error propagates.
    """

    if max_size_bytes <= 0:
        raise ValueError("max_size_bytes must be positive")

    total_size = _measure_document(document, size_oracle)
    page_count = _count_pages(document, page_counter)

    if total_size <= max_size_bytes:
        logger.debug(f"{document.name} is {format_size(total_size)}, no split needed")
        whole = Segment(
            page_range=PageRange(1, page_count),
            artifact=document,
            measured_size=total_size,
            attempts=0,
        )
        return PartitionPlan(
            page_count=page_count, max_size_bytes=max_size_bytes, segments=(whole,), bypassed=True
        )

    logger.info(f"File exceeds size limit ({format_size(total_size)}), splitting...")

    if page_count == 1:
        raise UnsplittablePageError(page=1, size_bytes=total_size, max_size_bytes=max_size_bytes)

    partitioner = AdaptivePartitioner(
        size_oracle=size_oracle,
        range_materializer=range_materializer,
        workspace=workspace,
        max_size_bytes=max_size_bytes,
        shrink_ratio=shrink_ratio,
        max_attempts=max_attempts,
        should_cancel=should_cancel,
    )
    partitioner.state = PartitionState.ESTIMATING
    initial_window = estimate_pages_per_segment(
        total_size_bytes=total_size,
        page_count=page_count,
        max_size_bytes=max_size_bytes,
        safety_margin=safety_margin,
    )
    logger.debug(
        f"File size: {format_size(total_size)}, Pages: {page_count}, "
        f"Initial pages per part: {initial_window}"
    )

    segments = partitioner.run(document=document, page_count=page_count, initial_window=initial_window)
    logger.info(f"Split complete: {len(segments)} parts created")
    return PartitionPlan(
        page_count=page_count, max_size_bytes=max_size_bytes, segments=segments, bypassed=False
    )
