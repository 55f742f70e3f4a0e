from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from .contracts import PartitionPlan, SplitPdfOutput
from .errors import OutputWriteError

logger = logging.getLogger(__name__)


def output_paths_for(output_base: Path, count: int) -> list[Path]:
    """
    Final file names for `count` segments.

    A single segment is the whole compliant document and keeps the plain
    `<base>.pdf` name; otherwise part N (1-indexed) becomes `<base>_partN.pdf`.
    """

    if count < 1:
        raise ValueError("count must be >= 1")
    if count == 1:
        return [output_base.with_name(f"{output_base.name}.pdf")]
    return [output_base.with_name(f"{output_base.name}_part{n}.pdf") for n in range(1, count + 1)]


def _staging_path(target: Path) -> Path:
    return target.with_name(f".{target.name}.partial")


def assemble_outputs(*, plan: PartitionPlan, output_base: Path) -> list[SplitPdfOutput]:
    """
    Publish the plan's segments under their final names.

    Every part is first staged next to its target under a hidden `.partial`
    name, and the targets are only replaced once all parts are staged. A
    failure while staging therefore leaves existing files of the same name
    untouched; whatever this call staged or published is removed.
    """

    targets = output_paths_for(output_base, len(plan))
    staged: list[tuple[Path, Path]] = []
    published: list[Path] = []
    ready = 0

    try:
        for segment, target in zip(plan, targets):
            target.parent.mkdir(parents=True, exist_ok=True)
            staging = _staging_path(target)
            # Tracked before writing so a half-copied file is cleaned up too.
            staged.append((staging, target))
            if plan.bypassed:
                # The input document is read-only; publish a copy.
                shutil.copyfile(segment.artifact, staging)
            else:
                shutil.move(str(segment.artifact), str(staging))
            ready += 1
        for staging, target in staged:
            os.replace(staging, target)
            published.append(target)
    except OSError as e:
        for staging, _ in staged:
            staging.unlink(missing_ok=True)
        for path in published:
            path.unlink(missing_ok=True)
        completed = len(published) if ready == len(targets) else ready
        raise OutputWriteError(
            f"Failed to write output {completed + 1} of {len(targets)}: {e}",
            detail={"output_base": str(output_base), "written_before_failure": completed, "error": repr(e)},
        ) from e

    outputs = [
        SplitPdfOutput(
            part_num=part_num,
            path=str(target),
            start_page=segment.page_range.start,
            end_page=segment.page_range.end,
            size_bytes=segment.measured_size,
        )
        for part_num, (segment, target) in enumerate(zip(plan, targets), start=1)
    ]

    if len(outputs) > 1:
        logger.info(f"Output ({len(outputs)} parts):")
        for out in outputs:
            logger.info(f"  - {Path(out.path).name} (pages {out.start_page}-{out.end_page})")
    else:
        logger.info(f"Output: {outputs[0].path}")
    return outputs
