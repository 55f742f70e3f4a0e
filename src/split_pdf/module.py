from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from .assembler import assemble_outputs
from .contracts import (
    ExitCode,
    SplitEngineName,
    SplitPdfConfig,
    SplitPdfError,
    SplitPdfResult,
)
from .data_access import (
    DataAccessError,
    output_base_for,
    resolve_input_pdf,
    safe_output_stem,
    sha256_file,
)
from .engines import FileSizeOracle, PdfSplitEngine, Pypdfium2Engine, QpdfCliEngine
from .errors import OutputWriteError, PartitionError
from .partitioner import partition
from .workspace import RunWorkspace

logger = logging.getLogger(__name__)

_EXIT_CODES_BY_ERROR: dict[str, ExitCode] = {
    "SPLIT_INPUT_NOT_FOUND": ExitCode.INPUT_NOT_FOUND,
    "SPLIT_INPUT_NOT_PDF": ExitCode.INPUT_NOT_FOUND,
    "SPLIT_SIZE_DETERMINATION_FAILED": ExitCode.SIZE_DETERMINATION_FAILED,
    "SPLIT_MATERIALIZATION_FAILED": ExitCode.MATERIALIZATION_FAILED,
    "SPLIT_UNSPLITTABLE_PAGE": ExitCode.UNSPLITTABLE_PAGE,
    "SPLIT_MAX_ATTEMPTS_EXCEEDED": ExitCode.MAX_ATTEMPTS_EXCEEDED,
    "SPLIT_CANCELLED": ExitCode.CANCELLED,
    "SPLIT_OUTPUT_WRITE_FAILED": ExitCode.OUTPUT_WRITE_FAILED,
    "SPLIT_MISSING_TOOL": ExitCode.MISSING_TOOL,
}


def _get_engine(engine: SplitEngineName, *, timeout_s: float) -> PdfSplitEngine:
    if engine == SplitEngineName.PYPDFIUM2:
        return Pypdfium2Engine()
    if engine == SplitEngineName.QPDF:
        return QpdfCliEngine(timeout_s=timeout_s)
    raise ValueError(f"Unsupported split engine: {engine}")


def exit_code_for(result: SplitPdfResult) -> ExitCode:
    if result.ok:
        return ExitCode.OK
    for err in result.errors:
        code = _EXIT_CODES_BY_ERROR.get(err.code)
        if code is not None:
            return code
    return ExitCode.MATERIALIZATION_FAILED


def _failed(
    *,
    config: SplitPdfConfig,
    source_pdf: str,
    error: SplitPdfError,
    page_count: int | None = None,
    meta: dict[str, Any] | None = None,
) -> SplitPdfResult:
    logger.error(error.message)
    return SplitPdfResult(
        ok=False,
        engine=config.engine,
        source_pdf=source_pdf,
        max_size_bytes=config.max_size_bytes,
        page_count=page_count,
        split=False,
        outputs=[],
        errors=[error],
        meta=meta or {},
    )


def run_split_pdf(
    *,
    config: SplitPdfConfig,
    input_pdf: Path,
    out_dir: Path,
    output_stem: str | None = None,
    should_cancel: Callable[[], bool] | None = None,
) -> SplitPdfResult:
    """
    Programmatic entrypoint: split one PDF so every output fits `config.max_size_bytes`.

    Input: path to an already-normalized PDF (never modified).
    Output: `<stem>.pdf`, or `<stem>_part1.pdf` .. `<stem>_partN.pdf`, under
    `out_dir`, plus a JSON-ready result. Failures are reported as error
    records on the result; no partial outputs are left behind.
    """

    source_pdf = str(input_pdf)
    meta: dict[str, Any] = {}

    try:
        pdf_file = resolve_input_pdf(input_pdf)
    except DataAccessError as e:
        return _failed(
            config=config,
            source_pdf=source_pdf,
            error=SplitPdfError(
                code="SPLIT_INPUT_NOT_FOUND",
                message=str(e),
                detail={"input_pdf": source_pdf},
            ),
        )

    if pdf_file.suffix.lower() != ".pdf":
        return _failed(
            config=config,
            source_pdf=source_pdf,
            error=SplitPdfError(
                code="SPLIT_INPUT_NOT_PDF",
                message="Only PDFs can be split (by .pdf extension)",
                detail={"input_pdf": source_pdf},
            ),
        )

    engine = _get_engine(config.engine, timeout_s=config.timeout_s)
    meta["backend"] = engine.backend_id()
    meta["backend_version"] = engine.backend_version()

    if config.compute_source_sha256:
        try:
            meta["source_sha256"] = sha256_file(pdf_file)
        except OSError as e:
            logger.warning(f"Could not hash {pdf_file.name}: {e}")
            meta.setdefault("audit_warnings", []).append(
                {"code": "SPLIT_SOURCE_HASH_FAILED", "error": repr(e)}
            )

    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return _failed(
            config=config,
            source_pdf=source_pdf,
            error=SplitPdfError(
                code=OutputWriteError.code,
                message=f"Cannot create output directory {out_dir}: {e}",
                detail={"out_dir": str(out_dir), "error": repr(e)},
            ),
            meta=meta,
        )
    stem = output_stem or safe_output_stem(pdf_file)
    output_base = output_base_for(input_pdf=pdf_file, out_dir=out_dir, stem=stem)

    page_count: int | None = None
    try:
        with RunWorkspace(parent=config.work_dir) as workspace:
            plan = partition(
                pdf_file,
                config.max_size_bytes,
                engine,
                FileSizeOracle(),
                engine,
                workspace=workspace,
                safety_margin=config.safety_margin,
                shrink_ratio=config.shrink_ratio,
                max_attempts=config.max_attempts,
                should_cancel=should_cancel,
            )
            page_count = plan.page_count
            outputs = assemble_outputs(plan=plan, output_base=output_base)
            for seg in plan:
                workspace.forget(seg.artifact)
    except PartitionError as e:
        return _failed(
            config=config,
            source_pdf=source_pdf,
            error=SplitPdfError(code=e.code, message=e.message, detail=e.detail or None),
            page_count=page_count,
            meta=meta,
        )
    except OSError as e:
        # Workspace setup, e.g. a work dir that is a regular file.
        return _failed(
            config=config,
            source_pdf=source_pdf,
            error=SplitPdfError(
                code=OutputWriteError.code,
                message=f"Run workspace failed: {e}",
                detail={"work_dir": str(config.work_dir) if config.work_dir else None, "error": repr(e)},
            ),
            page_count=page_count,
            meta=meta,
        )

    meta["segment_attempts"] = [seg.attempts for seg in plan]
    return SplitPdfResult(
        ok=True,
        engine=config.engine,
        source_pdf=source_pdf,
        max_size_bytes=config.max_size_bytes,
        page_count=plan.page_count,
        split=plan.is_split,
        outputs=outputs,
        errors=[],
        meta=meta,
    )
