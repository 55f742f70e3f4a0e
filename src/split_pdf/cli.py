from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .artifacts import write_split_manifest_json
from .contracts import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_SIZE_BYTES,
    DEFAULT_SAFETY_MARGIN,
    ExitCode,
    SplitEngineName,
    SplitPdfConfig,
    SplitPdfResult,
)
from .module import exit_code_for, run_split_pdf
from .sizes import parse_size

logger = logging.getLogger("split_pdf")


def _size_arg(text: str) -> int:
    try:
        return parse_size(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="split-pdf",
        description=(
            "Split PDFs into contiguous page ranges that each fit under a byte ceiling. "
            "Outputs are <name>.pdf when no split is needed, else <name>_part1.pdf .. <name>_partN.pdf."
        ),
    )
    p.add_argument("inputs", nargs="+", type=Path, metavar="INPUT_PDF", help="PDF file(s) to split.")
    p.add_argument(
        "-o",
        "--out-dir",
        type=Path,
        default=Path("."),
        help="Output directory (default: current directory).",
    )
    p.add_argument(
        "--max-size",
        type=_size_arg,
        default=DEFAULT_MAX_SIZE_BYTES,
        help='Size ceiling per output, in bytes or with a unit like "25MiB" (default: %(default)s bytes).',
    )
    p.add_argument(
        "--safety-margin",
        type=float,
        default=DEFAULT_SAFETY_MARGIN,
        help="Fraction of the ceiling used when estimating pages per part (default: %(default)s).",
    )
    p.add_argument(
        "--max-attempts",
        type=int,
        default=DEFAULT_MAX_ATTEMPTS,
        help="Shrink retries allowed per part (default: %(default)s).",
    )
    p.add_argument(
        "--engine",
        choices=[e.value for e in SplitEngineName],
        default=SplitEngineName.PYPDFIUM2.value,
        help="Page-range extraction backend.",
    )
    p.add_argument("--timeout-s", type=float, default=300.0, help="Backend timeout for CLI engines.")
    p.add_argument("--work-dir", type=Path, default=None, help="Parent directory for temporary files.")
    p.add_argument("--out-manifest", type=Path, default=None, help="Write a JSON manifest of the run.")
    p.add_argument(
        "--compute-source-sha256",
        action="store_true",
        help="Include SHA-256 of each source PDF in the manifest for auditing.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Log every attempt.")
    return p


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        config = SplitPdfConfig(
            max_size_bytes=args.max_size,
            safety_margin=args.safety_margin,
            max_attempts=args.max_attempts,
            engine=SplitEngineName(args.engine),
            timeout_s=args.timeout_s,
            work_dir=args.work_dir,
            compute_source_sha256=args.compute_source_sha256,
        )
    except (TypeError, ValueError) as e:
        parser.error(str(e))

    results: list[SplitPdfResult] = []
    exit_code = ExitCode.OK
    for input_pdf in args.inputs:
        logger.info(f"Splitting: {input_pdf}")
        result = run_split_pdf(config=config, input_pdf=input_pdf, out_dir=args.out_dir)
        results.append(result)
        if not result.ok and exit_code == ExitCode.OK:
            exit_code = exit_code_for(result)

    if len(results) > 1:
        succeeded = sum(1 for r in results if r.ok)
        failed = len(results) - succeeded
        logger.info(
            f"Summary: {succeeded}/{len(results)} succeeded, {failed}/{len(results)} failed."
        )

    if args.out_manifest is not None:
        write_split_manifest_json(
            result=results[0] if len(results) == 1 else results,
            out_manifest=args.out_manifest,
        )

    return int(exit_code)


if __name__ == "__main__":
    raise SystemExit(main())
