from __future__ import annotations

import subprocess
from pathlib import Path

from ..contracts import PageRange
from ..errors import MaterializationError, MissingToolError, SizeDeterminationError

from .base import PdfSplitEngine

# qpdf exits 3 when it succeeded but emitted warnings.
_QPDF_OK_CODES = (0, 3)


class QpdfCliEngine(PdfSplitEngine):
    """
    Page-range extraction via the `qpdf` CLI.

    qpdf copies page objects without re-rendering them, so the extracted
    range keeps the normalized fonts and images of the source.
    """

    def __init__(self, *, timeout_s: float = 300.0, binary: str = "qpdf") -> None:
        self.timeout_s = timeout_s
        self.binary = binary

    def backend_id(self) -> str:
        return "qpdf"

    def backend_version(self) -> str | None:
        try:
            proc = subprocess.run(
                [self.binary, "--version"],
                check=False,
                capture_output=True,
                text=True,
                timeout=self.timeout_s,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired):
            return None
        if proc.returncode != 0 or not proc.stdout:
            return None
        # "qpdf version 11.9.0" is the first line
        first = proc.stdout.splitlines()[0].strip()
        return first.rsplit(" ", 1)[-1] or None

    def get_page_count(self, *, pdf_file: Path) -> int:
        cmd = [self.binary, "--show-npages", str(pdf_file)]
        try:
            proc = subprocess.run(
                cmd,
                check=False,
                capture_output=True,
                text=True,
                timeout=self.timeout_s,
            )
        except FileNotFoundError as e:
            raise MissingToolError(
                f"{self.binary} binary not found on PATH (install the qpdf package)",
                tool=self.binary,
                package="qpdf",
            ) from e
        except subprocess.TimeoutExpired as e:
            raise SizeDeterminationError(
                "qpdf timed out while counting pages",
                detail={"timeout_s": self.timeout_s},
            ) from e

        if proc.returncode not in _QPDF_OK_CODES:
            raise SizeDeterminationError(
                "qpdf could not read the page count",
                detail={"returncode": proc.returncode, "stderr": proc.stderr[-4000:]},
            )
        try:
            return int(proc.stdout.strip().splitlines()[0])
        except (IndexError, ValueError) as e:
            raise SizeDeterminationError(
                "Unparseable qpdf page count output",
                detail={"stdout": proc.stdout[-200:]},
            ) from e

    def materialize_range(self, *, pdf_file: Path, page_range: PageRange, out_file: Path) -> Path:
        cmd = [
            self.binary,
            str(pdf_file),
            "--pages",
            ".",
            f"{page_range.start}-{page_range.end}",
            "--",
            str(out_file),
        ]
        try:
            proc = subprocess.run(
                cmd,
                check=False,
                capture_output=True,
                text=True,
                timeout=self.timeout_s,
            )
        except FileNotFoundError as e:
            raise MissingToolError(
                f"{self.binary} binary not found on PATH (install the qpdf package)",
                tool=self.binary,
                package="qpdf",
            ) from e
        except subprocess.TimeoutExpired as e:
            raise MaterializationError(
                "qpdf timed out while extracting pages",
                page_range=page_range,
                detail={"timeout_s": self.timeout_s},
            ) from e

        if proc.returncode not in _QPDF_OK_CODES:
            raise MaterializationError(
                f"qpdf failed to extract pages {page_range} (exit code {proc.returncode})",
                page_range=page_range,
                detail={"returncode": proc.returncode, "stderr": proc.stderr[-4000:]},
            )
        return out_file
