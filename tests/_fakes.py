from __future__ import annotations

from pathlib import Path
from typing import Callable

from split_pdf.contracts import PageRange
from split_pdf.engines.base import PdfSplitEngine, SizeOracle

MIB = 1024 * 1024


class RecordingEngine(PdfSplitEngine):
    """
    Materializes a range as a tiny text file naming the range.

    Pair with `RangeSizeOracle`, which reads the range back and reports a
    scripted size for it.
    """

    def __init__(self, *, page_count: int) -> None:
        self.page_count = page_count
        self.calls: list[PageRange] = []

    def backend_id(self) -> str:
        return "fake_recording"

    def get_page_count(self, *, pdf_file: Path) -> int:
        return self.page_count

    def materialize_range(self, *, pdf_file: Path, page_range: PageRange, out_file: Path) -> Path:
        self.calls.append(page_range)
        out_file.write_text(f"{page_range.start}-{page_range.end}", encoding="utf-8")
        return out_file


class RangeSizeOracle(SizeOracle):
    def __init__(self, *, document: Path, total_size: int, size_fn: Callable[[PageRange], int]) -> None:
        self.document = document
        self.total_size = total_size
        self.size_fn = size_fn

    def measure(self, *, artifact: Path) -> int:
        if artifact == self.document:
            return self.total_size
        start, end = artifact.read_text(encoding="utf-8").split("-")
        return self.size_fn(PageRange(int(start), int(end)))


class PaddedEngine(PdfSplitEngine):
    """
    Writes real bytes: `bytes_per_page * pages + overhead` per materialized range,
    so the production FileSizeOracle measures meaningful sizes.
    """

    def __init__(self, *, page_count: int, bytes_per_page: int, overhead: int = 0) -> None:
        self.page_count = page_count
        self.bytes_per_page = bytes_per_page
        self.overhead = overhead
        self.calls: list[PageRange] = []

    def backend_id(self) -> str:
        return "fake_padded"

    def backend_version(self) -> str | None:
        return "0"

    def get_page_count(self, *, pdf_file: Path) -> int:
        return self.page_count

    def materialize_range(self, *, pdf_file: Path, page_range: PageRange, out_file: Path) -> Path:
        self.calls.append(page_range)
        out_file.write_bytes(b"x" * (self.bytes_per_page * page_range.page_count + self.overhead))
        return out_file


def write_fake_pdf(path: Path, size_bytes: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"%PDF-FAKE%" + b"x" * max(0, size_bytes - len(b"%PDF-FAKE%")))
    return path


def shrink_schedule(window: int) -> list[int]:
    """Window sizes tried from `window` down to 1 with the 20% / at-least-one rule."""
    out = [window]
    while window > 1:
        window -= max(1, window // 5)
        out.append(window)
    return out
