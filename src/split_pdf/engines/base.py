from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from ..contracts import PageRange


class PageCounter(ABC):
    @abstractmethod
    def get_page_count(self, *, pdf_file: Path) -> int:
        raise NotImplementedError


class SizeOracle(ABC):
    @abstractmethod
    def measure(self, *, artifact: Path) -> int:
        raise NotImplementedError


class RangeMaterializer(ABC):
    @abstractmethod
    def materialize_range(self, *, pdf_file: Path, page_range: PageRange, out_file: Path) -> Path:
        """
        Write a new document containing exactly `page_range` of `pdf_file`, in order.

        Return the path of the materialized artifact (normally `out_file`).
        Must not modify `pdf_file`.
        """

        raise NotImplementedError


class PdfSplitEngine(PageCounter, RangeMaterializer):
    """
    Page-range extraction backend.

    Engines are treated as oracles: they know nothing about size limits and
    perform no compression, re-rendering or content filtering.
    """

    @abstractmethod
    def backend_id(self) -> str:
        raise NotImplementedError

    def backend_version(self) -> str | None:
        return None


class FileSizeOracle(SizeOracle):
    def measure(self, *, artifact: Path) -> int:
        return artifact.stat().st_size
