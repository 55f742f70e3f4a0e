from __future__ import annotations

from pathlib import Path

from ..contracts import PageRange
from ..errors import MissingToolError

from .base import PdfSplitEngine


class Pypdfium2Engine(PdfSplitEngine):
    def backend_id(self) -> str:
        return "pypdfium2"

    def backend_version(self) -> str | None:
        try:
            import pypdfium2 as pdfium  # type: ignore

            return getattr(pdfium, "__version__", None)
        except Exception:
            return None

    def _require_pdfium(self):
        try:
            import pypdfium2 as pdfium  # type: ignore

            return pdfium
        except ImportError as e:
            raise MissingToolError(
                "Missing dependency: pypdfium2 is required for page-range extraction.",
                tool="pypdfium2",
            ) from e

    def get_page_count(self, *, pdf_file: Path) -> int:
        pdfium = self._require_pdfium()
        doc = pdfium.PdfDocument(str(pdf_file))
        try:
            return len(doc)
        finally:
            doc.close()

    def materialize_range(self, *, pdf_file: Path, page_range: PageRange, out_file: Path) -> Path:
        pdfium = self._require_pdfium()
        src = pdfium.PdfDocument(str(pdf_file))
        try:
            page_count = len(src)
            if page_range.end > page_count:
                raise ValueError(f"Page range out of bounds: {page_range} (1..{page_count})")

            dest = pdfium.PdfDocument.new()
            try:
                # import_pages takes 0-indexed page numbers
                dest.import_pages(src, pages=list(range(page_range.start - 1, page_range.end)))
                out_file.parent.mkdir(parents=True, exist_ok=True)
                dest.save(str(out_file))
            finally:
                dest.close()
        finally:
            src.close()
        return out_file
