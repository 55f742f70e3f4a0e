from __future__ import annotations

import importlib.util
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from split_pdf.contracts import PageRange, SplitEngineName
from split_pdf.engines import Pypdfium2Engine, QpdfCliEngine
from split_pdf.errors import MissingToolError
from split_pdf.module import _get_engine

HAVE_PDFIUM = importlib.util.find_spec("pypdfium2") is not None


def _make_pdf(path: Path, pages: int) -> Path:
    import pypdfium2 as pdfium

    pdf = pdfium.PdfDocument.new()
    for i in range(pages):
        # Distinct widths let the test recognise pages after extraction.
        pdf.new_page(600 + i, 792)
    pdf.save(str(path))
    pdf.close()
    return path


class TestEngineSelection(unittest.TestCase):
    def test_get_engine(self) -> None:
        self.assertIsInstance(_get_engine(SplitEngineName.PYPDFIUM2, timeout_s=1.0), Pypdfium2Engine)
        qpdf = _get_engine(SplitEngineName.QPDF, timeout_s=7.0)
        self.assertIsInstance(qpdf, QpdfCliEngine)
        self.assertEqual(qpdf.timeout_s, 7.0)

    def test_missing_library_is_a_missing_tool(self) -> None:
        with patch.dict(sys.modules, {"pypdfium2": None}):
            with self.assertRaises(MissingToolError) as ctx:
                Pypdfium2Engine().get_page_count(pdf_file=Path("in.pdf"))
        self.assertEqual(ctx.exception.detail["tool"], "pypdfium2")


@unittest.skipUnless(HAVE_PDFIUM, "pypdfium2 not installed")
class TestPypdfium2Engine(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.src = _make_pdf(self.tmp / "in.pdf", 6)
        self.engine = Pypdfium2Engine()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_page_count(self) -> None:
        self.assertEqual(self.engine.get_page_count(pdf_file=self.src), 6)

    def test_materialize_range_keeps_pages_in_order(self) -> None:
        import pypdfium2 as pdfium

        before = self.src.read_bytes()
        out = self.engine.materialize_range(
            pdf_file=self.src, page_range=PageRange(2, 4), out_file=self.tmp / "parts" / "p.pdf"
        )

        doc = pdfium.PdfDocument(str(out))
        widths = []
        try:
            self.assertEqual(len(doc), 3)
            for i in range(len(doc)):
                page = doc[i]
                widths.append(round(page.get_width()))
                page.close()
        finally:
            doc.close()
        self.assertEqual(widths, [601, 602, 603])
        self.assertEqual(self.src.read_bytes(), before)

    def test_range_past_end_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.engine.materialize_range(
                pdf_file=self.src, page_range=PageRange(5, 9), out_file=self.tmp / "p.pdf"
            )

    def test_backend_identity(self) -> None:
        self.assertEqual(self.engine.backend_id(), "pypdfium2")


if __name__ == "__main__":
    unittest.main()
