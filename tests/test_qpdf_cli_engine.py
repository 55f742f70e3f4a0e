from __future__ import annotations

import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from split_pdf.contracts import ExitCode, PageRange
from split_pdf.engines.qpdf_cli import QpdfCliEngine
from split_pdf.errors import MaterializationError, MissingToolError, SizeDeterminationError


def _proc(returncode: int = 0, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=["qpdf"], returncode=returncode, stdout=stdout, stderr=stderr)


class TestQpdfCliEngine(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.engine = QpdfCliEngine(timeout_s=5.0)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_page_count_parsed_from_show_npages(self) -> None:
        with patch("split_pdf.engines.qpdf_cli.subprocess.run", return_value=_proc(stdout="118\n")) as run:
            n = self.engine.get_page_count(pdf_file=self.tmp / "in.pdf")
        self.assertEqual(n, 118)
        cmd = run.call_args.args[0]
        self.assertEqual(cmd[:2], ["qpdf", "--show-npages"])

    def test_unparseable_page_count(self) -> None:
        with patch("split_pdf.engines.qpdf_cli.subprocess.run", return_value=_proc(stdout="garbage")):
            with self.assertRaises(SizeDeterminationError):
                self.engine.get_page_count(pdf_file=self.tmp / "in.pdf")

    def test_materialize_builds_page_selection_command(self) -> None:
        out = self.tmp / "part.pdf"
        with patch("split_pdf.engines.qpdf_cli.subprocess.run", return_value=_proc()) as run:
            result = self.engine.materialize_range(
                pdf_file=self.tmp / "in.pdf", page_range=PageRange(46, 90), out_file=out
            )
        self.assertEqual(result, out)
        self.assertEqual(
            run.call_args.args[0],
            ["qpdf", str(self.tmp / "in.pdf"), "--pages", ".", "46-90", "--", str(out)],
        )
        self.assertEqual(run.call_args.kwargs["timeout"], 5.0)

    def test_exit_code_3_is_success_with_warnings(self) -> None:
        with patch("split_pdf.engines.qpdf_cli.subprocess.run", return_value=_proc(returncode=3, stderr="WARNING")):
            self.engine.materialize_range(
                pdf_file=self.tmp / "in.pdf", page_range=PageRange(1, 2), out_file=self.tmp / "p.pdf"
            )

    def test_failure_carries_range_and_stderr(self) -> None:
        with patch(
            "split_pdf.engines.qpdf_cli.subprocess.run", return_value=_proc(returncode=2, stderr="damaged xref")
        ):
            with self.assertRaises(MaterializationError) as ctx:
                self.engine.materialize_range(
                    pdf_file=self.tmp / "in.pdf", page_range=PageRange(3, 9), out_file=self.tmp / "p.pdf"
                )
        self.assertEqual(ctx.exception.detail["start_page"], 3)
        self.assertEqual(ctx.exception.detail["end_page"], 9)
        self.assertEqual(ctx.exception.detail["returncode"], 2)
        self.assertIn("damaged xref", ctx.exception.detail["stderr"])

    def test_missing_binary_is_a_missing_tool_not_a_document_error(self) -> None:
        with patch("split_pdf.engines.qpdf_cli.subprocess.run", side_effect=FileNotFoundError("qpdf")):
            with self.assertRaises(MissingToolError) as ctx:
                self.engine.materialize_range(
                    pdf_file=self.tmp / "in.pdf", page_range=PageRange(1, 1), out_file=self.tmp / "p.pdf"
                )
            with self.assertRaises(MissingToolError) as count_ctx:
                self.engine.get_page_count(pdf_file=self.tmp / "in.pdf")
        self.assertIn("not found on PATH", ctx.exception.message)
        self.assertEqual(ctx.exception.code, "SPLIT_MISSING_TOOL")
        self.assertEqual(ctx.exception.exit_code, ExitCode.MISSING_TOOL)
        self.assertEqual(count_ctx.exception.detail, {"tool": "qpdf", "package": "qpdf"})
        self.assertNotIsInstance(count_ctx.exception, SizeDeterminationError)

    def test_timeout(self) -> None:
        with patch(
            "split_pdf.engines.qpdf_cli.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="qpdf", timeout=5.0),
        ):
            with self.assertRaises(MaterializationError) as ctx:
                self.engine.materialize_range(
                    pdf_file=self.tmp / "in.pdf", page_range=PageRange(1, 4), out_file=self.tmp / "p.pdf"
                )
        self.assertEqual(ctx.exception.detail["timeout_s"], 5.0)

    def test_backend_version(self) -> None:
        with patch("split_pdf.engines.qpdf_cli.subprocess.run", return_value=_proc(stdout="qpdf version 11.9.0\n")):
            self.assertEqual(self.engine.backend_version(), "11.9.0")
        with patch("split_pdf.engines.qpdf_cli.subprocess.run", side_effect=FileNotFoundError("qpdf")):
            self.assertIsNone(self.engine.backend_version())


if __name__ == "__main__":
    unittest.main()
