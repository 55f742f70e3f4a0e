"""
Oracle implementations used by the partitioner.

The partitioner itself only sees the `PageCounter`, `SizeOracle` and
`RangeMaterializer` interfaces; concrete backends live here.
"""

from .base import FileSizeOracle, PageCounter, PdfSplitEngine, RangeMaterializer, SizeOracle
from .pypdfium2_engine import Pypdfium2Engine
from .qpdf_cli import QpdfCliEngine

__all__ = [
    "FileSizeOracle",
    "PageCounter",
    "PdfSplitEngine",
    "Pypdfium2Engine",
    "QpdfCliEngine",
    "RangeMaterializer",
    "SizeOracle",
]
