from __future__ import annotations

import hashlib
import re
from pathlib import Path


class DataAccessError(Exception):
    pass


def resolve_input_pdf(pdf_file: Path) -> Path:
    """
    Resolve an input PDF and make sure it is a regular file.

    Raises DataAccessError for a missing path or a directory.
    """

    candidate = pdf_file.expanduser().resolve()
    if not candidate.exists():
        raise DataAccessError(f"File not found: {pdf_file}")
    if not candidate.is_file():
        raise DataAccessError(f"Not a regular file: {pdf_file}")
    return candidate


def safe_output_stem(pdf_file: Path) -> str:
    """
    Filesystem-safe stem for output names, derived from the input file name.
    """
    s = pdf_file.name
    if s.lower().endswith(".pdf"):
        s = s[: -len(".pdf")]
    s = re.sub(r"[^A-Za-z0-9._-]+", "_", s)
    s = re.sub(r"_+", "_", s).strip("_")
    return s or "document"


def output_base_for(*, input_pdf: Path, out_dir: Path, stem: str) -> Path:
    """
    `out_dir/stem`, unless the plain output would overwrite the input itself,
    in which case `out_dir/stem.compliant` is used.
    """

    base = out_dir / stem
    plain = base.with_name(f"{base.name}.pdf")
    if plain.exists() and plain.resolve() == input_pdf.resolve():
        return out_dir / f"{stem}.compliant"
    return base


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()
