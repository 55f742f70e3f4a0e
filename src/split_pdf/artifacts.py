from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

from .contracts import SplitPdfResult


def serialize_split_result(result: SplitPdfResult) -> str:
    payload: dict[str, Any] = result.to_dict()
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"


def serialize_split_results(results: Sequence[SplitPdfResult]) -> str:
    payload = [r.to_dict() for r in results]
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"


def write_split_manifest_json(*, result: SplitPdfResult | Sequence[SplitPdfResult], out_manifest: Path) -> None:
    out_manifest.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(result, SplitPdfResult):
        text = serialize_split_result(result)
    else:
        text = serialize_split_results(result)
    out_manifest.write_text(text, encoding="utf-8")
