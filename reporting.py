"""
Persisting pipeline outputs (cover letter PDFs and the JSON results file).
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, Optional

from data_models import PipelineResult

LOGGER = logging.getLogger(__name__)


def _safe_name(value: str, fallback: str) -> str:
    cleaned = re.sub(r"[^\w-]+", "_", value).strip("_")[:60]
    return cleaned or fallback


def save_document(result: PipelineResult, output_dir: Path) -> Optional[Path]:
    """
    Write the cover letter PDF of a successful run.

    Args:
        result: Pipeline result.
        output_dir: Destination directory.

    Returns:
        Path of the written PDF, or None if the result carries no document.
    """
    if result.document is None:
        return None
    title = result.job_description.title if result.job_description else ""
    output_path = Path(output_dir) / f"{result.job_id}_{_safe_name(title, 'cover_letter')}.pdf"
    output_path.write_bytes(result.document.content)
    LOGGER.info("Cover letter saved: %s", output_path)
    return output_path


def write_results_json(
    results: Iterable[PipelineResult],
    output_path: Path,
    document_paths: Optional[Dict[str, Path]] = None,
) -> None:
    """
    Persist pipeline results to JSON.

    Args:
        results: PipelineResult records.
        output_path: Destination file path.
        document_paths: Optional mapping of job id to saved PDF path.
    """
    document_paths = document_paths or {}
    payload = []
    for result in results:
        entry = result.to_dict()
        saved = document_paths.get(result.job_id)
        entry["document_path"] = str(saved) if saved else ""
        payload.append(entry)

    output_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    LOGGER.info("Wrote results JSON to %s", output_path)
