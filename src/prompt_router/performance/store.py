"""Per-run JSON storage for performance metrics.

One document per run, named ``<run_id>.json``, in a single metrics
directory. Writing the same run_id again replaces the previous document.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List

from .types import PerformanceMetrics

logger = logging.getLogger(__name__)


def run_metrics_path(directory: Path, run_id: str) -> Path:
    return directory / f"{run_id}.json"


def write_run_metrics(metrics: PerformanceMetrics, directory: Path) -> Path:
    """Write one run's metrics document, replacing any previous copy.

    Creates the directory if needed. The document is written to a temporary
    file first and renamed into place so readers never see a partial file.

    Returns:
        Path of the written document

    Raises:
        OSError: If the directory or file cannot be written
    """
    directory.mkdir(parents=True, exist_ok=True)
    path = run_metrics_path(directory, metrics.run_id)

    fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{metrics.run_id}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(metrics.to_dict(), f, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.debug(f"Wrote metrics for run {metrics.run_id} to {path}")
    return path


def read_run_metrics(path: Path) -> PerformanceMetrics:
    """Read a single run document.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the document is not valid metrics JSON
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    try:
        return PerformanceMetrics.from_dict(data)
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"{path} is missing or has invalid field: {e}") from e


def load_run_metrics(directory: Path) -> List[PerformanceMetrics]:
    """Load every run document in a directory.

    A missing directory means no history yet and returns an empty list.
    Unreadable or malformed documents are skipped with a warning.

    Returns:
        Runs sorted by timestamp (oldest first)
    """
    if not directory.is_dir():
        return []

    runs: List[PerformanceMetrics] = []
    for path in sorted(directory.glob("*.json")):
        try:
            runs.append(read_run_metrics(path))
        except (OSError, ValueError) as e:
            logger.warning(f"Skipping malformed metrics file {path}: {e}")

    runs.sort(key=lambda r: r.timestamp)
    return runs
