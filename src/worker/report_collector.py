"""Reads the on-disk report directory left behind by a test run."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def read_report_directory(report_dir: Path) -> tuple[list[str], dict[str, str]] | None:
    """Read every regular file directly inside report_dir as text.

    Subdirectories (Playwright's ``data/``, ``trace/``) are not descended
    into. Files are returned in name order; undecodable bytes are replaced.

    Returns:
        (filenames, {filename: content}), or None if the directory is absent.

    Raises:
        OSError: the directory or one of its files could not be read.
    """
    if not report_dir.is_dir():
        return None

    files: list[str] = []
    data: dict[str, str] = {}
    for entry in sorted(report_dir.iterdir(), key=lambda p: p.name):
        if not entry.is_file():
            continue
        data[entry.name] = entry.read_text(encoding='utf-8', errors='replace')
        files.append(entry.name)

    logger.debug("Read report directory", extra={"path": str(report_dir), "files": len(files)})
    return files, data
