"""Append-only job ledger.

The ledger is the job-discovery source for the downstream submission and
monitoring scripts: a header line containing ``input_folder_name`` followed by
one job name per line. Lines are never rewritten except to add a missing
header to a legacy file.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

LEDGER_HEADER = "input_folder_name"
HEADER_MARKERS = ("input_folder_name", "folder")


def _first_line(path: Path) -> str:
    with path.open("r", encoding="utf-8", newline="") as f:
        return f.readline().rstrip("\r\n")


def ensure_ledger_header(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with path.open("x", encoding="utf-8", newline="\n") as f:
            f.write(LEDGER_HEADER + "\n")
        return
    except FileExistsError:
        pass

    if path.stat().st_size == 0:
        with path.open("a", encoding="utf-8", newline="\n") as f:
            f.write(LEDGER_HEADER + "\n")
        return

    if any(marker in _first_line(path) for marker in HEADER_MARKERS):
        return

    logger.info("Ledger %s has no header; prepending '%s'", path, LEDGER_HEADER)
    content = path.read_text(encoding="utf-8")
    tmp = path.with_name(f".{path.name}.tmp")
    tmp.write_text(LEDGER_HEADER + "\n" + content, encoding="utf-8", newline="\n")
    os.replace(tmp, path)


def ledger_contains(path: Path, job_name: str) -> bool:
    if not path.is_file():
        return False
    with path.open("r", encoding="utf-8", newline="") as f:
        return any(line.rstrip("\r\n") == job_name for line in f)


def append_job(path: Path, job_name: str) -> bool:
    """Append `job_name` unless already listed. Returns True when a line was written."""

    ensure_ledger_header(path)
    if ledger_contains(path, job_name):
        logger.debug("Ledger already lists %s", job_name)
        return False

    with path.open("rb+") as f:
        f.seek(0, os.SEEK_END)
        needs_newline = False
        if f.tell() > 0:
            f.seek(-1, os.SEEK_END)
            needs_newline = f.read(1) != b"\n"
    with path.open("a", encoding="utf-8", newline="\n") as f:
        f.write(("\n" if needs_newline else "") + job_name + "\n")
    return True
