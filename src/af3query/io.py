from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, List, Optional, Tuple

from .errors import InputError

_WHITESPACE = re.compile(r"\s+")


# ----------------------------
# Input files
# ----------------------------

def resolve_input_path(ref: str, *, input_dir: Path, label: str) -> Path:
    """Bare names live in input_dir; anything with a directory part is used as given."""
    path = Path(ref) if ("/" in ref or os.sep in ref) else input_dir / ref
    if not path.is_file():
        raise InputError(f"{label} not found: {path}")
    return path


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="ignore")


def strip_whitespace(text: str) -> str:
    return _WHITESPACE.sub("", text)


def parse_fasta_text(text: str) -> List[Tuple[Optional[str], str]]:
    """
    Minimal FASTA parser:
      returns list of (header_without_>, sequence_string)
    Lines before the first header form a record with header None, so a bare
    sequence file without any '>' line still yields its residues.
    """
    records: List[Tuple[Optional[str], str]] = []
    header: Optional[str] = None
    seq_chunks: List[str] = []
    started = False

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if line.startswith(">"):
            if started:
                records.append((header, "".join(seq_chunks)))
            header = line[1:].strip()
            seq_chunks = []
            started = True
        else:
            seq_chunks.append(strip_whitespace(line))
            started = True

    if started:
        records.append((header, "".join(seq_chunks)))

    return records


# ----------------------------
# Outputs
# ----------------------------

def write_json(path: Path, obj: Any) -> None:
    """Write `obj` as indented JSON, replacing `path` only once the data is on disk."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp")
    tmp.write_text(json.dumps(obj, indent=2) + "\n", encoding="utf-8")
    os.replace(tmp, path)
