from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence

from ..errors import InputError
from ..io import parse_fasta_text, read_text, resolve_input_path
from ..schemas import MoleculeType

logger = logging.getLogger(__name__)

SEQUENCE_SUFFIXES = (".fa", ".fasta")

_DNA = re.compile(r"^[GATC]+$")
_RNA = re.compile(r"^[GAUC]+$")


@dataclass(frozen=True)
class SequenceInput:
    source_name: str
    raw_path: Path
    clean_name: str
    residues: str
    molecule_type: MoleculeType

    @property
    def is_protein(self) -> bool:
        return self.molecule_type is MoleculeType.PROTEIN


def classify_residues(residues: str) -> MoleculeType:
    if _DNA.match(residues):
        return MoleculeType.DNA
    if _RNA.match(residues):
        return MoleculeType.RNA
    return MoleculeType.PROTEIN


def clean_name_for(ref: str) -> str:
    """File stem without its sequence suffix and one leading 'h' (human constructs are named hFOO.fa)."""
    name = Path(ref).name
    for suffix in SEQUENCE_SUFFIXES:
        if name.endswith(suffix):
            name = name[: -len(suffix)]
            break
    if name.startswith("h"):
        name = name[1:]
    return name


def normalize_residues(text: str) -> str:
    return "".join(seq for _header, seq in parse_fasta_text(text)).upper()


def load_sequence(ref: str, *, input_dir: Path) -> SequenceInput:
    path = resolve_input_path(ref, input_dir=input_dir, label="FASTA file")
    residues = normalize_residues(read_text(path))
    if not residues:
        raise InputError(f"Empty sequence in FASTA: {path}")

    seq = SequenceInput(
        source_name=ref,
        raw_path=path,
        clean_name=clean_name_for(ref),
        residues=residues,
        molecule_type=classify_residues(residues),
    )
    logger.debug("Loaded %s as %s (%d residues)", path, seq.molecule_type.value, len(residues))
    return seq


def load_sequences(refs: Sequence[str], *, input_dir: Path) -> List[SequenceInput]:
    if not refs:
        raise InputError("At least one FASTA file is required")
    return [load_sequence(ref, input_dir=input_dir) for ref in refs]


def molecule_counts(sequences: Sequence[SequenceInput]) -> Dict[str, int]:
    """clean_name -> occurrences, in first-appearance order."""
    return dict(Counter(seq.clean_name for seq in sequences))
