from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from ..errors import InputError
from ..io import read_text, resolve_input_path
from .naming import stoichiometry_segment

logger = logging.getLogger(__name__)

SMILES_SUFFIX = ".sml"

_COUNT = re.compile(r"^[1-9][0-9]*$")


class LigandKind(str, Enum):
    CCD = "ccd"
    SMILES = "smiles"


@dataclass(frozen=True)
class LigandDirective:
    code: str
    count: int
    kind: LigandKind

    @property
    def ligand_id(self) -> str:
        if self.kind is LigandKind.SMILES:
            return Path(self.code).name[: -len(SMILES_SUFFIX)]
        return self.code


@dataclass(frozen=True)
class LigandChainEntry:
    ligand_id: str
    kind: LigandKind


@dataclass
class LigandResolution:
    entries: List[LigandChainEntry] = field(default_factory=list)
    # ligand_id -> sanitized SMILES, loaded once per id
    smiles: Dict[str, str] = field(default_factory=dict)

    @property
    def name_segment(self) -> str:
        return stoichiometry_segment(Counter(e.ligand_id for e in self.entries))

    def smiles_for(self, ligand_id: str) -> str:
        return self.smiles[ligand_id]


def parse_ligand_directive(text: Optional[str]) -> List[LigandDirective]:
    """Parse ``SAH:2,GTP,mycompound.sml`` into directives, preserving order."""
    if not text:
        return []

    out: List[LigandDirective] = []
    for raw in text.split(","):
        item = raw.strip()
        if not item:
            raise InputError(f"Empty ligand item in '{text}'")
        code, sep, count_str = item.rpartition(":")
        if not sep:
            code, count = item, 1
        else:
            if not _COUNT.match(count_str):
                raise InputError(f"Invalid ligand count in '{item}' (must be positive int)")
            count = int(count_str)
        if not code:
            raise InputError(f"Missing ligand code in '{item}'")
        kind = LigandKind.SMILES if code.endswith(SMILES_SUFFIX) else LigandKind.CCD
        out.append(LigandDirective(code=code, count=count, kind=kind))
    return out


def load_smiles(ref: str, *, input_dir: Path) -> str:
    path = resolve_input_path(ref, input_dir=input_dir, label="SMILES file")
    # Line breaks go, inner spaces stay: CXSMILES extensions follow a space.
    smiles = read_text(path).replace("\r", "").replace("\n", "").strip()
    if not smiles:
        raise InputError(f"Empty SMILES in file: {path}")
    return smiles


def resolve_ligands(directives: List[LigandDirective], *, input_dir: Path) -> LigandResolution:
    res = LigandResolution()
    for d in directives:
        lig_id = d.ligand_id
        if d.kind is LigandKind.SMILES and lig_id not in res.smiles:
            res.smiles[lig_id] = load_smiles(d.code, input_dir=input_dir)
            logger.debug("Loaded SMILES for ligand %s", lig_id)
        res.entries.extend(LigandChainEntry(ligand_id=lig_id, kind=d.kind) for _ in range(d.count))
    return res
