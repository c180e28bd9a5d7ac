"""PTM directives and their resolution against loaded sequences.

Three directive forms are supported:

- ``<idx> <pos> <type>``  one explicit site on FASTA #idx
- ``[<idx>] ALL <type>``  every lysine of FASTA #idx (default: last protein)
- ``<idx> EACH <type>``   one separate job per lysine of FASTA #idx

Explicit and ALL directives accumulate into the shared per-chain modification
lists; EACH directives only produce `VariantOverride`s, which the name
synthesizer and materializer apply one at a time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Union

from ..errors import DirectiveError, InputError
from ..schemas import Modification
from .sequences import SequenceInput

logger = logging.getLogger(__name__)

LYSINE = "K"


class PtmType(str, Enum):
    ME1 = "me1"
    ME2 = "me2"
    ME3 = "me3"
    AC = "ac"

    @property
    def ccd_code(self) -> str:
        return CCD_CODES[self]


CCD_CODES: Dict[PtmType, str] = {
    PtmType.ME1: "MLZ",
    PtmType.ME2: "MLY",
    PtmType.ME3: "M3L",
    PtmType.AC: "ALY",
}


def parse_ptm_type(key: str) -> PtmType:
    try:
        return PtmType(key)
    except ValueError:
        known = " ".join(t.value for t in PtmType)
        raise DirectiveError(f"Unknown PTM type '{key}' (known: {known})") from None


@dataclass(frozen=True)
class ExplicitPtm:
    fasta_index: int
    position: int
    ptm_type: PtmType


@dataclass(frozen=True)
class AllSitesPtm:
    fasta_index: Optional[int]  # None -> last protein
    ptm_type: PtmType


@dataclass(frozen=True)
class EachSitePtm:
    fasta_index: int
    ptm_type: PtmType


PtmDirective = Union[ExplicitPtm, AllSitesPtm, EachSitePtm]


def _parse_int(token: str, what: str) -> int:
    try:
        return int(token)
    except ValueError:
        raise InputError(f"Invalid {what} for --ptm: {token}") from None


def parse_ptm_directive(tokens: Sequence[str]) -> PtmDirective:
    """Classify raw `--ptm` tokens into one of the directive variants."""

    tokens = list(tokens)
    if len(tokens) == 2 and tokens[0] == "ALL":
        return AllSitesPtm(fasta_index=None, ptm_type=parse_ptm_type(tokens[1]))
    if len(tokens) != 3:
        raise InputError("--ptm requires 3 arguments: <idx> <pos> <type> (or ALL <type>)")

    idx = _parse_int(tokens[0], "FASTA index")
    if tokens[1] == "ALL":
        return AllSitesPtm(fasta_index=idx, ptm_type=parse_ptm_type(tokens[2]))
    if tokens[1] == "EACH":
        return EachSitePtm(fasta_index=idx, ptm_type=parse_ptm_type(tokens[2]))
    return ExplicitPtm(
        fasta_index=idx,
        position=_parse_int(tokens[1], "PTM position"),
        ptm_type=parse_ptm_type(tokens[2]),
    )


@dataclass(frozen=True)
class VariantOverride:
    """One each-site job: an extra modification on one chain plus its name suffix."""

    fasta_index: int
    target_name: str
    position: int
    ptm_type: PtmType

    @property
    def suffix(self) -> str:
        return f"_K{self.position}{self.ptm_type.value}"

    @property
    def modification(self) -> Modification:
        return Modification(ptmType=self.ptm_type.ccd_code, ptmPosition=self.position)


@dataclass
class PtmResolution:
    # keyed by 1-based FASTA index
    modifications: Dict[int, List[Modification]] = field(default_factory=dict)
    # keyed by clean name
    name_suffixes: Dict[str, str] = field(default_factory=dict)
    variants: List[VariantOverride] = field(default_factory=list)
    has_each_site: bool = False

    def add_modification(self, fasta_index: int, ptm_type: PtmType, position: int) -> None:
        mod = Modification(ptmType=ptm_type.ccd_code, ptmPosition=position)
        self.modifications.setdefault(fasta_index, []).append(mod)

    def add_suffix(self, name: str, suffix: str) -> None:
        self.name_suffixes[name] = self.name_suffixes.get(name, "") + suffix


def lysine_positions(residues: str) -> List[int]:
    return [i + 1 for i, aa in enumerate(residues) if aa == LYSINE]


def _protein_target(sequences: Sequence[SequenceInput], fasta_index: int, form: str) -> SequenceInput:
    if not 1 <= fasta_index <= len(sequences):
        raise DirectiveError(f"Invalid FASTA index for {form}: {fasta_index}")
    seq = sequences[fasta_index - 1]
    if not seq.is_protein:
        raise DirectiveError(
            f"PTMs can only be applied to proteins (idx {fasta_index} is {seq.molecule_type.value})"
        )
    return seq


def _last_protein_index(sequences: Sequence[SequenceInput]) -> int:
    for i in range(len(sequences), 0, -1):
        if sequences[i - 1].is_protein:
            return i
    raise DirectiveError("No protein found for --ptm ALL")


def _warn_if_ambiguous(name: str, counts: Mapping[str, int], label: str = "PTM") -> None:
    n = counts.get(name, 0)
    if n > 1:
        logger.warning("%s targets '%s' which appears %d times; job naming may be ambiguous.", label, name, n)


def resolve_ptms(
    directives: Sequence[PtmDirective],
    sequences: Sequence[SequenceInput],
    counts: Mapping[str, int],
) -> PtmResolution:
    res = PtmResolution()

    for d in directives:
        if isinstance(d, ExplicitPtm):
            seq = _protein_target(sequences, d.fasta_index, "--ptm")
            if not 1 <= d.position <= len(seq.residues):
                raise DirectiveError(
                    f"PTM position {d.position} out of range for FASTA index {d.fasta_index} "
                    f"(len={len(seq.residues)})"
                )
            residue = seq.residues[d.position - 1]
            _warn_if_ambiguous(seq.clean_name, counts)
            res.add_suffix(seq.clean_name, f"_{residue}{d.position}{d.ptm_type.value}")
            res.add_modification(d.fasta_index, d.ptm_type, d.position)

        elif isinstance(d, AllSitesPtm):
            if d.fasta_index is None:
                idx = _last_protein_index(sequences)
                seq = sequences[idx - 1]
            else:
                idx = d.fasta_index
                seq = _protein_target(sequences, idx, "--ptm")
            sites = lysine_positions(seq.residues)
            for pos in sites:
                res.add_modification(idx, d.ptm_type, pos)
            if not sites and d.fasta_index is not None:
                logger.warning("No lysine residues found in protein at index %d", idx)
            _warn_if_ambiguous(seq.clean_name, counts)
            res.add_suffix(seq.clean_name, f"_KALL{d.ptm_type.value}")

        elif isinstance(d, EachSitePtm):
            res.has_each_site = True
            seq = _protein_target(sequences, d.fasta_index, "--ptm EACH")
            _warn_if_ambiguous(seq.clean_name, counts, label="EACH PTM")
            sites = lysine_positions(seq.residues)
            if not sites:
                logger.warning("No lysine residues found in protein at index %d for EACH PTM", d.fasta_index)
            else:
                logger.info(
                    "Found %d lysines in protein index %d; creating %d jobs.",
                    len(sites), d.fasta_index, len(sites),
                )
            res.variants.extend(
                VariantOverride(
                    fasta_index=d.fasta_index,
                    target_name=seq.clean_name,
                    position=pos,
                    ptm_type=d.ptm_type,
                )
                for pos in sites
            )

        else:  # pragma: no cover
            raise TypeError(f"Unsupported PTM directive: {d!r}")

    return res
