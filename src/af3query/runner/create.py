from __future__ import annotations

import logging
import string
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..compiler.ligands import LigandDirective, LigandKind, LigandResolution, resolve_ligands
from ..compiler.naming import build_job_name
from ..compiler.ptm import PtmDirective, PtmResolution, VariantOverride, resolve_ptms
from ..compiler.sequences import SequenceInput, load_sequences, molecule_counts
from ..core import AppConfig
from ..errors import DirectiveError
from ..io import write_json
from ..schemas import (
    JobDocument,
    LigandChain,
    MoleculeType,
    NucleicChain,
    ProteinChain,
    SequenceEntry,
)
from .ledger import append_job

logger = logging.getLogger(__name__)

JOB_DOCUMENT_FILENAME = "alphafold_input.json"
CHAIN_ID_ALPHABET = string.ascii_uppercase


class JobStatus(str, Enum):
    CREATED = "created"
    SKIPPED = "skipped"
    DRY_RUN = "dry_run"


@dataclass(frozen=True)
class JobVariant:
    name: str
    override: Optional[VariantOverride] = None


@dataclass(frozen=True)
class JobOutcome:
    name: str
    job_dir: Path
    status: JobStatus


@dataclass(frozen=True)
class JobPlan:
    """Everything shared by the variants of one invocation, resolved once."""

    sequences: List[SequenceInput]
    counts: Dict[str, int]
    ptms: PtmResolution
    ligands: LigandResolution

    @property
    def chain_count(self) -> int:
        return len(self.sequences) + len(self.ligands.entries)


def chain_ids(n: int) -> List[str]:
    if n > len(CHAIN_ID_ALPHABET):
        raise DirectiveError(
            f"Too many chains ({n}); at most {len(CHAIN_ID_ALPHABET)} single-letter chain ids are available"
        )
    return list(CHAIN_ID_ALPHABET[:n])


def build_plan(
    fasta_files: Sequence[str],
    ptm_directives: Sequence[PtmDirective],
    ligand_directives: Sequence[LigandDirective],
    *,
    input_dir: Path,
) -> JobPlan:
    """Load and validate all inputs. Raises before anything is written."""

    sequences = load_sequences(fasta_files, input_dir=input_dir)
    counts = molecule_counts(sequences)
    plan = JobPlan(
        sequences=sequences,
        counts=counts,
        ptms=resolve_ptms(ptm_directives, sequences, counts),
        ligands=resolve_ligands(list(ligand_directives), input_dir=input_dir),
    )
    chain_ids(plan.chain_count)
    return plan


def job_name(plan: JobPlan, override: Optional[VariantOverride] = None) -> str:
    return build_job_name(
        plan.counts,
        plan.ptms.name_suffixes,
        plan.ligands.name_segment,
        override_name=override.target_name if override else None,
        override_suffix=override.suffix if override else "",
    )


def job_variants(plan: JobPlan) -> List[JobVariant]:
    """One variant per each-site lysine, or the single shared job when no EACH directive was given."""
    if plan.ptms.has_each_site:
        return [JobVariant(name=job_name(plan, v), override=v) for v in plan.ptms.variants]
    return [JobVariant(name=job_name(plan))]


def build_document(plan: JobPlan, variant: JobVariant) -> JobDocument:
    ids = iter(chain_ids(plan.chain_count))
    entries: List[SequenceEntry] = []

    for idx, seq in enumerate(plan.sequences, start=1):
        chain_id = next(ids)
        if seq.molecule_type is MoleculeType.PROTEIN:
            mods = list(plan.ptms.modifications.get(idx, []))
            if variant.override is not None and variant.override.fasta_index == idx:
                mods.append(variant.override.modification)
            chain = ProteinChain(id=chain_id, sequence=seq.residues, modifications=mods or None)
            entries.append(SequenceEntry(protein=chain))
        else:
            chain = NucleicChain(id=chain_id, sequence=seq.residues)
            entries.append(SequenceEntry(**{seq.molecule_type.value: chain}))

    for lig in plan.ligands.entries:
        chain_id = next(ids)
        if lig.kind is LigandKind.SMILES:
            ligand = LigandChain(id=chain_id, smiles=plan.ligands.smiles_for(lig.ligand_id))
        else:
            ligand = LigandChain(id=chain_id, ccdCodes=[lig.ligand_id])
        entries.append(SequenceEntry(ligand=ligand))

    return JobDocument(name=variant.name, sequences=entries)


def create_job(
    plan: JobPlan,
    variant: JobVariant,
    cfg: AppConfig,
    *,
    force: bool = False,
    dry_run: bool = False,
) -> JobOutcome:
    job_dir = cfg.output_dir / variant.name
    doc_path = job_dir / JOB_DOCUMENT_FILENAME

    if doc_path.is_file() and not force:
        logger.warning("Skipping existing job (use --force to overwrite): %s", job_dir)
        return JobOutcome(name=variant.name, job_dir=job_dir, status=JobStatus.SKIPPED)

    if dry_run:
        return JobOutcome(name=variant.name, job_dir=job_dir, status=JobStatus.DRY_RUN)

    doc = build_document(plan, variant)
    job_dir.mkdir(parents=True, exist_ok=True)
    write_json(doc_path, doc.to_json_obj())

    if cfg.append_ledger:
        append_job(cfg.ledger_path, variant.name)

    return JobOutcome(name=variant.name, job_dir=job_dir, status=JobStatus.CREATED)


def run_create(
    plan: JobPlan,
    cfg: AppConfig,
    *,
    force: bool = False,
    dry_run: bool = False,
) -> List[JobOutcome]:
    return [create_job(plan, v, cfg, force=force, dry_run=dry_run) for v in job_variants(plan)]
