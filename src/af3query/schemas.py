from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, PositiveInt, model_validator

MODEL_SEEDS: List[int] = [1, 2, 8, 42, 88]
DIALECT = "alphafold3"
DIALECT_VERSION = 1


class MoleculeType(str, Enum):
    PROTEIN = "protein"
    DNA = "dna"
    RNA = "rna"


# ---------------------------
# AlphaFold3 input document
# ---------------------------
# Field names and their declaration order are the on-disk contract with the
# inference tool; model_dump() preserves declaration order.


class Modification(BaseModel):
    ptmType: str  # CCD code
    ptmPosition: PositiveInt  # 1-based residue position


class ProteinChain(BaseModel):
    id: str
    sequence: str
    modifications: Optional[List[Modification]] = None


class NucleicChain(BaseModel):
    id: str
    sequence: str


class LigandChain(BaseModel):
    """Either a CCD reference or a SMILES string, never both."""

    id: str
    ccdCodes: Optional[List[str]] = None
    smiles: Optional[str] = None

    @model_validator(mode="after")
    def _one_source(self) -> "LigandChain":
        if (self.ccdCodes is None) == (self.smiles is None):
            raise ValueError("Exactly one of ccdCodes or smiles must be provided.")
        return self


class SequenceEntry(BaseModel):
    """One element of `sequences`; exactly one key is set."""

    protein: Optional[ProteinChain] = None
    dna: Optional[NucleicChain] = None
    rna: Optional[NucleicChain] = None
    ligand: Optional[LigandChain] = None

    @model_validator(mode="after")
    def _exactly_one(self) -> "SequenceEntry":
        if sum(v is not None for v in (self.protein, self.dna, self.rna, self.ligand)) != 1:
            raise ValueError("Exactly one of protein, dna, rna, or ligand must be provided.")
        return self


class JobDocument(BaseModel):
    name: str
    modelSeeds: List[int] = Field(default_factory=lambda: list(MODEL_SEEDS))
    sequences: List[SequenceEntry]
    dialect: Literal["alphafold3"] = DIALECT
    version: Literal[1] = DIALECT_VERSION

    def to_json_obj(self) -> dict:
        return self.model_dump(exclude_none=True)
