from __future__ import annotations

import json
from pathlib import Path

import pytest

from af3query.compiler.ligands import parse_ligand_directive
from af3query.compiler.ptm import parse_ptm_directive
from af3query.core import AppConfig
from af3query.errors import DirectiveError
from af3query.runner.create import (
    JOB_DOCUMENT_FILENAME,
    JobStatus,
    build_document,
    build_plan,
    chain_ids,
    job_variants,
    run_create,
)


def _plan(files, *, ptms=(), lig=None, input_dir):
    return build_plan(
        files,
        [parse_ptm_directive(p) for p in ptms],
        parse_ligand_directive(lig),
        input_dir=input_dir,
    )


def _doc(outcome):
    return json.loads((outcome.job_dir / JOB_DOCUMENT_FILENAME).read_text(encoding="utf-8"))


@pytest.fixture
def inputs(write_input):
    write_input("hP.fa", ">p\nMKAK\n")
    write_input("Q.fa", ">q\nMSTV\n")
    write_input("D.fa", ">d\nGATC\n")
    write_input("cmpd.sml", 'CC(=O)O"\\\n')


def test_document_shape_and_ledger(inputs, input_dir: Path, cfg: AppConfig):
    plan = _plan(["hP.fa", "D.fa"], ptms=[["ALL", "me1"]], lig="SAH:2,cmpd.sml", input_dir=input_dir)

    (outcome,) = run_create(plan, cfg)

    assert outcome.status is JobStatus.CREATED
    assert outcome.name == "P_KALLme1-D-2xSAH-cmpd"
    assert outcome.job_dir == cfg.output_dir / outcome.name

    doc = _doc(outcome)
    assert list(doc) == ["name", "modelSeeds", "sequences", "dialect", "version"]
    assert doc["name"] == outcome.name
    assert doc["modelSeeds"] == [1, 2, 8, 42, 88]
    assert doc["dialect"] == "alphafold3"
    assert doc["version"] == 1
    assert doc["sequences"] == [
        {
            "protein": {
                "id": "A",
                "sequence": "MKAK",
                "modifications": [
                    {"ptmType": "MLZ", "ptmPosition": 2},
                    {"ptmType": "MLZ", "ptmPosition": 4},
                ],
            }
        },
        {"dna": {"id": "B", "sequence": "GATC"}},
        {"ligand": {"id": "C", "ccdCodes": ["SAH"]}},
        {"ligand": {"id": "D", "ccdCodes": ["SAH"]}},
        {"ligand": {"id": "E", "smiles": 'CC(=O)O"\\'}},
    ]
    assert list(doc["sequences"][0]["protein"]) == ["id", "sequence", "modifications"]

    assert cfg.ledger_path.read_text(encoding="utf-8") == f"input_folder_name\n{outcome.name}\n"


def test_protein_without_mods_has_no_modifications_key(inputs, input_dir: Path, cfg: AppConfig):
    plan = _plan(["Q.fa", "Q.fa"], input_dir=input_dir)
    (outcome,) = run_create(plan, cfg)
    assert outcome.name == "2xQ"
    assert _doc(outcome)["sequences"] == [
        {"protein": {"id": "A", "sequence": "MSTV"}},
        {"protein": {"id": "B", "sequence": "MSTV"}},
    ]


def test_each_site_variants(inputs, input_dir: Path, cfg: AppConfig):
    plan = _plan(
        ["Q.fa", "hP.fa"],
        ptms=[["2", "EACH", "me1"], ["1", "2", "ac"]],
        lig="SAH",
        input_dir=input_dir,
    )

    outcomes = run_create(plan, cfg)

    assert [o.name for o in outcomes] == ["Q_S2ac-P_K2me1-SAH", "Q_S2ac-P_K4me1-SAH"]
    for outcome, pos in zip(outcomes, (2, 4)):
        seqs = _doc(outcome)["sequences"]
        assert seqs[0]["protein"]["modifications"] == [{"ptmType": "ALY", "ptmPosition": 2}]
        assert seqs[1]["protein"]["modifications"] == [{"ptmType": "MLZ", "ptmPosition": pos}]
        assert seqs[2] == {"ligand": {"id": "C", "ccdCodes": ["SAH"]}}

    ledger = cfg.ledger_path.read_text(encoding="utf-8").splitlines()
    assert ledger == ["input_folder_name", "Q_S2ac-P_K2me1-SAH", "Q_S2ac-P_K4me1-SAH"]


def test_each_site_override_appended_after_shared_mods(inputs, input_dir: Path):
    plan = _plan(["hP.fa"], ptms=[["1", "EACH", "me3"], ["1", "1", "me1"]], input_dir=input_dir)
    variants = job_variants(plan)
    assert [v.name for v in variants] == ["P_M1me1_K2me3", "P_M1me1_K4me3"]

    doc = build_document(plan, variants[1]).to_json_obj()
    assert doc["sequences"][0]["protein"]["modifications"] == [
        {"ptmType": "MLZ", "ptmPosition": 1},
        {"ptmType": "M3L", "ptmPosition": 4},
    ]


def test_each_site_without_lysines_creates_nothing(inputs, input_dir: Path, cfg: AppConfig):
    plan = _plan(["Q.fa"], ptms=[["1", "EACH", "me1"]], input_dir=input_dir)
    assert run_create(plan, cfg) == []
    assert not cfg.output_dir.exists()


def test_existing_job_is_skipped_unless_forced(inputs, input_dir: Path, cfg: AppConfig):
    plan = _plan(["Q.fa"], lig="GTP", input_dir=input_dir)
    (first,) = run_create(plan, cfg)
    doc_path = first.job_dir / JOB_DOCUMENT_FILENAME
    doc_path.write_text("{}", encoding="utf-8")

    (again,) = run_create(plan, cfg)
    assert again.status is JobStatus.SKIPPED
    assert doc_path.read_text(encoding="utf-8") == "{}"

    (forced,) = run_create(plan, cfg, force=True)
    assert forced.status is JobStatus.CREATED
    assert _doc(forced)["name"] == "Q-GTP"

    assert cfg.ledger_path.read_text(encoding="utf-8").splitlines() == ["input_folder_name", "Q-GTP"]


def test_directory_without_document_is_not_skipped(inputs, input_dir: Path, cfg: AppConfig):
    plan = _plan(["Q.fa"], input_dir=input_dir)
    (cfg.output_dir / "Q").mkdir(parents=True)
    (outcome,) = run_create(plan, cfg)
    assert outcome.status is JobStatus.CREATED


def test_dry_run_touches_nothing(inputs, input_dir: Path, cfg: AppConfig):
    plan = _plan(["Q.fa"], input_dir=input_dir)
    (outcome,) = run_create(plan, cfg, dry_run=True)
    assert outcome.status is JobStatus.DRY_RUN
    assert not cfg.output_dir.exists()
    assert not cfg.ledger_path.exists()


def test_ledger_disabled(inputs, input_dir: Path, cfg: AppConfig):
    cfg = cfg.model_copy(update={"append_ledger": False})
    plan = _plan(["Q.fa"], input_dir=input_dir)
    (outcome,) = run_create(plan, cfg)
    assert outcome.status is JobStatus.CREATED
    assert not cfg.ledger_path.exists()


def test_chain_id_alphabet_is_bounded(write_input, input_dir: Path):
    assert chain_ids(3) == ["A", "B", "C"]
    assert chain_ids(26)[-1] == "Z"
    with pytest.raises(DirectiveError, match="Too many chains"):
        chain_ids(27)

    write_input("Q.fa", ">q\nMSTV\n")
    with pytest.raises(DirectiveError):
        _plan(["Q.fa"], lig="SAH:26", input_dir=input_dir)
