from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .core import PRESETS, AppConfig, config_from_env, find_default_config_path, load_config, merge_config, preset_overrides
from .compiler.ligands import parse_ligand_directive
from .compiler.ptm import parse_ptm_directive
from .errors import CoreError, InputError
from .runner.create import JobStatus, build_plan, job_variants, create_job

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_SKIPPED = 2

EPILOG = """\
PTMs:
  --ptm <idx> <pos> <type>   apply PTM at position <pos> on FASTA #<idx>
  --ptm ALL <type>           apply PTM to all lysines in the last protein
  --ptm <idx> ALL <type>     apply PTM to all lysines in protein FASTA #<idx>
  --ptm <idx> EACH <type>    create a separate job for each lysine in protein #<idx>

examples:
  af3query proteinA.fa proteinB.fa --ptm 2 43 me1 --lig SAH
  af3query proteinA.fa --ptm ALL me1 --lig SAH
  af3query proteinA.fa proteinB.fa --ptm 2 EACH me1 --lig SAH
  af3query proteinA.fa proteinB.fa --lig SAH:2,GTP,mycompound.sml
"""


class _ArgumentParser(argparse.ArgumentParser):
    # Exit code 2 is reserved for "job already exists".
    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def split_ptm_args(argv: Sequence[str]) -> Tuple[List[str], List[List[str]]]:
    """Pull every ``--ptm`` group out of argv.

    The groups have 2 or 3 tokens depending on their form, so they cannot be
    expressed as a fixed argparse nargs and may sit between positional files.
    """
    rest: List[str] = []
    groups: List[List[str]] = []
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg != "--ptm":
            rest.append(arg)
            i += 1
            continue
        tail = list(argv[i + 1 :])
        if len(tail) >= 2 and tail[0] == "ALL":
            n = 2
        elif len(tail) >= 3:
            n = 3
        else:
            raise InputError("--ptm requires 3 arguments: <idx> <pos> <type> (or ALL <type>)")
        groups.append(tail[:n])
        i += 1 + n
    return rest, groups


def build_parser(prog: Optional[str] = None) -> argparse.ArgumentParser:
    p = _ArgumentParser(
        prog=prog,
        description="Create AlphaFold3 input job folders from FASTA files, PTM and ligand directives.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    p.add_argument("fasta_files", nargs="*", metavar="FASTA", help="Sequence files (bare names resolve against --base-input-dir)")
    # Listed for --help only; real groups are removed by split_ptm_args first.
    p.add_argument("--ptm", nargs="+", action="append", metavar="ARG", help="PTM directive (see below); repeatable")
    p.add_argument(
        "--lig",
        default=None,
        help="Comma-separated CCD codes or .sml SMILES files, with optional :N counts (e.g. SAH:2,GTP,mycompound.sml)",
    )
    p.add_argument("--base-input-dir", default=None, help="Where FASTA/.sml inputs live (default: $AF3_BASE_DIR/jobs/inputs)")
    p.add_argument("--output-dir", default=None, help="Where job folders are created (default: $AF3_BASE_DIR/jobs)")
    p.add_argument("--append-csv", default=None, help="Ledger CSV to append job names to (default: $AF3_BASE_DIR/folding_jobs.csv)")
    p.add_argument("--config", default=None, help="Path to JSON config file (default: $AF3QUERY_CONFIG or ./af3query.json)")
    p.add_argument("--preset", choices=sorted(PRESETS), default=None, help="Use the output/ledger destinations of a named preset")
    p.add_argument("--no-append", action="store_true", help="Do not append job names to the ledger")
    p.add_argument("--force", action="store_true", help="Overwrite existing job directories")
    p.add_argument("-n", "--dry-run", action="store_true", help="Print what would be created, but do not write anything")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p


def resolve_config(args: argparse.Namespace, preset: Optional[str] = None) -> AppConfig:
    cfg_path = Path(args.config) if args.config else find_default_config_path()
    cfg = load_config(cfg_path, base=config_from_env())

    preset_name = args.preset or preset
    if preset_name:
        cfg = merge_config(cfg, preset_overrides(preset_name))

    return merge_config(
        cfg,
        {
            "input_dir": args.base_input_dir,
            "output_dir": args.output_dir,
            "ledger_path": args.append_csv,
            "append_ledger": False if args.no_append else None,
        },
    )


def main(argv: Optional[Sequence[str]] = None, *, preset: Optional[str] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    p = build_parser()

    try:
        rest, ptm_groups = split_ptm_args(argv)
    except InputError as e:
        p.error(str(e))
    args = p.parse_args(rest)
    if args.ptm:
        p.error("--ptm must be followed by separate tokens: <idx> <pos> <type>, ALL <type>, <idx> ALL|EACH <type>")

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    if not args.fasta_files:
        p.print_help(sys.stderr)
        return EXIT_FAILURE

    try:
        cfg = resolve_config(args, preset=preset)
        ptms = [parse_ptm_directive(g) for g in ptm_groups]
        ligands = parse_ligand_directive(args.lig)
        plan = build_plan(args.fasta_files, ptms, ligands, input_dir=cfg.input_dir)

        variants = job_variants(plan)
        if not variants:
            logging.getLogger(__name__).warning("No jobs to create.")

        skipped = 0
        for variant in variants:
            outcome = create_job(plan, variant, cfg, force=args.force, dry_run=args.dry_run)
            if outcome.status is JobStatus.SKIPPED:
                skipped += 1
            elif outcome.status is JobStatus.DRY_RUN:
                print(f"[DRY RUN] Would create: {outcome.job_dir}")
            else:
                print(f"Success! AlphaFold3 input created at: {outcome.job_dir}")
    except (CoreError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    return EXIT_SKIPPED if skipped else EXIT_OK


def main_hts() -> int:
    return main(preset="hts")


def main_smiles() -> int:
    return main(preset="smiles")


if __name__ == "__main__":
    sys.exit(main())
