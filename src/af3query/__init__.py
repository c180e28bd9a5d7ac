"""AlphaFold3 job-specification compiler.

Public surface area is kept intentionally small:

- `build_plan(...)` loads and validates FASTA/PTM/ligand inputs
- `run_create(...)` writes one job folder per variant and appends the ledger
- `af3query` console script in `af3query.cli:main`
"""

from .runner.create import JobOutcome, JobPlan, JobStatus, build_plan, run_create
from .errors import CoreError, InputError, DirectiveError
from .schemas import JobDocument

__all__ = [
    "build_plan",
    "run_create",
    "JobOutcome",
    "JobPlan",
    "JobStatus",
    "CoreError",
    "InputError",
    "DirectiveError",
    "JobDocument",
]
