from __future__ import annotations

from typing import Mapping, Optional


def stoichiometry_part(name: str, count: int) -> str:
    return f"{count}x{name}" if count > 1 else name


def stoichiometry_segment(counts: Mapping[str, int]) -> str:
    """`{"X": 2, "Y": 1}` -> ``2xX-Y`` (mapping order is kept)."""
    return "-".join(stoichiometry_part(name, n) for name, n in counts.items())


def build_job_name(
    counts: Mapping[str, int],
    name_suffixes: Mapping[str, str],
    ligand_segment: str = "",
    *,
    override_name: Optional[str] = None,
    override_suffix: str = "",
) -> str:
    """Compose a job name.

    Each unique molecule renders as ``[Nx]<name><ptm suffixes>``; the optional
    override appends one extra suffix to a single molecule so each-site
    variants get distinct names without touching the shared suffix map.
    """
    parts = []
    for name, n in counts.items():
        suffix = name_suffixes.get(name, "")
        if override_name is not None and name == override_name:
            suffix += override_suffix
        parts.append(stoichiometry_part(name, n) + suffix)

    job_name = "-".join(parts)
    if ligand_segment:
        job_name += f"-{ligand_segment}"
    return job_name
