from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ValidationError
from pydantic.config import ConfigDict

from .errors import InputError

DEFAULT_AF3_BASE_DIR = "/scratch/groups/ogozani/alphafold3"
CONFIG_ENV_VAR = "AF3QUERY_CONFIG"
DEFAULT_CONFIG_FILENAME = "af3query.json"


# ---------------------------
# Config (env + JSON file)
# ---------------------------


class AppConfig(BaseModel):
    """Where inputs are read from and where jobs and the ledger are written."""

    model_config = ConfigDict(extra="forbid")

    input_dir: Path
    output_dir: Path
    ledger_path: Path
    append_ledger: bool = True


def _base_dir(environ: Mapping[str, str]) -> Path:
    return Path(environ.get("AF3_BASE_DIR") or DEFAULT_AF3_BASE_DIR)


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Build the default config from AF3_BASE_DIR and the per-path overrides."""

    env = os.environ if environ is None else environ
    base = _base_dir(env)
    return AppConfig(
        input_dir=Path(env.get("BASE_INPUT_DIR") or base / "jobs" / "inputs"),
        output_dir=Path(env.get("OUTPUT_DIR") or base / "jobs"),
        ledger_path=Path(env.get("APPEND_CSV") or base / "folding_jobs.csv"),
    )


# Historical wrapper scripts: same compiler, different destinations.
PRESETS: Dict[str, Dict[str, str]] = {
    "hts": {
        "output_dir": "jobs/human_test_set",
        "ledger_path": "folding_jobs.csv",
    },
    "smiles": {
        "output_dir": "jobs/human_test_set",
        "ledger_path": "folding_jobs_nsd2i.csv",
    },
}


def preset_overrides(name: str, environ: Optional[Mapping[str, str]] = None) -> Dict[str, Path]:
    if name not in PRESETS:
        raise InputError(f"Unknown preset '{name}' (known: {', '.join(sorted(PRESETS))})")
    base = _base_dir(os.environ if environ is None else environ)
    return {key: base / rel for key, rel in PRESETS[name].items()}


def find_default_config_path(environ: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    env = os.environ if environ is None else environ
    explicit = env.get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit)
    local = Path(DEFAULT_CONFIG_FILENAME)
    return local if local.is_file() else None


def load_config(path: Optional[Path] = None, *, base: Optional[AppConfig] = None) -> AppConfig:
    """Overlay a JSON config file on `base` (env defaults when omitted).

    The file may set any subset of the AppConfig fields.
    """

    cfg = base or config_from_env()
    if path is None:
        return cfg
    if not path.is_file():
        raise InputError(f"Config file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InputError(f"Config file is not valid JSON: {path}") from e
    return merge_config(cfg, data)


def merge_config(cfg: AppConfig, overrides: Mapping[str, Any]) -> AppConfig:
    merged = {**cfg.model_dump(), **{k: v for k, v in overrides.items() if v is not None}}
    try:
        return AppConfig.model_validate(merged)
    except ValidationError as e:
        raise InputError(f"Invalid configuration: {e}") from e
