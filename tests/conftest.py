from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable

import pytest

# Allow running pytest without installing the package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from af3query.core import AppConfig  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("AF3_BASE_DIR", "BASE_INPUT_DIR", "OUTPUT_DIR", "APPEND_CSV", "AF3QUERY_CONFIG"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def input_dir(tmp_path: Path) -> Path:
    d = tmp_path / "inputs"
    d.mkdir()
    return d


@pytest.fixture
def write_input(input_dir: Path) -> Callable[[str, str], Path]:
    def _write(name: str, content: str) -> Path:
        p = input_dir / name
        p.write_text(content, encoding="utf-8")
        return p

    return _write


@pytest.fixture
def cfg(tmp_path: Path, input_dir: Path) -> AppConfig:
    return AppConfig(
        input_dir=input_dir,
        output_dir=tmp_path / "jobs",
        ledger_path=tmp_path / "ledger" / "folding_jobs.csv",
    )
