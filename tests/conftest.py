"""Pytest configuration and shared fixtures."""

import shutil
from pathlib import Path

import pytest

FIXTURE_DIR = Path(__file__).parent / "fixtures" / "sample_tsql"


@pytest.fixture(autouse=True)
def no_progress_bars(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tqdm output out of captured stderr."""
    monkeypatch.setenv("INVOGRAPH_DISABLE_PROGRESS", "1")
    monkeypatch.delenv("INVOGRAPH_WORKERS", raising=False)


@pytest.fixture
def sql_tree(tmp_path: Path) -> Path:
    """Copy of the sample T-SQL tree, safe to scan with the cache enabled."""
    root = tmp_path / "sample_tsql"
    shutil.copytree(FIXTURE_DIR, root)
    return root


@pytest.fixture
def write_sql(tmp_path: Path):
    """Factory writing a script under tmp_path and returning its path."""

    def _write(rel_path: str, text: str) -> Path:
        path = tmp_path / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write
