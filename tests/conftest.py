"""Shared test fixtures."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_manifest_path() -> Path:
    return FIXTURES_DIR / "sample_manifest.json"


@pytest.fixture
def source_video(tmp_path: Path) -> Path:
    path = tmp_path / "source.mp4"
    path.write_bytes(b"fake video data")
    return path


def writes_output(stdout: str = ""):
    """side_effect for a mocked run_tool that creates the file named by the last arg."""

    def _run(tool, args, **kwargs):
        Path(args[-1]).write_bytes(b"output")
        return MagicMock(returncode=0, stdout=stdout, stderr="")

    return _run
