from pathlib import Path
import sys

# Ensure repository root is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest  # noqa: E402

from tests.fakes import FakeSysfs  # noqa: E402


@pytest.fixture
def sysfs(tmp_path: Path) -> FakeSysfs:
    return FakeSysfs(tmp_path / "sys")


@pytest.fixture(autouse=True)
def _quiet_event_log(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("STORAGE_INSPECT_LOG_EVENTS", raising=False)
    monkeypatch.delenv("STORAGE_INSPECT_LOG_FILE", raising=False)
