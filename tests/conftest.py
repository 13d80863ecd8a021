import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_logs(tmp_path, monkeypatch):
    log_dir = tmp_path / "logs"
    monkeypatch.setenv("LOG_DIR", str(log_dir))
    monkeypatch.setenv("ERROR_LOG_FILE", str(log_dir / "errors.log"))
    monkeypatch.delenv("OPS_ALERT_WEBHOOK", raising=False)
    return log_dir
