import json

import pytest

import config


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Point the dashboard at an empty temporary agent workspace."""
    root = tmp_path / "workspace"
    (root / "memory" / "research").mkdir(parents=True)
    (root / "writing").mkdir()
    monkeypatch.setattr(config, "WORKSPACE", str(root))
    monkeypatch.setattr(config, "CRON_STATE_PATH", str(tmp_path / "cron-state.json"))
    monkeypatch.setattr(config, "LOG_LIMIT", 20)
    monkeypatch.setattr(config, "DORMANT_MINUTES", 45)
    return root


@pytest.fixture
def write_state(workspace):
    """Write a heartbeat-state.json snapshot into the workspace."""
    def _write(state):
        (workspace / "memory" / "heartbeat-state.json").write_text(json.dumps(state), encoding="utf-8")
    return _write
