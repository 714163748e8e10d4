import json

import pytest

import health

VM_STAT = "Mach Virtual Memory Statistics: (page size of 16384 bytes)\nPages free:                               65536.\nPages active:   1000.\n"
DF = "Filesystem     Size   Used  Avail Capacity  Mounted on\n/dev/disk3s1  460Gi  200Gi  250Gi    45%    /\n"


@pytest.fixture
def host(monkeypatch):
    """Fake a macOS host whose metric commands all succeed."""
    outputs = {
        "uptime": "10:00  up 3 days,  2:01, 2 users, load averages: 1.20 0.90 0.70",
        "df": DF,
        "vm_stat": VM_STAT,
        "ps": "1\n2\n3\n",
    }

    def fake_run_cmd(cmd):
        return outputs[cmd[0]].strip()

    monkeypatch.setattr(health, "run_cmd", fake_run_cmd)
    monkeypatch.setattr(health.shutil, "which", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr(health.os, "getloadavg", lambda: (1.234, 0.9, 0.7))
    monkeypatch.setattr(health.config, "PAGE_SIZE", 16384)
    return outputs


def peers(monkeypatch, gateway=(None, ""), watcher=(None, "")):
    def fake_http_get(url, timeout, headers=None):
        return watcher if url.endswith("/health") else gateway

    monkeypatch.setattr(health.readers, "http_get", fake_http_get)


def test_unreachable_peers_degrade_only_their_fields(host, monkeypatch):
    peers(monkeypatch)
    result = health.get_system_health()
    assert "error" not in result
    assert result["gateway"] == "unreachable"
    assert result["watcher"] is None
    assert result["disk"] == {"total": "460Gi", "used": "200Gi", "available": "250Gi", "percent": "45%"}
    assert result["memory"] == {"freeGB": 1.0, "percentFree": None}
    assert result["load"] == [1.23, 0.9, 0.7]
    assert result["processes"] == 3
    assert result["uptime"].startswith("10:00  up 3 days")


def test_reachable_watcher_reports_memory_percentage(host, monkeypatch):
    payload = {
        "status": "ok",
        "uptime": 3600,
        "monitors": {
            "heartbeat": {"ok": True},
            "gateway": {"failures": 0},
            "resources": {"memory": {"percentFree": 37.5}},
        },
    }
    peers(monkeypatch, gateway=(200, "ok"), watcher=(200, json.dumps(payload)))
    result = health.get_system_health()
    assert result["gateway"] == "running"
    assert result["watcher"] == payload
    assert result["memory"]["percentFree"] == 37.5


def test_gateway_status_classification(monkeypatch):
    for status, expected in [((404, ""), "running"), ((204, ""), "running"), ((503, ""), "error"), ((None, ""), "unreachable")]:
        peers(monkeypatch, gateway=status)
        assert health.probe_gateway() == expected


def test_watcher_non_success_is_null(monkeypatch):
    peers(monkeypatch, watcher=(500, ""))
    assert health.probe_watcher() is None
    peers(monkeypatch, watcher=(200, "[1, 2]"))
    assert health.probe_watcher() is None


def test_missing_metrics_tool_turns_record_into_error(monkeypatch):
    def missing(cmd):
        raise FileNotFoundError(f"No such file or directory: '{cmd[0]}'")

    monkeypatch.setattr(health, "run_cmd", missing)
    peers(monkeypatch)
    result = health.get_system_health()
    assert list(result) == ["error"]
    assert "uptime" in result["error"]


def test_unparsable_vm_stat_is_an_error(host, monkeypatch):
    host["vm_stat"] = "Mach Virtual Memory Statistics"
    peers(monkeypatch)
    result = health.get_system_health()
    assert list(result) == ["error"]


def test_meminfo_used_when_vm_stat_is_absent(monkeypatch, tmp_path):
    meminfo = tmp_path / "meminfo"
    meminfo.write_text("MemTotal:  16000000 kB\nMemAvailable:    2097152 kB\n", encoding="utf-8")
    monkeypatch.setattr(health.shutil, "which", lambda name: None)
    real_open = open
    monkeypatch.setattr("builtins.open", lambda path, *a, **kw: real_open(meminfo if path == "/proc/meminfo" else path, *a, **kw))
    assert health.read_free_memory_gb() == 2.0


def test_watcher_memory_percent_shapes():
    def payload(memory):
        return {"monitors": {"resources": {"memory": memory}}}

    assert health.watcher_memory_percent(payload(41)) == 41.0
    assert health.watcher_memory_percent(payload("42%")) == 42.0
    assert health.watcher_memory_percent(payload({"freePercent": "12.5"})) == 12.5
    assert health.watcher_memory_percent(payload({"used": 3})) is None
    assert health.watcher_memory_percent({"monitors": "nope"}) is None
    assert health.watcher_memory_percent(None) is None
