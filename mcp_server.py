"""MCP server for the Jarvis ops dashboard.

Exposes the dashboard's read-only REST endpoints as MCP tools so AI clients
can inspect the agent's heartbeat, tasks, notes, cron jobs and host health
through a standard MCP interface.
"""

from __future__ import annotations

import json
import os
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from mcp.server.fastmcp import FastMCP

BASE_URL = os.environ.get("JARVIS_DASHBOARD_BASE_URL", "http://127.0.0.1:18791").rstrip("/")
REQUEST_TIMEOUT_SEC = float(os.environ.get("JARVIS_MCP_TIMEOUT_SEC", "10"))

mcp = FastMCP("jarvis-dashboard")


def _build_url(path: str) -> str:
    return f"{BASE_URL}{path}"


def _http_get(path: str) -> dict[str, Any]:
    url = _build_url(path)
    request = Request(url=url, method="GET")

    try:
        with urlopen(request, timeout=REQUEST_TIMEOUT_SEC) as response:
            charset = response.headers.get_content_charset() or "utf-8"
            body = response.read().decode(charset)
            return {
                "ok": True,
                "base_url": BASE_URL,
                "status_code": int(response.status),
                "data": json.loads(body) if body else {},
            }
    except HTTPError as exc:
        details = ""
        try:
            details = exc.read().decode("utf-8", errors="replace")
        except Exception:
            details = ""
        return {
            "ok": False,
            "base_url": BASE_URL,
            "status_code": int(exc.code),
            "error": f"HTTP error {exc.code}",
            "details": details,
        }
    except URLError as exc:
        return {
            "ok": False,
            "base_url": BASE_URL,
            "error": "Connection error",
            "details": str(exc.reason),
        }
    except json.JSONDecodeError as exc:
        return {
            "ok": False,
            "base_url": BASE_URL,
            "error": "Invalid JSON response",
            "details": str(exc),
        }
    except Exception as exc:
        return {
            "ok": False,
            "base_url": BASE_URL,
            "error": "Unexpected error",
            "details": str(exc),
        }


@mcp.tool()
def dashboard_overview(include_system: bool = True) -> dict[str, Any]:
    """Return the consolidated snapshot from /api/overview."""
    payload = _http_get("/api/overview")
    if not payload.get("ok"):
        return payload

    data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
    if not include_system:
        data.pop("system", None)
    payload["data"] = data
    return payload


@mcp.tool()
def agent_mood() -> dict[str, Any]:
    """Return the inferred activity mood from /api/mood."""
    return _http_get("/api/mood")


@mcp.tool()
def heartbeat_log(limit: int = 20) -> dict[str, Any]:
    """Return parsed heartbeat log entries (newest first) from /api/heartbeat/log."""
    payload = _http_get("/api/heartbeat/log")
    if not payload.get("ok"):
        return payload

    data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
    entries = data.get("entries") if isinstance(data.get("entries"), list) else []
    payload["data"] = {"entries": entries[:max(1, limit)]}
    return payload


@mcp.tool()
def todo_sections() -> dict[str, Any]:
    """Return task sections from /api/todo without the raw document."""
    payload = _http_get("/api/todo")
    if payload.get("ok") and isinstance(payload.get("data"), dict):
        payload["data"].pop("raw", None)
    return payload


@mcp.tool()
def cron_jobs() -> dict[str, Any]:
    """Return scheduled jobs from /api/crons."""
    return _http_get("/api/crons")


@mcp.tool()
def system_health() -> dict[str, Any]:
    """Return host metrics and peer reachability from /api/system."""
    return _http_get("/api/system")


@mcp.tool()
def writing_post(slug: str) -> dict[str, Any]:
    """Return one authored post using /api/writing/<slug>."""
    safe_slug = quote(slug, safe="")
    return _http_get(f"/api/writing/{safe_slug}")


if __name__ == "__main__":
    mcp.run()
