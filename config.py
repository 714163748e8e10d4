"""Runtime configuration for the Jarvis ops dashboard.

Every value is read once from the environment at import time. Other modules
access these through the ``config`` module (not ``from config import ...``)
so a test can monkeypatch a single attribute.
"""

import os


def _env_float(name, default):
    try:
        return float(os.environ.get(name, default))
    except Exception:
        return float(default)


def _env_int(name, default):
    try:
        return int(os.environ.get(name, default))
    except Exception:
        return int(default)


WORKSPACE = os.path.expanduser(os.environ.get('OPENCLAW_WORKSPACE', '~/.openclaw/workspace'))
CRON_STATE_PATH = os.path.expanduser(os.environ.get('DASHBOARD_CRON_STATE_PATH', '~/.openclaw/cron-state.json'))
PUBLIC_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'public')

GATEWAY_URL = os.environ.get('DASHBOARD_GATEWAY_URL', 'http://127.0.0.1:18789').rstrip('/')
WATCHER_URL = os.environ.get('DASHBOARD_WATCHER_URL', 'http://127.0.0.1:18795').rstrip('/')
PEER_TIMEOUT_SEC = _env_float('DASHBOARD_PEER_TIMEOUT_SEC', 2)
CRON_TIMEOUT_SEC = _env_float('DASHBOARD_CRON_TIMEOUT_SEC', 3)

HOST = os.environ.get('DASHBOARD_HOST', '127.0.0.1')
PORT = _env_int('DASHBOARD_PORT', 18791)

# vm_stat reports pages; Apple Silicon hosts use 16 KiB pages.
PAGE_SIZE = _env_int('DASHBOARD_PAGE_SIZE', 16384)
DORMANT_MINUTES = _env_float('DASHBOARD_DORMANT_MINUTES', 45)
LOG_LIMIT = max(1, _env_int('DASHBOARD_LOG_LIMIT', 20))


def memory_dir():
    return os.path.join(WORKSPACE, 'memory')


def research_dir():
    return os.path.join(memory_dir(), 'research')


def writing_dir():
    return os.path.join(WORKSPACE, 'writing')
