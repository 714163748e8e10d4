"""Host metrics merged with gateway and watcher health probes."""

import os
import re
import shutil
import subprocess
from concurrent.futures import ThreadPoolExecutor

import config
import readers

VM_STAT_FREE_RE = re.compile(r'Pages free:\s+(\d+)')
MEMINFO_FREE_RE = re.compile(r'^MemAvailable:\s+(\d+)\s*kB', re.M)
GIB = 1024.0 ** 3


def run_cmd(cmd):
    """Run a metrics command and return its stripped stdout. Raises on failure."""
    out = subprocess.check_output(cmd, stderr=subprocess.DEVNULL, text=True, timeout=5)
    return (out or '').strip()


def parse_df(raw):
    parts = raw.splitlines()[-1].split()
    return {
        'total': parts[1],
        'used': parts[2],
        'available': parts[3],
        'percent': parts[4],
    }


def read_free_memory_gb():
    """Free memory in GiB from vm_stat pages, or /proc/meminfo where vm_stat is absent."""
    if shutil.which('vm_stat'):
        match = VM_STAT_FREE_RE.search(run_cmd(['vm_stat']))
        if not match:
            raise ValueError('vm_stat output has no "Pages free" line')
        return round(int(match.group(1)) * config.PAGE_SIZE / GIB, 2)
    with open('/proc/meminfo', 'r', encoding='utf-8') as handle:
        match = MEMINFO_FREE_RE.search(handle.read())
    if not match:
        raise ValueError('/proc/meminfo has no MemAvailable line')
    return round(int(match.group(1)) * 1024 / GIB, 2)


def collect_local_metrics():
    return {
        'uptime': run_cmd(['uptime']),
        'disk': parse_df(run_cmd(['df', '-h', '/'])),
        'memory': {'freeGB': read_free_memory_gb(), 'percentFree': None},
        'load': [round(value, 2) for value in os.getloadavg()],
        'processes': len(run_cmd(['ps', '-A', '-o', 'pid=']).splitlines()),
    }


def probe_gateway():
    """Classify the gateway as running, error or unreachable."""
    status, _body = readers.http_get(f'{config.GATEWAY_URL}/', config.PEER_TIMEOUT_SEC)
    if status is None:
        return 'unreachable'
    # The gateway has no root page; a 404 still proves it is serving.
    if 200 <= status < 300 or status == 404:
        return 'running'
    return 'error'


def probe_watcher():
    payload = readers.fetch_json(f'{config.WATCHER_URL}/health', config.PEER_TIMEOUT_SEC)
    return payload if isinstance(payload, dict) else None


def watcher_memory_percent(watcher):
    """Free-memory percentage reported by the watcher's resource monitor."""
    if not isinstance(watcher, dict):
        return None
    monitors = watcher.get('monitors') if isinstance(watcher.get('monitors'), dict) else {}
    resources = monitors.get('resources') if isinstance(monitors.get('resources'), dict) else {}
    memory = resources.get('memory')
    if isinstance(memory, dict):
        for key in ('percentFree', 'freePercent', 'free_percent'):
            if memory.get(key) is not None:
                memory = memory.get(key)
                break
        else:
            return None
    if isinstance(memory, str):
        memory = memory.strip().rstrip('%')
    try:
        return float(memory)
    except Exception:
        return None


def get_system_health():
    """Return the host health record.

    Peer probes run alongside the local metric commands. An unreachable peer
    only degrades ``gateway``/``watcher``; a failing local command turns the
    whole record into ``{'error': message}``.
    """
    with ThreadPoolExecutor(max_workers=2) as pool:
        gateway_future = pool.submit(probe_gateway)
        watcher_future = pool.submit(probe_watcher)
        try:
            health = collect_local_metrics()
        except Exception as exc:
            print(f'[HEALTH] Local metrics failed: {exc}')
            return {'error': str(exc) or exc.__class__.__name__}
        health['gateway'] = gateway_future.result()
        health['watcher'] = watcher_future.result()

    percent_free = watcher_memory_percent(health['watcher'])
    if percent_free is not None:
        health['memory']['percentFree'] = percent_free
    return health
