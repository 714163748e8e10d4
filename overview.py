"""Overview aggregation: one consolidated snapshot per dashboard poll."""

import time
from concurrent.futures import ThreadPoolExecutor, wait

import config
import health
import mood
import readers


def overview_sources():
    """Independent reads issued for every overview."""
    return {
        'heartbeat_state': readers.get_heartbeat_state,
        'heartbeat_log': readers.get_heartbeat_log,
        'todo': readers.get_todo,
        'research': readers.get_research_files,
        'system': health.get_system_health,
        'writings': readers.get_writings,
    }


def utc_now_iso():
    """Return current UTC time as ISO-8601 string."""
    return time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime())


def gather(sources):
    """Run every source concurrently and wait for all of them.

    Returns ``{name: (ok, value)}`` where ``value`` is the result or the
    raised exception. One failing source never cancels the others.
    """
    with ThreadPoolExecutor(max_workers=max(1, len(sources))) as pool:
        futures = {name: pool.submit(func) for name, func in sources.items()}
        wait(list(futures.values()))
    settled = {}
    for name, future in futures.items():
        exc = future.exception()
        settled[name] = (False, exc) if exc is not None else (True, future.result())
    return settled


def error_marker(exc):
    return {'error': str(exc) or exc.__class__.__name__}


def _field(settled, name, shape=None):
    """Shape a settled source for the overview, or mark just that field as failed."""
    ok, value = settled.get(name, (False, KeyError(name)))
    if not ok:
        print(f'[OVERVIEW] Source {name} failed: {value}')
        return error_marker(value)
    return shape(value) if shape else value


def research_summary(files):
    return [
        {
            'file': item.get('file'),
            'title': item.get('title'),
            'wordCount': item.get('wordCount'),
            'modified': item.get('modified'),
        }
        for item in files
    ]


def get_overview(sources=None):
    settled = gather(sources or overview_sources())

    # Insights and mood derive from this single state read.
    state_ok, state = settled.get('heartbeat_state', (False, None))
    snapshot = state if state_ok and isinstance(state, dict) else {}

    return {
        'timestamp': utc_now_iso(),
        'heartbeat': {
            'state': _field(settled, 'heartbeat_state'),
            'log': _field(settled, 'heartbeat_log', lambda log: log.get('entries', [])[:config.LOG_LIMIT]),
        },
        'todo': _field(settled, 'todo', lambda todo: todo.get('sections', {})),
        'research': _field(settled, 'research', research_summary),
        'insights': readers.insights_from_state(snapshot),
        'system': _field(settled, 'system'),
        'writings': _field(settled, 'writings'),
        'mood': mood.infer_mood(snapshot),
    }
