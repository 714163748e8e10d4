"""Safe readers for the workspace state store and peer services.

A reader never raises for a missing file, an unreadable file, malformed JSON
or an unreachable peer; it returns the neutral empty value for its type and
the caller treats that as "no data".
"""

import json
import os
import re
from datetime import datetime, timezone
from urllib.error import HTTPError
from urllib.request import Request, urlopen

import config
import parsers

DAILY_FILE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}\.md$')
DAILY_LIMIT = 7
RESEARCH_PREVIEW_LINES = 10
WRITING_PREVIEW_CHARS = 280


def read_text_safe(path):
    """Return file text, or '' when the file cannot be read."""
    try:
        with open(path, 'r', encoding='utf-8', errors='replace') as handle:
            return handle.read()
    except Exception:
        return ''


def read_json_safe(path):
    """Return parsed JSON, or None when missing or malformed."""
    raw = read_text_safe(path)
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except Exception:
        return None


def list_dir_safe(path):
    try:
        return sorted(os.listdir(path))
    except Exception:
        return []


def iso_mtime(path):
    stamp = os.stat(path).st_mtime
    return datetime.fromtimestamp(stamp, tz=timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z'


def http_get(url, timeout, headers=None):
    """GET a peer URL. Returns ``(status_code, body)``.

    A non-success response keeps its status code. Connection errors and
    timeouts return ``(None, '')`` since every such case means the same thing
    to callers: the peer is unreachable this cycle. There is no retry.
    """
    request = Request(url=url, headers=headers or {}, method='GET')
    try:
        with urlopen(request, timeout=timeout) as response:
            charset = response.headers.get_content_charset() or 'utf-8'
            return int(response.status), response.read().decode(charset, errors='replace')
    except HTTPError as exc:
        return int(exc.code), ''
    except Exception:
        return None, ''


def fetch_json(url, timeout, headers=None):
    """Return decoded JSON from a peer, or None unless the call succeeded."""
    status, body = http_get(url, timeout, headers=headers)
    if status is None or not 200 <= status < 300:
        return None
    try:
        return json.loads(body) if body else None
    except Exception:
        return None


def get_heartbeat_state():
    state = read_json_safe(os.path.join(config.memory_dir(), 'heartbeat-state.json'))
    return state if isinstance(state, dict) else {}


def get_heartbeat_log():
    raw = read_text_safe(os.path.join(config.memory_dir(), 'heartbeat-log.md'))
    return {'entries': parsers.parse_heartbeat_log(raw), 'raw': raw}


def get_todo():
    raw = read_text_safe(os.path.join(config.WORKSPACE, 'TODO.md'))
    return {'raw': raw, 'sections': parsers.parse_todo_sections(raw)}


def insights_from_state(state):
    insights = state.get('recentInsights') if isinstance(state, dict) else None
    return insights if isinstance(insights, list) else []


def get_insights():
    return insights_from_state(get_heartbeat_state())


def get_research_files():
    """Research notes with metadata and full content, newest modification first."""
    base = config.research_dir()
    results = []
    for name in list_dir_safe(base):
        if not name.endswith('.md'):
            continue
        path = os.path.join(base, name)
        try:
            modified = iso_mtime(path)
        except Exception:
            continue
        content = read_text_safe(path)
        title, body = parsers.split_title(content, name)
        results.append({
            'file': name,
            'title': title,
            'wordCount': parsers.word_count(content),
            'modified': modified,
            'preview': parsers.preview_lines(body, RESEARCH_PREVIEW_LINES),
            'content': content,
        })
    results.sort(key=lambda item: item['modified'], reverse=True)
    return results


def _writing_post(name, content):
    slug = name[:-3]
    title, body = parsers.split_title(content, slug)
    return {
        'slug': slug,
        'title': title,
        'date': parsers.date_prefix(slug),
        'wordCount': parsers.word_count(content),
        'preview': parsers.preview_chars(body, WRITING_PREVIEW_CHARS),
    }


def get_writings():
    """Authored posts, newest first by their date-prefixed filename."""
    base = config.writing_dir()
    names = [name for name in list_dir_safe(base) if name.endswith('.md')]
    names.sort(reverse=True)
    return [_writing_post(name, read_text_safe(os.path.join(base, name))) for name in names]


def get_writing(slug):
    """One post with its full content, or None when unknown."""
    slug = str(slug or '').strip()
    if not slug or '/' in slug or '\\' in slug or slug.startswith('.'):
        return None
    path = os.path.join(config.writing_dir(), f'{slug}.md')
    if not os.path.isfile(path):
        return None
    content = read_text_safe(path)
    post = _writing_post(f'{slug}.md', content)
    post['content'] = content
    return post


def get_curiosity():
    return {'raw': read_text_safe(os.path.join(config.memory_dir(), 'curiosity.md'))}


def get_morning_briefing():
    return {'raw': read_text_safe(os.path.join(config.memory_dir(), 'morning-briefing.md'))}


def get_daily_memory():
    """The last week of daily memory files, newest first."""
    base = config.memory_dir()
    names = [name for name in list_dir_safe(base) if DAILY_FILE_RE.match(name)]
    names.sort(reverse=True)
    return [
        {'date': name[:-3], 'content': read_text_safe(os.path.join(base, name))}
        for name in names[:DAILY_LIMIT]
    ]


def get_hook_token():
    return read_text_safe(os.path.join(config.WORKSPACE, '.hook-token')).strip()


def annotate_cron_jobs(jobs):
    rows = []
    for job in jobs if isinstance(jobs, list) else []:
        if not isinstance(job, dict):
            continue
        kind, text = parsers.describe_schedule(job.get('schedule'))
        row = dict(job)
        row['scheduleKind'] = kind
        row['scheduleText'] = text
        rows.append(row)
    return rows


def _cron_result(payload, source):
    if isinstance(payload, list):
        payload = {'jobs': payload}
    result = dict(payload)
    result['jobs'] = annotate_cron_jobs(payload.get('jobs'))
    result['source'] = source
    return result


def get_crons():
    """Cron jobs from the gateway API, falling back to the local cache file.

    The cache file is returned as-is however old it is.
    """
    token = get_hook_token()
    if token:
        payload = fetch_json(
            f'{config.GATEWAY_URL}/api/cron',
            config.CRON_TIMEOUT_SEC,
            headers={'Authorization': f'Bearer {token}'},
        )
        if isinstance(payload, (dict, list)):
            return _cron_result(payload, 'api')

    cached = read_json_safe(config.CRON_STATE_PATH)
    if isinstance(cached, (dict, list)):
        return _cron_result(cached, 'cache')
    return {'jobs': [], 'note': 'Could not reach gateway API', 'source': 'none'}
