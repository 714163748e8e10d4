"""Line grammars for the agent's workspace documents.

All parsers accept raw text (or ``None`` for a missing source) and return a
possibly-empty structure. They never raise. Lines that do not match a grammar
are dropped silently: the workspace files freely mix structured lines with
narrative text, and only the structured lines are reported.
"""

import math
import re
from datetime import datetime, timezone

LOG_LINE_RE = re.compile(r'^- \[(\d{4}-\d{2}-\d{2} \d{2}:\d{2})\] mode=(\w+) \| action: (.+)$')
HEADER_RE = re.compile(r'^#{1,3}\s+(.+)')
TASK_LINE_RE = re.compile(r'^- `(\w+)` \| \*\*(.+?)\*\*(.*)$')
# Strips every leading dash, not just one, so a detail never starts with a dash.
DETAIL_SEPARATOR_RE = re.compile(r'^[\s—–-]+')
DATE_PREFIX_RE = re.compile(r'^(\d{4}-\d{2}-\d{2})')

TOP_SECTION = '_top'

KNOWN_MODES = ('idle', 'monitor', 'build', 'research', 'create', 'reflect')
SCHEDULE_KINDS = ('cron', 'every', 'at')


def _lines(raw):
    if not isinstance(raw, str) or not raw:
        return []
    return raw.splitlines()


def parse_heartbeat_log(raw):
    """Return heartbeat log entries, newest first."""
    entries = []
    for line in _lines(raw):
        match = LOG_LINE_RE.match(line)
        if not match:
            continue
        entries.append({
            'timestamp': match.group(1),
            'mode': match.group(2),
            'action': match.group(3),
        })
    entries.reverse()
    return entries


def clean_task_detail(text):
    """Drop the leading dash separator that follows the bold task title."""
    return DETAIL_SEPARATOR_RE.sub('', text or '').strip()


def parse_todo_sections(raw):
    """Group task lines under their nearest level 1-3 heading.

    Lines above the first heading land in the ``_top`` section. A heading that
    repeats appends to the section it already opened. Sections without any
    task are left out of the result.
    """
    sections = {TOP_SECTION: []}
    current = TOP_SECTION
    for line in _lines(raw):
        header = HEADER_RE.match(line)
        if header:
            current = header.group(1).strip()
            sections.setdefault(current, [])
            continue
        task = TASK_LINE_RE.match(line)
        if task:
            sections[current].append({
                'status': task.group(1),
                'title': task.group(2),
                'detail': clean_task_detail(task.group(3)),
            })
    return {name: tasks for name, tasks in sections.items() if tasks}


def split_title(content, fallback):
    """Return ``(title, body_lines)`` using the first level-1 heading."""
    lines = _lines(content)
    for index, line in enumerate(lines):
        if line.startswith('# '):
            return line[2:].strip() or fallback, lines[index + 1:]
    return fallback, lines


def word_count(content):
    if not isinstance(content, str):
        return 0
    return len(content.split())


def preview_lines(body_lines, max_lines=10):
    """Leading lines of a document body, skipping blank lines after the title."""
    lines = list(body_lines)
    while lines and not lines[0].strip():
        lines.pop(0)
    return '\n'.join(lines[:max_lines])


def preview_chars(body_lines, max_chars=280):
    text = '\n'.join(body_lines).strip()
    if len(text) <= max_chars:
        return text
    return text[:max_chars].rstrip() + '…'


def date_prefix(name):
    match = DATE_PREFIX_RE.match(name or '')
    return match.group(1) if match else None


def heartbeat_epoch_seconds(value):
    """Normalize a heartbeat timestamp to epoch seconds.

    Seconds are canonical. Numbers above 1e12 can only be milliseconds and are
    scaled down; ISO-8601 strings are accepted too, as UTC when they carry no
    offset. Returns ``None`` for anything unusable, including NaN and
    infinities.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if re.fullmatch(r'[-+]?\d+(?:\.\d+)?', text):
            value = float(text)
        else:
            try:
                if text.endswith('Z'):
                    text = text[:-1] + '+00:00'
                parsed = datetime.fromisoformat(text)
            except Exception:
                return None
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed.timestamp()
    if not isinstance(value, (int, float)) or value <= 0:
        return None
    seconds = float(value)
    if not math.isfinite(seconds):
        return None
    if seconds > 1e12:
        seconds = seconds / 1000.0
    return seconds


def normalize_mode(mode):
    """Map a free-form heartbeat mode onto the known set, else ``other``."""
    text = str(mode or '').strip().lower()
    if not text:
        return 'idle'
    return text if text in KNOWN_MODES else 'other'


def describe_schedule(schedule):
    """Return ``(kind, text)`` for a cron job schedule variant."""
    if not isinstance(schedule, dict):
        return 'unknown', ''
    kind = str(schedule.get('kind') or '').strip().lower()
    if kind == 'cron':
        expr = schedule.get('expr') or schedule.get('cron') or ''
        tz = schedule.get('tz')
        return kind, f'{expr} ({tz})' if tz else str(expr)
    if kind == 'every':
        every_ms = schedule.get('everyMs')
        if isinstance(every_ms, (int, float)) and every_ms > 0:
            return kind, f'every {fmt_duration(int(every_ms // 1000))}'
        return kind, 'every ?'
    if kind == 'at':
        at = schedule.get('at') or schedule.get('atMs') or ''
        return kind, f'at {at}'
    return 'unknown', ''


def fmt_duration(seconds):
    """Format duration in seconds to compact human-readable string."""
    if seconds < 60:
        return f'{seconds}s'
    minutes = seconds // 60
    if minutes < 60:
        return f'{minutes}m'
    hours = minutes // 60
    if hours < 24:
        return f'{hours}h'
    return f'{hours // 24}d'
