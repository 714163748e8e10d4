"""Mood inference from a heartbeat state snapshot."""

import time

import config
import parsers

MOODS = {
    'dormant': ('😴', 'No heartbeat for {age} minutes. Probably asleep or stuck.'),
    'focused': ('🎯', 'Heads down building: {task}'),
    'curious': ('🔍', 'Digging into research: {task}'),
    'creative': ('🎨', 'In a creative stretch, writing and making things.'),
    'introspective': ('🪞', 'Reflecting on recent work and what it taught.'),
    'calm': ('😌', 'Quiet for {idle} beats in a row. Nothing pressing.'),
    'productive': ('⚡', '{insights} fresh insights logged recently.'),
    'attentive': ('👀', 'Monitoring and ready for the next task.'),
}

NO_HEARTBEAT_DESCRIPTION = 'No heartbeat recorded yet.'


def heartbeat_age_minutes(state, now=None):
    """Minutes since the last heartbeat, or None when it was never recorded."""
    last = parsers.heartbeat_epoch_seconds(state.get('lastHeartbeat'))
    if last is None:
        return None
    now = time.time() if now is None else now
    return max(0.0, (now - last) / 60.0)


def _count(value):
    try:
        return max(0, int(value))
    except Exception:
        return 0


def classify(mode_kind, task, idle_beats, insight_count, age):
    """First matching rule wins; the order below is significant."""
    if age is None or age > config.DORMANT_MINUTES:
        return 'dormant'
    if mode_kind == 'build' and task:
        return 'focused'
    if mode_kind == 'research':
        return 'curious'
    if mode_kind == 'create':
        return 'creative'
    if mode_kind == 'reflect':
        return 'introspective'
    if idle_beats > 3:
        return 'calm'
    if insight_count > 5:
        return 'productive'
    return 'attentive'


def infer_mood(state, now=None):
    state = state if isinstance(state, dict) else {}
    raw_mode = state.get('currentMode')
    mode_kind = parsers.normalize_mode(raw_mode)
    task = str(state.get('currentTask') or '').strip()
    idle_beats = _count(state.get('consecutiveIdleBeats'))
    insights = state.get('recentInsights') if isinstance(state.get('recentInsights'), list) else []
    age = heartbeat_age_minutes(state, now=now)

    mood = classify(mode_kind, task, idle_beats, len(insights), age)
    emoji, template = MOODS[mood]
    if mood == 'dormant' and age is None:
        description = NO_HEARTBEAT_DESCRIPTION
    else:
        description = template.format(
            age=int(age or 0),
            task=task or 'something new',
            idle=idle_beats,
            insights=len(insights),
        )

    # The writer appends, so the last entry is the latest.
    last_insight = None
    if insights:
        latest = insights[-1]
        text = latest.get('insight') if isinstance(latest, dict) else latest
        if text is not None:
            last_insight = str(text).strip() or None

    return {
        'mood': mood,
        'emoji': emoji,
        'description': description,
        'mode': raw_mode,
        'modeKind': mode_kind,
        'lastInsight': last_insight,
        'stats': {
            'idleBeats': idle_beats,
            'recentInsights': len(insights),
            'heartbeatAgeMinutes': round(age, 1) if age is not None else None,
        },
    }
