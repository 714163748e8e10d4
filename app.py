"""Jarvis ops dashboard backend.

Read-only HTTP and websocket surface over an autonomous agent's workspace:
heartbeat state and log, task list, research notes, authored posts, cron
jobs and host health, plus one consolidated overview for the browser client.
Every endpoint is a thin adapter over a reader in ``readers``/``health``/
``mood``/``overview``; none of them writes anything.
"""

import os

from flask import Flask, jsonify, request, send_from_directory
from flask_socketio import SocketIO

import config
import health
import mood
import overview
import readers

app = Flask(__name__, static_folder=None)
# Task sections must keep document order in responses.
app.json.sort_keys = False
socketio = SocketIO(app, cors_allowed_origins="*")

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'GET, OPTIONS',
    'Access-Control-Allow-Headers': 'Content-Type',
}


def api_call(func, *args):
    """Serialize one reader result; an escaping exception becomes a 500."""
    try:
        data = func(*args)
    except Exception as exc:
        print(f'[API] {request.path} failed: {exc}')
        return jsonify({'error': str(exc) or exc.__class__.__name__}), 500
    return jsonify(data)


@app.before_request
def answer_preflight():
    if request.method == 'OPTIONS':
        return '', 204, CORS_HEADERS
    return None


@app.after_request
def add_api_headers(response):
    if request.path.startswith('/api/'):
        response.headers['Access-Control-Allow-Origin'] = '*'
        response.headers['Cache-Control'] = 'no-cache'
    return response


@app.route('/ready')
def ready():
    """Return lightweight readiness status for frontend bootstrap retries."""
    return {'ready': True}


@app.route('/api/overview')
def api_overview():
    """Return the consolidated snapshot the dashboard polls."""
    return api_call(overview.get_overview)


@app.route('/api/heartbeat/state')
def api_heartbeat_state():
    return api_call(readers.get_heartbeat_state)


@app.route('/api/heartbeat/log')
def api_heartbeat_log():
    return api_call(readers.get_heartbeat_log)


@app.route('/api/todo')
def api_todo():
    return api_call(readers.get_todo)


@app.route('/api/research')
def api_research():
    return api_call(readers.get_research_files)


@app.route('/api/crons')
def api_crons():
    return api_call(readers.get_crons)


@app.route('/api/insights')
def api_insights():
    return api_call(readers.get_insights)


@app.route('/api/curiosity')
def api_curiosity():
    return api_call(readers.get_curiosity)


@app.route('/api/daily')
def api_daily():
    return api_call(readers.get_daily_memory)


@app.route('/api/briefing')
def api_briefing():
    return api_call(readers.get_morning_briefing)


@app.route('/api/system')
def api_system():
    return api_call(health.get_system_health)


@app.route('/api/mood')
def api_mood():
    """Return the inferred mood for a fresh heartbeat state read."""
    return api_call(lambda: mood.infer_mood(readers.get_heartbeat_state()))


@app.route('/api/writing')
def api_writings():
    return api_call(readers.get_writings)


@app.route('/api/writing/<slug>')
def api_writing(slug):
    """Return one authored post with its full markdown body."""
    try:
        post = readers.get_writing(slug)
    except Exception as exc:
        print(f'[API] {request.path} failed: {exc}')
        return jsonify({'error': str(exc) or exc.__class__.__name__}), 500
    if post is None:
        return jsonify({'found': False, 'error': 'writing_not_found', 'slug': slug}), 404
    return jsonify(post)


@app.route('/api/<path:_unknown>')
def api_not_found(_unknown):
    return jsonify({'error': 'not_found'}), 404


@app.route('/', defaults={'path': ''})
@app.route('/<path:path>')
def static_client(path):
    """Serve the client bundle, falling back to index.html for client-side routes."""
    root = os.path.realpath(config.PUBLIC_DIR)
    candidate = os.path.realpath(os.path.join(root, path or 'index.html'))
    if candidate.startswith(root + os.sep) and os.path.isfile(candidate):
        response = send_from_directory(root, os.path.relpath(candidate, root))
        response.headers['Cache-Control'] = 'no-cache'
        return response
    if os.path.isfile(os.path.join(root, 'index.html')):
        return send_from_directory(root, 'index.html')
    return 'Not Found', 404


@socketio.on('connect')
def handle_connect(auth=None):
    """Push a fresh overview to a newly connected client."""
    print('[WS] Client connected')
    socketio.emit('overview', overview.get_overview(), to=request.sid)


@socketio.on('overview_request')
def handle_overview_request():
    """Handle an explicit refresh sent by the client on its polling interval."""
    socketio.emit('overview', overview.get_overview(), to=request.sid)


@socketio.on('disconnect')
def handle_disconnect(reason=None):  # pragma: no cover
    """Log websocket disconnect events."""
    print('[WS] Client disconnected')


if __name__ == '__main__':  # pragma: no cover
    print(f'[BOOT] Jarvis dashboard running at http://{config.HOST}:{config.PORT}')
    print(f'[BOOT] Workspace: {config.WORKSPACE}')
    socketio.run(app, host=config.HOST, port=config.PORT, allow_unsafe_werkzeug=True)
