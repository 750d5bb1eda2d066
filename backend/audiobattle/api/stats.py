from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

stats = Blueprint('stats', __name__)


@stats.route('/health', methods=['GET'])
def health():
    """
    Liveness check with the current arena counters attached.
    """
    payload = {'status': 'healthy'}
    payload.update(current_app.extensions['arena'].stats())
    payload['timestamp'] = datetime.now(timezone.utc).isoformat()
    return jsonify(payload), 200


@stats.route('/stats', methods=['GET'])
def server_stats():
    return jsonify(current_app.extensions['arena'].stats()), 200


@stats.route('/sessions/<string:session_id>', methods=['GET'])
def get_session(session_id):
    """
    Returns a session summary; finished sessions stay visible until cleanup.
    """
    summary = current_app.extensions['arena'].session_summary(session_id)
    if summary is None:
        return jsonify({'error': 'Session not found'}), 404
    return jsonify(summary), 200
