import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Contest timers (milliseconds)
    SESSION_DURATION_MS = int(os.environ.get('SESSION_DURATION_MS', '30000'))
    # How long a finished session stays queryable before cleanup
    CLEANUP_GRACE_MS = int(os.environ.get('CLEANUP_GRACE_MS', '30000'))
    # In-game chat messages are truncated to this many characters
    CHAT_MAX_LENGTH = int(os.environ.get('CHAT_MAX_LENGTH', '200'))
    # Comma-separated list of browser origins allowed for HTTP and websockets
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS', 'http://localhost:3000,http://localhost:3001'
        ).split(',') if o.strip()
    ]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    # Deterministic virtual clock instead of background sleeps (tests, simulations)
    MANUAL_TIMERS = os.environ.get('MANUAL_TIMERS', '0') == '1'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    PORT = int(os.environ.get('PORT', '5173'))
