import threading

import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One arena per app: tables, lock and timers live on it, not on the module
    from audiobattle.arena import Arena
    from audiobattle.socketio_events import make_emitter, register_socketio_handlers
    from audiobattle.timers import BackgroundScheduler, ManualScheduler

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/ws')
    lock = threading.RLock()
    if flask_app.config.get('MANUAL_TIMERS'):
        scheduler = ManualScheduler()
    else:
        scheduler = BackgroundScheduler(socketio, lock, logger=flask_app.logger)
    flask_app.extensions['arena'] = Arena.from_config(
        flask_app.config,
        make_emitter(namespace),
        scheduler=scheduler,
        lock=lock,
        logger=flask_app.logger,
    )

    from audiobattle.api.stats import stats
    flask_app.register_blueprint(stats, url_prefix='/api')

    register_socketio_handlers(namespace)

    @click.command('battle-config')
    def battle_config_command():
        """Prints the effective contest settings."""
        cfg = flask_app.config
        click.echo(f"session duration: {cfg['SESSION_DURATION_MS']} ms")
        click.echo(f"cleanup grace:    {cfg['CLEANUP_GRACE_MS']} ms")
        click.echo(f"chat max length:  {cfg['CHAT_MAX_LENGTH']}")
        click.echo(f"namespace:        {namespace}")
        click.echo(f"timers:           {'manual' if cfg.get('MANUAL_TIMERS') else 'background'}")

    flask_app.cli.add_command(battle_config_command)

    return flask_app
