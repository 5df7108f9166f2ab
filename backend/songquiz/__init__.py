from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config, scheduler=None, provider=None):
    """Build the Flask app and the room registry it serves.

    ``scheduler`` and ``provider`` default to the Socket.IO background-task
    scheduler and the iTunes provider; tests pass a manual clock and a
    canned track list instead.
    """
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('ALLOWED_ORIGINS') or '*'
    if allowed_origins == ['*']:
        allowed_origins = '*'
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from songquiz.main import main
    flask_app.register_blueprint(main)

    from songquiz.services.games import RoomRegistry, SocketIOScheduler
    from songquiz.services.tracks import ItunesTrackProvider
    from songquiz.socketio_events import make_emitter, register_socketio_handlers

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    registry = RoomRegistry.from_config(
        flask_app.config,
        emit=make_emitter(namespace),
        provider=provider or ItunesTrackProvider.from_config(flask_app.config),
        scheduler=scheduler or SocketIOScheduler(socketio),
    )
    flask_app.extensions['songquiz'] = registry
    registry.start_sweeper()

    register_socketio_handlers(namespace)

    return flask_app
