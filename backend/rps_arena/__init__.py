from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ORIGINS', '*')
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from rps_arena.main import main
    flask_app.register_blueprint(main)

    # Room coordinator; timers only fire on demand under TESTING
    from rps_arena.services.games.lobby import create_lobby
    from rps_arena.services.games.scheduler import BackgroundScheduler, ManualScheduler
    from rps_arena.socketio_events import SocketIONotifier, register_socketio_handlers

    if flask_app.config.get('TESTING'):
        scheduler = ManualScheduler()
    else:
        scheduler = BackgroundScheduler(socketio)
    lobby = create_lobby(flask_app.config, SocketIONotifier(socketio), scheduler)
    lobby.sweeper.start()
    flask_app.extensions['lobby'] = lobby

    register_socketio_handlers()

    flask_app.logger.info(
        f"[app-ready] max_rounds={lobby.registry.max_rounds} "
        f"grace={lobby.sweeper.grace_period}s ttl={lobby.sweeper.ttl}s"
    )
    return flask_app
