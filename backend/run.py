import logging

from config import Config
from rps_arena import create_app, socketio

logging.basicConfig(level=Config.LOG_LEVEL)
app = create_app()

if __name__ == '__main__':
    # Use SocketIO server to enable websockets
    socketio.run(
        app,
        host=app.config['HOST'],
        port=app.config['PORT'],
        allow_unsafe_werkzeug=True,
    )
