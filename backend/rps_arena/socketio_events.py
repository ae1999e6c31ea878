from flask import current_app, request

from rps_arena import socketio

NAMESPACE = '/'


class SocketIONotifier:
    """Delivers one outbound event to one connection."""

    def __init__(self, sio, namespace: str = NAMESPACE):
        self.socketio = sio
        self.namespace = namespace

    def send(self, sid: str, event: str, data) -> None:
        # socketio.emit works from request handlers and background tasks alike
        self.socketio.emit(event, data, to=sid, namespace=self.namespace)


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _lobby():
    return current_app.extensions['lobby']


def _payload(data) -> dict:
    return data if isinstance(data, dict) else {}


def handle_connect(auth=None):
    current_app.logger.debug(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    sid = _get_sid()
    current_app.logger.debug(f"[socket-disconnect] sid={sid} reason={reason}")
    _lobby().disconnect(sid)


def handle_join_room(data):
    data = _payload(data)
    _lobby().join_room(_get_sid(), data.get('roomId'), data.get('playerName'))


def handle_play_with_computer(data):
    data = _payload(data)
    _lobby().play_with_computer(_get_sid(), data.get('playerName'))


def handle_make_choice(data):
    # Older clients sent the bare move string
    choice = data.get('choice') if isinstance(data, dict) else data
    _lobby().make_choice(_get_sid(), choice)


def handle_new_game(data=None):
    _lobby().new_game(_get_sid())


def register_socketio_handlers(namespace: str = NAMESPACE) -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('join-room', handle_join_room, namespace=namespace)
    socketio.on_event('play-with-computer', handle_play_with_computer, namespace=namespace)
    socketio.on_event('make-choice', handle_make_choice, namespace=namespace)
    socketio.on_event('new-game', handle_new_game, namespace=namespace)
