from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

from .exceptions import RoomNotFound

main = Blueprint('main', __name__)


def _lobby():
    return current_app.extensions['lobby']


@main.route('/')
def index():
    return jsonify({'message': 'Rock Paper Scissors room server'})


@main.route('/health')
def health():
    stats = _lobby().stats()
    return jsonify({
        'status': 'OK',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'activeRooms': stats['activeRooms'],
        'activePlayers': stats['activePlayers'],
    })


@main.route('/api/room/<string:room_id>')
def room_status(room_id):
    try:
        return jsonify(_lobby().room_status(room_id))
    except RoomNotFound:
        return jsonify({'error': 'Room not found'}), 404
