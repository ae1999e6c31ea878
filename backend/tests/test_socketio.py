def _events(test_client, name):
    return [pkt['args'][0] if pkt['args'] else None
            for pkt in test_client.get_received() if pkt['name'] == name]


def _by_name(received):
    grouped = {}
    for pkt in received:
        grouped.setdefault(pkt['name'], []).append(pkt['args'][0] if pkt['args'] else None)
    return grouped


def _seat_pair(sio_client):
    alice = sio_client()
    alice.emit('join-room', {'roomId': None, 'playerName': 'Alice'})
    code = _events(alice, 'room-joined')[0]['roomId']
    bob = sio_client()
    bob.emit('join-room', {'roomId': code, 'playerName': 'Bob'})
    return alice, bob, code


def test_socket_connect_and_create_room(sio_client):
    alice = sio_client()
    assert alice.is_connected()

    alice.emit('join-room', {'roomId': None, 'playerName': 'Alice'})
    received = _by_name(alice.get_received())
    joined = received['room-joined'][0]
    assert len(joined['roomId']) == 6
    assert joined['playerId'] == 'player1'
    assert joined['room']['players']['player1']['name'] == 'Alice'
    assert 'player-joined' in received
    assert 'game-start' not in received


def test_second_player_starts_game(sio_client):
    alice, bob, code = _seat_pair(sio_client)

    bob_events = _by_name(bob.get_received())
    assert bob_events['room-joined'][0]['playerId'] == 'player2'
    assert bob_events['room-joined'][0]['roomId'] == code
    assert len(bob_events['game-start']) == 1

    alice_events = _by_name(alice.get_received())
    assert alice_events['player-joined'][-1]['players']['player2']['name'] == 'Bob'
    assert len(alice_events['game-start']) == 1


def test_room_full_error_only_to_sender(sio_client):
    alice, bob, code = _seat_pair(sio_client)
    alice.get_received()
    bob.get_received()

    carol = sio_client()
    carol.emit('join-room', {'roomId': code, 'playerName': 'Carol'})
    assert _events(carol, 'room-error') == [{'message': 'Room is full!'}]
    assert alice.get_received() == []
    assert bob.get_received() == []


def test_round_result_broadcast(sio_client):
    alice, bob, _ = _seat_pair(sio_client)
    alice.get_received()
    bob.get_received()

    alice.emit('make-choice', {'choice': 'rock'})
    assert _events(bob, 'round-result') == []

    bob.emit('make-choice', {'choice': 'paper'})
    for test_client in (alice, bob):
        results = _events(test_client, 'round-result')
        assert results == [{
            'round': 1,
            'choices': {'player1': 'rock', 'player2': 'paper'},
            'winner': 'player2',
            'scores': {'player1': 0, 'player2': 1},
        }]


def test_full_game_over_socket(flask_app, sio_client):
    scheduler = flask_app.extensions['lobby'].scheduler
    alice, bob, _ = _seat_pair(sio_client)
    for _ in range(5):
        alice.emit('make-choice', {'choice': 'scissors'})
        bob.emit('make-choice', 'paper')
        scheduler.advance(3)

    over = _events(alice, 'game-over')
    assert len(over) == 1
    assert over[0]['winner'] == 'player1'
    assert over[0]['finalScores'] == {'player1': 5, 'player2': 0}

    bob.get_received()
    bob.emit('new-game')
    restart = _events(bob, 'game-start')
    assert restart[0]['gameState']['currentRound'] == 1
    assert restart[0]['gameState']['scores'] == {'player1': 0, 'player2': 0}


def test_disconnect_notifies_opponent(flask_app, sio_client):
    lobby = flask_app.extensions['lobby']
    alice, bob, code = _seat_pair(sio_client)
    bob.get_received()

    alice.disconnect()
    assert _events(bob, 'player-disconnected') == [{'playerId': 'player1', 'playerName': 'Alice'}]
    assert code in lobby.registry

    bob.disconnect()
    lobby.scheduler.advance(300)
    assert code not in lobby.registry


def test_play_with_computer(sio_client):
    alice = sio_client()
    alice.emit('play-with-computer', {'playerName': 'Alice'})
    received = _by_name(alice.get_received())
    assert received['room-joined'][0]['room']['players']['player2']['isComputer'] is True
    assert len(received['game-start']) == 1

    alice.emit('make-choice', {'choice': 'rock'})
    results = _events(alice, 'round-result')
    assert len(results) == 1
    assert results[0]['choices']['player1'] == 'rock'
    assert results[0]['choices']['player2'] in ('rock', 'paper', 'scissors')


def test_requests_without_room_are_ignored(sio_client):
    stranger = sio_client()
    stranger.get_received()
    stranger.emit('make-choice', {'choice': 'rock'})
    stranger.emit('new-game')
    assert stranger.get_received() == []
