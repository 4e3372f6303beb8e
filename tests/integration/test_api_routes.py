"""
Integration tests for API routes.
Tests the games and ranked blueprints and the health route.
"""
import pytest
import json

from songwars.models import db, Song

AUDIO_URL = 'data:audio/mpeg;base64,AAAA'


def create_game(client, **body):
    response = client.post('/api/games', json=body)
    assert response.status_code == 200
    return json.loads(response.data)['gameCode']


def join(client, code, name):
    response = client.post(f'/api/games/{code}/join', json={'playerName': name})
    return response, json.loads(response.data)


class TestHealthEndpoint:
    """Tests for /health endpoint."""
    
    def test_health_check(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        
        data = json.loads(response.data)
        assert data['status'] == 'healthy'
        assert data['database'] == 'connected'
        assert data['games'] == 0


class TestCreateGame:
    
    def test_create_game(self, client, app):
        code = create_game(client)
        
        assert len(code) == 6
        assert code.isalnum() and code.upper() == code
        assert code in app.rooms
    
    def test_create_with_time_limit(self, client, app):
        code = create_game(client, timeLimit=120)
        assert app.rooms.get(code).time_limit == 120
    
    @pytest.mark.parametrize('limit', [5, 1000, 'soon'])
    def test_invalid_time_limit(self, client, app, limit):
        response = client.post('/api/games', json={'timeLimit': limit})
        assert response.status_code == 400
        assert 'error' in json.loads(response.data)
        assert len(app.rooms) == 0
    
    def test_code_exhaustion(self, client, app):
        app.config['GAME_CODE_ATTEMPTS'] = 0
        
        response = client.post('/api/games')
        assert response.status_code == 409
        assert json.loads(response.data)['error'] == 'Game code already exists'


class TestGetGame:
    
    def test_get_game(self, client):
        code = create_game(client)
        join(client, code, 'Alice')
        
        response = client.get(f'/api/games/{code}')
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data == {
            'exists': True,
            'gameCode': code,
            'playerCount': 1,
            'status': 'waiting',
            'timeLimit': 60,
            'round': 0,
        }
    
    def test_unknown_game(self, client):
        response = client.get('/api/games/NOPE42')
        assert response.status_code == 404
        assert json.loads(response.data)['error'] == 'Game not found'


class TestJoinGame:
    
    def test_join(self, client):
        code = create_game(client)
        response, data = join(client, code, 'Alice')
        
        assert response.status_code == 200
        assert data['success'] is True
        assert data['playerId'].startswith('http-')
        assert data['playerCount'] == 1
    
    def test_missing_name(self, client):
        code = create_game(client)
        response = client.post(f'/api/games/{code}/join', json={})
        assert response.status_code == 400
    
    def test_full_game(self, client):
        code = create_game(client)
        for i in range(10):
            join(client, code, f'Player {i}')
        
        response, data = join(client, code, 'Late')
        assert response.status_code == 400
        assert data['error'] == 'Game is full'
    
    def test_join_after_start(self, client):
        code = create_game(client)
        join(client, code, 'Alice')
        join(client, code, 'Bob')
        client.post(f'/api/games/{code}/start', json={})
        
        response, data = join(client, code, 'Carol')
        assert response.status_code == 400
        assert data['error'] == 'Game has already started'


class TestStartGame:
    
    def test_start(self, client, scheduler):
        code = create_game(client)
        join(client, code, 'Alice')
        join(client, code, 'Bob')
        
        response = client.post(f'/api/games/{code}/start', json={'timeLimit': 45})
        assert response.status_code == 200
        assert json.loads(response.data) == {'success': True, 'timeLimit': 45}
        assert scheduler.last.delay == 45
    
    def test_needs_two_players(self, client):
        code = create_game(client)
        join(client, code, 'Alice')
        
        response = client.post(f'/api/games/{code}/start', json={})
        assert response.status_code == 400
        
        status = json.loads(client.get(f'/api/games/{code}').data)['status']
        assert status == 'waiting'


class TestSubmitSong:
    
    @pytest.fixture
    def started(self, client):
        code = create_game(client)
        _, alice = join(client, code, 'Alice')
        _, bob = join(client, code, 'Bob')
        client.post(f'/api/games/{code}/start', json={})
        return code, alice['playerId'], bob['playerId']
    
    def test_submit(self, client, started):
        code, alice, _ = started
        response = client.post(f'/api/games/{code}/songs', json={
            'playerId': alice,
            'song': {'name': 'Tune', 'url': AUDIO_URL, 'length': 120}
        })
        
        assert response.status_code == 200
        assert json.loads(response.data) == {'success': True, 'songId': alice}
    
    def test_invalid_audio(self, client, started):
        code, alice, _ = started
        response = client.post(f'/api/games/{code}/songs', json={
            'playerId': alice,
            'song': {'name': 'Tune', 'url': 'http://example.com/a.mp3'}
        })
        assert response.status_code == 400
        assert json.loads(response.data)['error'] == 'Invalid audio file'
    
    def test_unknown_player(self, client, started):
        code, _, _ = started
        response = client.post(f'/api/games/{code}/songs', json={
            'playerId': 'http-nobody',
            'song': {'name': 'Tune', 'url': AUDIO_URL}
        })
        assert response.status_code == 404
    
    def test_deadline_opens_tournament(self, client, started, scheduler):
        code, alice, bob = started
        for player in (alice, bob):
            client.post(f'/api/games/{code}/songs', json={
                'playerId': player,
                'song': {'name': f'Song {player}', 'url': AUDIO_URL}
            })
        scheduler.last.fire()
        
        data = json.loads(client.get(f'/api/games/{code}').data)
        assert data['status'] == 'tournament'
        assert data['round'] == 1
    
    def test_submit_before_start(self, client):
        code = create_game(client)
        _, alice = join(client, code, 'Alice')
        response = client.post(f'/api/games/{code}/songs', json={
            'playerId': alice['playerId'],
            'song': {'name': 'Tune', 'url': AUDIO_URL}
        })
        assert response.status_code == 400
        assert json.loads(response.data)['error'] == 'Cannot submit song at this time'


class TestLeaveGame:
    
    def test_leave(self, client, app):
        code = create_game(client)
        _, alice = join(client, code, 'Alice')
        _, bob = join(client, code, 'Bob')
        
        response = client.post(f'/api/games/{code}/leave', json={'playerId': bob['playerId']})
        assert response.status_code == 200
        assert json.loads(response.data) == {'success': True, 'playerCount': 1, 'gameRemoved': False}
    
    def test_last_leave_removes_game(self, client, app):
        code = create_game(client)
        _, alice = join(client, code, 'Alice')
        
        response = client.post(f'/api/games/{code}/leave', json={'playerId': alice['playerId']})
        assert json.loads(response.data)['gameRemoved'] is True
        assert code not in app.rooms
        assert client.get(f'/api/games/{code}').status_code == 404
    
    def test_unknown_player(self, client):
        code = create_game(client)
        response = client.post(f'/api/games/{code}/leave', json={'playerId': 'http-nobody'})
        assert response.status_code == 404
    
    def test_missing_player_id(self, client):
        code = create_game(client)
        response = client.post(f'/api/games/{code}/leave', json={})
        assert response.status_code == 400


class TestRankedRoutes:
    
    def test_comparison(self, client, songs, artists):
        # Either genre can be drawn
        db.session.add(Song(title='Jazz Two', genre='Jazz', url='/uploads/songs/5.mp3', artist=artists[0]))
        db.session.commit()
        
        response = client.get('/ranked/get-comparison')
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['song1']['id'] != data['song2']['id']
        assert data['genre'] in ('Rock', 'Jazz')
    
    def test_comparison_without_songs(self, client):
        response = client.get('/ranked/get-comparison')
        assert response.status_code == 400
        assert json.loads(response.data)['error'] == 'No songs available for comparison'
    
    def test_vote(self, client, songs):
        winner_id, loser_id = songs[0].id, songs[1].id
        
        response = client.post('/ranked/vote', json={'winnerId': winner_id, 'loserId': loser_id})
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['success'] is True
        assert data['winner']['elo'] == 1016
        assert data['loser']['elo'] == 984
    
    def test_vote_unknown_song(self, client, songs):
        response = client.post('/ranked/vote', json={'winnerId': songs[0].id, 'loserId': 9999})
        assert response.status_code == 404
        assert json.loads(response.data)['error'] == 'Songs not found'
    
    def test_vote_missing_ids(self, client):
        response = client.post('/ranked/vote', json={'winnerId': 1})
        assert response.status_code == 400
    
    def test_leaderboard(self, client, songs):
        client.post('/ranked/vote', json={'winnerId': songs[2].id, 'loserId': songs[0].id})
        
        response = client.get('/ranked/leaderboard?limit=2')
        data = json.loads(response.data)
        assert [u['username'] for u in data] == ['artist3', 'artist2']
        assert data[0]['rank'] == 1
    
    def test_song_leaderboard_by_genre(self, client, songs):
        response = client.get('/ranked/leaderboard/songs?genre=Rock')
        data = json.loads(response.data)
        assert {s['title'] for s in data} == {'Rock One', 'Rock Two'}
    
    def test_song_leaderboard_unknown_genre(self, client):
        response = client.get('/ranked/leaderboard/songs?genre=Polka')
        assert response.status_code == 400
    
    def test_rating_history(self, client, songs):
        song_id = songs[0].id
        client.post('/ranked/vote', json={'winnerId': song_id, 'loserId': songs[1].id})
        
        response = client.get(f'/ranked/history/song/{song_id}')
        data = json.loads(response.data)
        assert len(data) == 1
        assert data[0]['rating_change'] == 16
    
    def test_rating_history_bad_type(self, client):
        response = client.get('/ranked/history/team/1')
        assert response.status_code == 400
