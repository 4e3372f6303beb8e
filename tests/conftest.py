"""
Pytest configuration and fixtures for SongWars tests.
"""
import os
import sys
import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Set testing environment before importing app
os.environ['FLASK_ENV'] = 'testing'

from rooms.bracket import Submission
from rooms.events import Event
from rooms.registry import RoomRegistry
from rooms.room import Room, RoomSettings
from songwars.app import create_app
from songwars.models import db, Song, User

AUDIO_URL = 'data:audio/mpeg;base64,AAAA'


class RecordingBroadcaster:
    """Collects room events instead of sending them."""
    
    def __init__(self):
        self.sent = []
    
    def emit(self, event: Event, room_code: str, skip: str = None):
        self.sent.append((event.name, event.data, room_code, skip))
    
    def names(self):
        return [name for name, _, _, _ in self.sent]
    
    def last(self, name):
        for sent_name, data, _, _ in reversed(self.sent):
            if sent_name == name:
                return data
        return None


class ManualTimer:
    """Phase timer stand-in that only fires when told to."""
    
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
    
    def cancel(self):
        self.cancelled = True
    
    def fire(self):
        if not self.cancelled:
            self.callback()


class ManualScheduler:
    def __init__(self):
        self.timers = []
    
    def __call__(self, delay, callback):
        timer = ManualTimer(delay, callback)
        self.timers.append(timer)
        return timer
    
    @property
    def last(self):
        return self.timers[-1]


@pytest.fixture
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def room(broadcaster, scheduler):
    return Room('ABC123', settings=RoomSettings(), broadcaster=broadcaster, schedule=scheduler)


@pytest.fixture
def registry(broadcaster, scheduler):
    return RoomRegistry(settings=RoomSettings(), broadcaster=broadcaster, schedule=scheduler)


@pytest.fixture
def make_submissions():
    def factory(count):
        return [
            Submission(
                submission_id=f'sid-{i + 1}',
                track_name=f'Track {i + 1}',
                audio_ref=AUDIO_URL
            )
            for i in range(count)
        ]
    return factory


@pytest.fixture
def tournament_room(room, scheduler):
    """A room with four players and four songs, tournament open."""
    for i in range(4):
        room.join(f'sid-{i + 1}', f'Player {i + 1}')
    room.start_submission()
    for i in range(4):
        room.submit_track(f'sid-{i + 1}', f'Track {i + 1}', AUDIO_URL)
    scheduler.last.fire()
    return room


@pytest.fixture
def app(scheduler):
    """Create application for testing."""
    app = create_app('testing', schedule=scheduler)
    
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def socket_client(app):
    """Create a Socket.IO test client."""
    clients = []
    
    def factory():
        c = app.socketio.test_client(app)
        clients.append(c)
        return c
    
    yield factory
    
    for c in clients:
        if c.is_connected():
            c.disconnect()


@pytest.fixture
def artists(app):
    users = []
    for i in range(3):
        user = User(username=f'artist{i + 1}', email=f'artist{i + 1}@example.com')
        db.session.add(user)
        users.append(user)
    db.session.commit()
    return users


@pytest.fixture
def songs(app, artists):
    """Two rock songs by different artists and one jazz song."""
    rows = [
        Song(title='Rock One', genre='Rock', url='/uploads/songs/1.mp3', artist=artists[0]),
        Song(title='Rock Two', genre='Rock', url='/uploads/songs/2.mp3', artist=artists[1]),
        Song(title='Jazz One', genre='Jazz', url='/uploads/songs/3.mp3', artist=artists[2]),
    ]
    db.session.add_all(rows)
    db.session.commit()
    return rows
