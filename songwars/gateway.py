"""
Socket.IO gateway for game rooms.

Routes inbound client events to room operations and fans room events out
to every connection in the room.
"""
import functools
import logging

from flask import request
from flask_socketio import SocketIO, emit, join_room, leave_room

from rooms.errors import NotFoundError, RoomError
from rooms.events import (
    CastVote, Event, EventType, JoinGame, LeaveGame, StartGame, SubmitSong, error_event
)
from rooms.phase_timer import PhaseTimer
from rooms.registry import RoomRegistry

logger = logging.getLogger(__name__)


class SocketIOBroadcaster:
    """Delivers room events over Socket.IO rooms named after the game code."""
    
    def __init__(self, socketio: SocketIO):
        self.socketio = socketio
    
    def emit(self, event: Event, room_code: str, skip: str = None):
        self.socketio.emit(event.name, event.data, to=room_code, skip_sid=skip)


def make_scheduler(socketio: SocketIO):
    """Phase timers backed by Socket.IO background tasks."""
    def schedule(delay, callback):
        return PhaseTimer(
            delay,
            callback,
            spawn=socketio.start_background_task,
            sleep=socketio.sleep
        ).start()
    return schedule


def reports_errors(handler):
    """Report a rejected event to the sender only."""
    @functools.wraps(handler)
    def wrapper(self, data=None):
        try:
            return handler(self, data)
        except RoomError as e:
            logger.debug(f"Rejected {handler.__name__} from {request.sid}: {e.message}")
            emit(EventType.ERROR.value, error_event(e.message).data)
        except Exception:
            logger.exception(f"Unhandled error in {handler.__name__} from {request.sid}")
            emit(EventType.ERROR.value, error_event("Something went wrong").data)
    return wrapper


class GameGateway:
    def __init__(self, socketio: SocketIO, registry: RoomRegistry):
        self.socketio = socketio
        self.registry = registry
    
    def register(self):
        self.socketio.on_event(EventType.JOIN_GAME.value, self.on_join_game)
        self.socketio.on_event(EventType.START_GAME.value, self.on_start_game)
        self.socketio.on_event(EventType.SUBMIT_SONG.value, self.on_submit_song)
        self.socketio.on_event(EventType.VOTE.value, self.on_vote)
        self.socketio.on_event(EventType.LEAVE_GAME.value, self.on_leave_game)
        self.socketio.on_event('disconnect', self.on_disconnect)
    
    def _room(self, code: str):
        room = self.registry.get(code)
        if not room:
            raise NotFoundError("Game not found")
        return room
    
    @reports_errors
    def on_join_game(self, data):
        event = JoinGame.from_payload(data)
        sid = request.sid
        
        # A room can be closed between lookup and join when its last player leaves.
        for attempt in range(2):
            room, created = self.registry.get_or_create(event.game_code)
            try:
                room.join(sid, event.player_name)
                break
            except NotFoundError:
                if attempt:
                    raise
            except RoomError:
                # Hosted rooms start empty; only drop one this join created.
                if created:
                    self.registry.remove_if_empty(event.game_code)
                raise
        
        join_room(event.game_code)
        with room.lock:
            players = [p.display_name for p in room.participants.values()]
            status = room.phase.value
        emit(EventType.GAME_JOINED.value, {
            'gameCode': event.game_code,
            'players': players,
            'status': status
        })
    
    @reports_errors
    def on_start_game(self, data):
        event = StartGame.from_payload(data)
        room = self._room(event.game_code)
        room.start_submission(time_limit=event.time_limit, min_players=event.min_players)
    
    @reports_errors
    def on_submit_song(self, data):
        event = SubmitSong.from_payload(data)
        room = self._room(event.game_code)
        room.submit_track(
            request.sid,
            event.name,
            event.url,
            length=event.length,
            category=event.category
        )
    
    @reports_errors
    def on_vote(self, data):
        event = CastVote.from_payload(data)
        room = self._room(event.game_code)
        room.cast_vote(request.sid, event.winner_id, matchup_id=event.matchup_id)
    
    @reports_errors
    def on_leave_game(self, data):
        event = LeaveGame.from_payload(data)
        leave_room(event.game_code)
        self.registry.leave(event.game_code, request.sid)
    
    def on_disconnect(self, reason=None):
        codes = self.registry.leave_all(request.sid)
        logger.info(f"Player disconnected: {request.sid} (left {len(codes)} games)")
