import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional

from .bracket import Bracket, Submission
from .errors import (
    CapacityError, InsufficientDataError, NotFoundError, StateError, ValidationError
)
from .events import (
    Event, error_event, game_started_event, matchup_resolved_event,
    player_joined_event, player_left_event, song_submitted_event, start_tournament_event,
    winner_event
)
from .phase_timer import PhaseTimer
from .state_machine import RoomPhase, RoomStateMachine

logger = logging.getLogger(__name__)

AUDIO_PREFIX = "data:audio/"
MAX_NAME_LENGTH = 50
MAX_TRACK_NAME_LENGTH = 100


def sanitize(text: str) -> str:
    """Strip markup characters and surrounding whitespace."""
    return text.replace("<", "").replace(">", "").strip()


@dataclass
class RoomSettings:
    max_players: int = 10
    default_time_limit: int = 60
    min_time_limit: int = 30
    max_time_limit: int = 300
    min_song_seconds: int = 1
    max_song_seconds: int = 600
    
    @classmethod
    def from_config(cls, config) -> "RoomSettings":
        return cls(
            max_players=config.get('MAX_PLAYERS', 10),
            default_time_limit=config.get('DEFAULT_TIME_LIMIT', 60),
            min_time_limit=config.get('MIN_TIME_LIMIT', 30),
            max_time_limit=config.get('MAX_TIME_LIMIT', 300),
            max_song_seconds=config.get('MAX_SONG_SECONDS', 600)
        )


@dataclass
class Participant:
    connection_id: str
    display_name: str
    joined_at: datetime


class NullBroadcaster:
    def emit(self, event: Event, room_code: str, skip: Optional[str] = None):
        pass


def start_timer(delay: float, callback: Callable[[], None]) -> PhaseTimer:
    return PhaseTimer(delay, callback).start()


class Room:
    """
    One tournament instance.
    
    Every public operation runs under ``lock``; callers that read several
    attributes together should hold it as well.
    """
    
    def __init__(
        self,
        code: str,
        settings: RoomSettings = None,
        broadcaster=None,
        schedule: Callable[[float, Callable[[], None]], PhaseTimer] = start_timer,
        time_limit: int = None
    ):
        self.code = code
        self.settings = settings or RoomSettings()
        self.broadcaster = broadcaster or NullBroadcaster()
        self._schedule = schedule
        self.lock = threading.RLock()
        self.participants: Dict[str, Participant] = {}
        self.submissions: Dict[str, Submission] = {}
        self.bracket: Optional[Bracket] = None
        self.timer: Optional[PhaseTimer] = None
        self.closed = False
        self.created_at = datetime.utcnow()
        self._sm = RoomStateMachine()
        
        if time_limit is not None:
            self._check_time_limit(time_limit)
        self.time_limit = time_limit or self.settings.default_time_limit
    
    @property
    def phase(self) -> RoomPhase:
        return self._sm.state
    
    @property
    def round(self) -> int:
        return self.bracket.current_round if self.bracket else 0
    
    @property
    def is_empty(self) -> bool:
        return not self.participants
    
    def _require(self, action: str, message: str):
        if self.closed:
            raise NotFoundError("Game not found")
        if not self._sm.can_perform(action):
            raise StateError(message)
    
    def _check_time_limit(self, time_limit: int):
        s = self.settings
        if time_limit < s.min_time_limit or time_limit > s.max_time_limit:
            raise ValidationError(
                f"Time limit must be between {s.min_time_limit} and {s.max_time_limit} seconds"
            )
    
    def _broadcast(self, event: Event, skip: str = None):
        self.broadcaster.emit(event, self.code, skip=skip)
    
    # ==================== Membership ====================
    
    def join(self, connection_id: str, display_name: str) -> Participant:
        with self.lock:
            self._require("join", "Game has already finished")
            
            name = sanitize(display_name) if isinstance(display_name, str) else ""
            if not name or len(name) > MAX_NAME_LENGTH:
                raise ValidationError(f"Player name must be 1-{MAX_NAME_LENGTH} characters")
            
            existing = self.participants.get(connection_id)
            if existing:
                existing.display_name = name
                return existing
            
            if len(self.participants) >= self.settings.max_players:
                raise CapacityError("Game is full")
            
            participant = Participant(connection_id, name, datetime.utcnow())
            self.participants[connection_id] = participant
            logger.info(f"Player {name} joined game {self.code} ({len(self.participants)} players)")
            
            self._broadcast(player_joined_event(name), skip=connection_id)
            return participant
    
    def leave(self, connection_id: str) -> bool:
        """Remove a participant; returns True when the room is now empty."""
        with self.lock:
            participant = self.participants.pop(connection_id, None)
            self.submissions.pop(connection_id, None)
            if participant:
                logger.info(f"Player {participant.display_name} left game {self.code}")
                self._broadcast(player_left_event(participant.display_name))
            return self.is_empty
    
    # ==================== Phases ====================
    
    def start_submission(self, time_limit: int = None, min_players: int = None) -> int:
        with self.lock:
            self._require("start", f"Cannot start game in {self.phase.value} state")
            
            if time_limit is not None:
                self._check_time_limit(time_limit)
            if min_players is not None and len(self.participants) < min_players:
                raise InsufficientDataError(f"Need at least {min_players} players to start")
            
            self._sm.transition("start")
            if time_limit is not None:
                self.time_limit = time_limit
            self.timer = self._schedule(self.time_limit, self.handle_deadline)
            logger.info(f"Game {self.code} accepting songs for {self.time_limit}s")
            
            self._broadcast(game_started_event(self.time_limit, self.phase.value))
            return self.time_limit
    
    def handle_deadline(self):
        """Submission window elapsed."""
        with self.lock:
            if self.closed or self.phase != RoomPhase.SUBMITTING:
                logger.debug(f"Ignoring stale deadline for game {self.code}")
                return
            self.open_tournament()
    
    def open_tournament(self) -> Optional[Bracket]:
        with self.lock:
            self._require("open_tournament", f"Cannot open tournament in {self.phase.value} state")
            if self.timer:
                self.timer.cancel()
            
            try:
                bracket = Bracket(list(self.submissions.values()))
            except InsufficientDataError as e:
                self._sm.transition("abort")
                logger.info(f"Game {self.code} finished without a tournament: {e.message}")
                self._broadcast(error_event(e.message))
                return None
            
            self.bracket = bracket
            self._sm.transition("open_tournament")
            logger.info(f"Tournament started for game {self.code} with {len(self.submissions)} songs")
            
            self._broadcast(start_tournament_event(
                [m.to_dict() for m in bracket.matchups], bracket.current_round
            ))
            return bracket
    
    # ==================== Songs and votes ====================
    
    def submit_track(
        self,
        connection_id: str,
        name: str,
        url: str,
        length: float = None,
        category: str = None
    ) -> Submission:
        with self.lock:
            self._require("submit_track", "Cannot submit song at this time")
            if connection_id not in self.participants:
                raise NotFoundError("Player is not in this game")
            
            track_name = sanitize(name) if isinstance(name, str) else ""
            if not track_name or len(track_name) > MAX_TRACK_NAME_LENGTH:
                raise ValidationError("Invalid song name")
            
            if not isinstance(url, str) or not url.startswith(AUDIO_PREFIX):
                raise ValidationError("Invalid audio file")
            
            s = self.settings
            if length is not None and (length < s.min_song_seconds or length > s.max_song_seconds):
                raise ValidationError(
                    f"Song must be between {s.min_song_seconds} second and "
                    f"{s.max_song_seconds // 60} minutes"
                )
            
            submission = Submission(
                submission_id=connection_id,
                track_name=track_name,
                audio_ref=url,
                duration_seconds=length if length is not None else 0,
                category=sanitize(category) if category else "Unknown"
            )
            self.submissions[connection_id] = submission
            logger.info(f"Song submitted: {track_name} in game {self.code}")
            self._broadcast(song_submitted_event(self.participants[connection_id].display_name))
            return submission
    
    def cast_vote(self, connection_id: str, winner_id: str, matchup_id: str = None):
        with self.lock:
            self._require("vote", "Cannot vote at this time")
            if connection_id not in self.participants:
                raise NotFoundError("Player is not in this game")
            
            outcome = self.bracket.record_vote(winner_id, connection_id, matchup_id)
            if outcome is None:
                return None
            
            matchup = outcome.matchup
            logger.info(
                f"Matchup {matchup.matchup_id} in game {self.code} decided by {matchup.decided_by}"
            )
            self._broadcast(matchup_resolved_event(
                matchup.matchup_id, matchup.round_num, matchup.winner.to_dict()
            ))
            
            if outcome.champion:
                self._sm.transition("finish")
                logger.info(f"Game {self.code} won by {outcome.champion.track_name}")
                self._broadcast(winner_event(outcome.champion.to_dict()))
            elif outcome.next_round:
                self._sm.transition("advance")
                self._broadcast(start_tournament_event(
                    [m.to_dict() for m in outcome.next_round], self.bracket.current_round
                ))
            return outcome
    
    # ==================== Teardown ====================
    
    def close(self):
        with self.lock:
            self.closed = True
            if self.timer:
                self.timer.cancel()
    
    def to_dict(self) -> dict:
        return {
            "exists": True,
            "gameCode": self.code,
            "playerCount": len(self.participants),
            "status": self.phase.value,
            "timeLimit": self.time_limit,
            "round": self.round
        }
