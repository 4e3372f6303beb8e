"""
Real-time channel events.

Inbound payloads are validated into typed events before they reach a room;
outbound events carry the name and JSON body emitted to clients.
"""
import re
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional

from .errors import ValidationError

GAME_CODE_PATTERN = re.compile(r'^[A-Za-z0-9]{4,8}$')


class EventType(str, Enum):
    # Inbound
    JOIN_GAME = "join-game"
    START_GAME = "start-game"
    SUBMIT_SONG = "submit-song"
    VOTE = "vote"
    LEAVE_GAME = "leave-game"
    
    # Room membership
    GAME_JOINED = "game-joined"
    PLAYER_JOINED = "player-joined"
    PLAYER_LEFT = "player-left"
    
    # Phases
    GAME_STARTED = "game-started"
    SONG_SUBMITTED = "song-submitted"
    START_TOURNAMENT = "start-tournament"
    MATCHUP_RESOLVED = "matchup-resolved"
    WINNER = "winner"
    
    ERROR = "error"


@dataclass
class Event:
    type: EventType
    data: dict = field(default_factory=dict)
    
    @property
    def name(self) -> str:
        return self.type.value


def _require_mapping(data) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("Invalid payload")
    return data


def _require_game_code(data: dict) -> str:
    code = data.get("gameCode")
    if not code or not isinstance(code, str):
        raise ValidationError("Missing game code")
    if not GAME_CODE_PATTERN.match(code):
        raise ValidationError("Invalid game code format")
    return code


def _optional_int(data: dict, key: str, label: str) -> Optional[int]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{label} must be a number")
    return int(value)


@dataclass
class JoinGame:
    game_code: str
    player_name: str
    
    @classmethod
    def from_payload(cls, data) -> "JoinGame":
        data = _require_mapping(data)
        if not data.get("gameCode") or not data.get("playerName"):
            raise ValidationError("Missing game code or player name")
        code = _require_game_code(data)
        name = data["playerName"]
        if not isinstance(name, str):
            raise ValidationError("Player name must be 1-50 characters")
        return cls(game_code=code, player_name=name)


@dataclass
class StartGame:
    game_code: str
    time_limit: Optional[int] = None
    min_players: Optional[int] = None
    
    @classmethod
    def from_payload(cls, data) -> "StartGame":
        data = _require_mapping(data)
        return cls(
            game_code=_require_game_code(data),
            time_limit=_optional_int(data, "timeLimit", "Time limit"),
            min_players=_optional_int(data, "minPlayers", "Minimum players")
        )


@dataclass
class SubmitSong:
    game_code: str
    name: str
    url: str
    length: Optional[float] = None
    category: Optional[str] = None
    
    @classmethod
    def from_payload(cls, data) -> "SubmitSong":
        data = _require_mapping(data)
        code = _require_game_code(data)
        song = data.get("song")
        if not isinstance(song, dict) or not song.get("name") or not song.get("url"):
            raise ValidationError("Invalid song data")
        length = song.get("length")
        if length is not None and (isinstance(length, bool) or not isinstance(length, (int, float))):
            raise ValidationError("Song length must be a number")
        category = song.get("category")
        if category is not None and not isinstance(category, str):
            raise ValidationError("Invalid song category")
        return cls(
            game_code=code,
            name=song["name"],
            url=song["url"],
            length=length,
            category=category
        )


@dataclass
class CastVote:
    game_code: str
    winner_id: str
    matchup_id: Optional[str] = None
    
    @classmethod
    def from_payload(cls, data) -> "CastVote":
        data = _require_mapping(data)
        code = _require_game_code(data)
        winner = data.get("winner")
        if not isinstance(winner, dict) or not isinstance(winner.get("id"), str) or not winner["id"]:
            raise ValidationError("Invalid vote")
        matchup_id = data.get("matchupId")
        if matchup_id is not None and not isinstance(matchup_id, str):
            raise ValidationError("Invalid matchup")
        return cls(game_code=code, winner_id=winner["id"], matchup_id=matchup_id)


@dataclass
class LeaveGame:
    game_code: str
    
    @classmethod
    def from_payload(cls, data) -> "LeaveGame":
        return cls(game_code=_require_game_code(_require_mapping(data)))


def player_joined_event(name: str) -> Event:
    return Event(EventType.PLAYER_JOINED, {"name": name})


def player_left_event(name: str) -> Event:
    return Event(EventType.PLAYER_LEFT, {"name": name})


def game_started_event(time_limit: int, phase: str) -> Event:
    return Event(EventType.GAME_STARTED, {
        "timeLimitSeconds": time_limit,
        "phase": phase
    })


def start_tournament_event(matchups: list, round_num: int) -> Event:
    return Event(EventType.START_TOURNAMENT, {
        "matchups": matchups,
        "round": round_num
    })


def matchup_resolved_event(matchup_id: str, round_num: int, winner: dict) -> Event:
    return Event(EventType.MATCHUP_RESOLVED, {
        "matchupId": matchup_id,
        "round": round_num,
        "winner": winner
    })


def winner_event(submission: dict) -> Event:
    return Event(EventType.WINNER, dict(submission))


def error_event(message: str) -> Event:
    return Event(EventType.ERROR, {"message": message})


def song_submitted_event(player_name: str) -> Event:
    return Event(EventType.SONG_SUBMITTED, {"playerName": player_name})
