import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from .errors import CodeCollisionError
from .phase_timer import PhaseTimer
from .room import Room, RoomSettings, start_timer

logger = logging.getLogger(__name__)


class RoomRegistry:
    """
    Owns every live room, keyed by room code.
    
    - Create/lookup/delete rooms
    - Remove departing connections from their rooms
    - Close rooms once their last participant leaves
    
    Code generation is left to callers; the registry only enforces
    uniqueness.
    """
    
    def __init__(
        self,
        settings: RoomSettings = None,
        broadcaster=None,
        schedule: Callable[[float, Callable[[], None]], PhaseTimer] = start_timer
    ):
        self.settings = settings or RoomSettings()
        self.broadcaster = broadcaster
        self.schedule = schedule
        self.lock = threading.RLock()
        self._rooms: Dict[str, Room] = {}
    
    def __len__(self) -> int:
        return len(self._rooms)
    
    def __contains__(self, code: str) -> bool:
        return code in self._rooms
    
    def codes(self) -> List[str]:
        with self.lock:
            return list(self._rooms)
    
    def _new_room(self, code: str, time_limit: int = None) -> Room:
        return Room(
            code,
            settings=self.settings,
            broadcaster=self.broadcaster,
            schedule=self.schedule,
            time_limit=time_limit
        )
    
    def create_room(self, code: str, time_limit: int = None) -> Room:
        """Create a new room in waiting state."""
        with self.lock:
            if code in self._rooms:
                raise CodeCollisionError("Game code already exists")
            room = self._new_room(code, time_limit)
            self._rooms[code] = room
        
        logger.info(f"Created game {code}")
        return room
    
    def get(self, code: str) -> Optional[Room]:
        with self.lock:
            return self._rooms.get(code)
    
    def get_or_create(self, code: str) -> Tuple[Room, bool]:
        """Return the room for ``code`` and whether this call created it."""
        with self.lock:
            room = self._rooms.get(code)
            if room is not None:
                return room, False
            return self.create_room(code), True
    
    def _remove_when(self, code: str, predicate: Callable[[Room], bool]) -> bool:
        with self.lock:
            room = self._rooms.get(code)
            if room is None:
                return False
            with room.lock:
                if not predicate(room):
                    return False
                room.close()
            del self._rooms[code]
        return True
    
    def remove_if_empty(self, code: str) -> bool:
        """Delete a room that has no participants left."""
        removed = self._remove_when(code, lambda room: room.is_empty)
        if removed:
            logger.info(f"Removed empty game {code}")
        return removed
    
    def leave(self, code: str, connection_id: str) -> bool:
        """Remove a connection from one room; returns True if the room was deleted."""
        room = self.get(code)
        if room is None:
            return False
        if room.leave(connection_id):
            return self.remove_if_empty(code)
        return False
    
    def rooms_for(self, connection_id: str) -> List[str]:
        with self.lock:
            return [code for code, room in self._rooms.items() if connection_id in room.participants]
    
    def leave_all(self, connection_id: str) -> List[str]:
        """Remove a connection from every room it belongs to."""
        codes = self.rooms_for(connection_id)
        for code in codes:
            self.leave(code, connection_id)
        return codes
    
    def remove_stale(self, max_age_seconds: float, detached_prefix: str = None) -> List[str]:
        """
        Delete rooms older than ``max_age_seconds`` that nobody is connected to.
        
        A room qualifies when it is empty or, given ``detached_prefix``, when
        every participant id carries that prefix; such players joined without
        a live connection and never disconnect.
        """
        cutoff = datetime.utcnow() - timedelta(seconds=max_age_seconds)
        
        def abandoned(room: Room) -> bool:
            if room.created_at >= cutoff:
                return False
            if detached_prefix is None:
                return room.is_empty
            return all(cid.startswith(detached_prefix) for cid in list(room.participants))
        
        with self.lock:
            candidates = [code for code, room in self._rooms.items() if abandoned(room)]
        
        removed = [code for code in candidates if self._remove_when(code, abandoned)]
        if removed:
            logger.info(f"Removed {len(removed)} abandoned games: {', '.join(removed)}")
        return removed
