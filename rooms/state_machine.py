from enum import Enum
from typing import List, Optional
from dataclasses import dataclass

from .errors import StateError


class RoomPhase(str, Enum):
    WAITING = "waiting"
    SUBMITTING = "submitting"
    TOURNAMENT = "tournament"
    FINISHED = "finished"


class TransitionError(StateError):
    def __init__(self, from_state: str, to_state: str, reason: str = None):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(reason or f"Cannot transition from {from_state} to {to_state}")


@dataclass
class Transition:
    from_state: RoomPhase
    to_state: RoomPhase
    action: str


class RoomStateMachine:
    TRANSITIONS = [
        Transition(RoomPhase.WAITING, RoomPhase.SUBMITTING, "start"),
        Transition(RoomPhase.SUBMITTING, RoomPhase.TOURNAMENT, "open_tournament"),
        Transition(RoomPhase.SUBMITTING, RoomPhase.FINISHED, "abort"),
        Transition(RoomPhase.TOURNAMENT, RoomPhase.TOURNAMENT, "advance"),
        Transition(RoomPhase.TOURNAMENT, RoomPhase.FINISHED, "finish"),
    ]
    
    ALLOWED_ACTIONS = {
        RoomPhase.WAITING: ["join", "leave", "start"],
        RoomPhase.SUBMITTING: ["join", "leave", "submit_track", "open_tournament", "abort"],
        RoomPhase.TOURNAMENT: ["join", "leave", "vote", "advance", "finish"],
        RoomPhase.FINISHED: ["leave"],
    }
    
    def __init__(self, initial_state: RoomPhase = RoomPhase.WAITING):
        self._state = initial_state
    
    @property
    def state(self) -> RoomPhase:
        return self._state
    
    @property
    def allowed_actions(self) -> List[str]:
        return self.ALLOWED_ACTIONS.get(self._state, [])
    
    def _find(self, action: str) -> Optional[Transition]:
        return next(
            (t for t in self.TRANSITIONS if t.from_state == self._state and t.action == action),
            None
        )
    
    def can_perform(self, action: str) -> bool:
        return action in self.allowed_actions
    
    def transition(self, action: str) -> RoomPhase:
        t = self._find(action)
        if t is None:
            raise TransitionError(
                self._state.value,
                "unknown",
                f"No valid transition for action '{action}' from state '{self._state.value}'"
            )
        self._state = t.to_state
        return self._state
