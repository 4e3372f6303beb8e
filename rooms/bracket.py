from dataclasses import dataclass, field
from typing import List, Optional

from .errors import InsufficientDataError, NotFoundError, StateError, ValidationError


@dataclass
class Submission:
    submission_id: str
    track_name: str
    audio_ref: str
    duration_seconds: float = 0
    category: str = "Unknown"
    
    def to_dict(self) -> dict:
        return {
            "id": self.submission_id,
            "name": self.track_name,
            "url": self.audio_ref,
            "length": self.duration_seconds,
            "category": self.category
        }


@dataclass
class Matchup:
    matchup_id: str
    round_num: int
    entrants: List[Submission]
    status: str = "pending"
    winner_id: Optional[str] = None
    decided_by: Optional[str] = None
    
    @property
    def is_resolved(self) -> bool:
        return self.status != "pending"
    
    def entrant(self, submission_id: str) -> Optional[Submission]:
        for s in self.entrants:
            if s.submission_id == submission_id:
                return s
        return None
    
    @property
    def winner(self) -> Optional[Submission]:
        return self.entrant(self.winner_id) if self.winner_id else None
    
    def to_dict(self) -> dict:
        return {
            "id": self.matchup_id,
            "round": self.round_num,
            "entrants": [s.to_dict() for s in self.entrants],
            "status": self.status,
            "winner": self.winner_id
        }


@dataclass
class VoteOutcome:
    """Result of a vote that resolved a matchup."""
    matchup: Matchup
    next_round: List[Matchup] = field(default_factory=list)
    champion: Optional[Submission] = None


def _pair(entrants: List[Submission], round_num: int, keep_odd: bool) -> List[Matchup]:
    matchups = []
    for i in range(0, len(entrants), 2):
        matchup_id = f"r{round_num}_m{len(matchups) + 1}"
        if i + 1 < len(entrants):
            matchups.append(Matchup(matchup_id, round_num, [entrants[i], entrants[i + 1]]))
        elif keep_odd:
            matchups.append(Matchup(
                matchup_id, round_num, [entrants[i]],
                status="bye", winner_id=entrants[i].submission_id
            ))
    return matchups


def build_bracket(submissions: List[Submission], round_num: int = 1) -> List[Matchup]:
    """
    Pair submissions in the order they were submitted.
    
    Consecutive entries form matchups; an odd trailing entry sits out the
    opening round.
    """
    if len(submissions) < 2:
        raise InsufficientDataError("Not enough songs to start tournament")
    return _pair(list(submissions), round_num, keep_odd=False)


class Bracket:
    """
    Single elimination bracket over a room's submissions.
    
    A matchup is decided by the first vote it receives. Once every matchup of
    a round is decided the winners are paired for the next round, an odd
    winner advancing on a bye, until one champion remains.
    """
    
    def __init__(self, submissions: List[Submission]):
        self.rounds: List[List[Matchup]] = [build_bracket(submissions)]
        self.champion: Optional[Submission] = None
    
    @property
    def current_round(self) -> int:
        return len(self.rounds)
    
    @property
    def matchups(self) -> List[Matchup]:
        return self.rounds[-1]
    
    @property
    def is_complete(self) -> bool:
        return self.champion is not None
    
    def get_matchup(self, matchup_id: str) -> Optional[Matchup]:
        for m in self.matchups:
            if m.matchup_id == matchup_id:
                return m
        return None
    
    def _find_matchup(self, winner_id: str, matchup_id: Optional[str]) -> Matchup:
        if matchup_id is not None:
            matchup = self.get_matchup(matchup_id)
            if not matchup:
                raise NotFoundError(f"Matchup {matchup_id} not found")
            if not matchup.entrant(winner_id):
                raise ValidationError(f"Song {winner_id} is not in matchup {matchup_id}")
            return matchup
        
        candidates = [m for m in self.matchups if m.entrant(winner_id)]
        if not candidates:
            raise ValidationError(f"Song {winner_id} is not in the current round")
        return candidates[0]
    
    def record_vote(
        self,
        winner_id: str,
        voter_id: str,
        matchup_id: Optional[str] = None
    ) -> Optional[VoteOutcome]:
        """Record a vote; returns None when the matchup was already decided."""
        if self.is_complete:
            raise StateError("Tournament is already decided")
        
        matchup = self._find_matchup(winner_id, matchup_id)
        if matchup.is_resolved:
            return None
        
        matchup.winner_id = winner_id
        matchup.decided_by = voter_id
        matchup.status = "completed"
        
        outcome = VoteOutcome(matchup=matchup)
        if all(m.is_resolved for m in self.matchups):
            winners = [m.winner for m in self.matchups]
            if len(winners) == 1:
                self.champion = winners[0]
                outcome.champion = self.champion
            else:
                next_round = _pair(winners, self.current_round + 1, keep_odd=True)
                self.rounds.append(next_round)
                outcome.next_round = next_round
        return outcome
