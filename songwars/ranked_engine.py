import logging
import random
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from rooms.errors import InsufficientDataError, NotFoundError, PersistenceError, ValidationError
from .elo_calculator import EloCalculator
from .models import db, RatingHistory, Song, User

logger = logging.getLogger(__name__)

RANK_TITLES = [
    (2000, 'Grandmaster'),
    (1800, 'Master'),
    (1600, 'Diamond'),
    (1400, 'Platinum'),
    (1200, 'Gold'),
    (1000, 'Silver'),
]


def rank_title(elo: int) -> str:
    for threshold, title in RANK_TITLES:
        if elo >= threshold:
            return title
    return 'Bronze'


class RankedMatchEngine:
    """
    Persistent 1v1 song comparisons.
    
    Stateless across requests: every call reads the rows it needs from the
    store and commits its own changes.
    """
    
    def __init__(self, calculator: EloCalculator = None, rng: random.Random = None):
        self.calculator = calculator or EloCalculator()
        self.rng = rng or random.Random()
    
    def get_random_comparison(self) -> Dict:
        """Pick two distinct songs of one randomly chosen genre."""
        genres = sorted(g for (g,) in db.session.query(Song.genre).distinct())
        if not genres:
            raise InsufficientDataError('No songs available for comparison')
        
        genre = self.rng.choice(genres)
        songs = Song.query.filter_by(genre=genre).order_by(Song.id).all()
        if len(songs) < 2:
            raise InsufficientDataError('Not enough songs in this genre for comparison')
        
        first, second = self.rng.sample(songs, 2)
        return {
            'genre': genre,
            'song1': self._comparison_entry(first),
            'song2': self._comparison_entry(second),
        }
    
    def _comparison_entry(self, song: Song) -> Dict:
        return {
            'id': song.id,
            'title': song.title,
            'url': song.url,
            'artist': song.artist.username if song.artist else None,
            'elo': song.elo,
        }
    
    def _apply_pair(self, entity_type: str, winner, loser):
        winner_old, loser_old = winner.elo, loser.elo
        new_winner, new_loser = self.calculator.calculate_rating_change(winner_old, loser_old)
        
        winner.record_result(new_winner, won=True)
        loser.record_result(new_loser, won=False)
        
        for entity, old, opponent, result in (
            (winner, winner_old, loser_old, 'win'),
            (loser, loser_old, winner_old, 'loss'),
        ):
            db.session.add(RatingHistory(
                entity_type=entity_type,
                entity_id=entity.id,
                old_rating=old,
                new_rating=entity.elo,
                rating_change=entity.elo - old,
                opponent_rating=opponent,
                result=result
            ))
    
    def _commit(self, what: str):
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to save {what} ratings: {e}")
            raise PersistenceError('Error processing vote')
    
    def apply_vote_result(self, winner_id: int, loser_id: int) -> Dict:
        """Update the two songs and then their artists after a ranked vote."""
        if winner_id == loser_id:
            raise ValidationError('A song cannot beat itself')
        
        winner = db.session.get(Song, winner_id)
        loser = db.session.get(Song, loser_id)
        if not winner or not loser:
            raise NotFoundError('Songs not found')
        
        self._apply_pair('song', winner, loser)
        self._commit('song')
        
        winner_artist = winner.artist
        loser_artist = loser.artist
        # An account never plays itself: two songs by one artist leave the artist's rating as is.
        if winner_artist and loser_artist and winner_artist.id != loser_artist.id:
            self._apply_pair('user', winner_artist, loser_artist)
            self._commit('artist')
        
        logger.info(f"Ranked vote: song {winner_id} beat song {loser_id}")
        return {
            'winner': winner.to_dict(),
            'loser': loser.to_dict(),
        }
    
    def _ranked(self, rows: List) -> List[Dict]:
        ranked = []
        for i, row in enumerate(rows):
            entry = row.to_dict()
            entry['rank'] = i + 1
            entry['tier'] = rank_title(row.elo)
            ranked.append(entry)
        return ranked
    
    def get_top_users(self, n: int = 100) -> List[Dict]:
        users = User.query.order_by(User.elo.desc(), User.id).limit(n).all()
        return self._ranked(users)
    
    def get_top_songs(self, n: int = 10, genre: Optional[str] = None) -> List[Dict]:
        query = Song.query
        if genre:
            query = query.filter_by(genre=genre)
        songs = query.order_by(Song.elo.desc(), Song.id).limit(n).all()
        return self._ranked(songs)
    
    def get_rating_history(self, entity_type: str, entity_id: int, limit: int = 20) -> List[Dict]:
        rows = RatingHistory.query.filter_by(
            entity_type=entity_type,
            entity_id=entity_id
        ).order_by(RatingHistory.id.desc()).limit(limit).all()
        return [r.to_dict() for r in rows]
