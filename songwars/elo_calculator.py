import math
from typing import Tuple

class EloCalculator:
    """
    ELO rating system for head-to-head song votes.
    Standard K-factor of 32; ratings never drop below ``floor``.
    """
    
    def __init__(self, k_factor: int = 32, floor: int = 0):
        self.k_factor = k_factor
        self.floor = floor
    
    def expected_score(self, rating: int, opponent_rating: int) -> float:
        return 1 / (1 + math.pow(10, (opponent_rating - rating) / 400))
    
    def rating_delta(self, rating: int, opponent_rating: int, won: bool) -> int:
        """Rating change for one side: round(K * (actual - expected))."""
        actual = 1.0 if won else 0.0
        return round(self.k_factor * (actual - self.expected_score(rating, opponent_rating)))
    
    def new_rating(self, rating: int, opponent_rating: int, won: bool) -> int:
        return max(self.floor, rating + self.rating_delta(rating, opponent_rating, won))
    
    def calculate_rating_change(
        self, 
        winner_rating: int, 
        loser_rating: int
    ) -> Tuple[int, int]:
        """
        Calculate new ratings after a vote.
        
        Both sides are computed from the ratings held before the vote.
        
        Returns:
            (new_winner_rating, new_loser_rating)
        """
        return (
            self.new_rating(winner_rating, loser_rating, True),
            self.new_rating(loser_rating, winner_rating, False)
        )
