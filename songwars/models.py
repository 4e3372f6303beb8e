from datetime import datetime
from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from werkzeug.security import generate_password_hash

db = SQLAlchemy()

GENRES = [
    'Pop', 'Rock', 'Hip Hop', 'R&B', 'Electronic', 'Classical', 'Jazz', 'Country',
    'Metal', 'Folk', 'Blues', 'Reggae', 'Latin', 'World', 'Other'
]


class RatedMixin:
    """Ranked profile columns shared by accounts and songs."""
    
    elo = db.Column(db.Integer, nullable=False, default=1000)
    wins = db.Column(db.Integer, nullable=False, default=0)
    losses = db.Column(db.Integer, nullable=False, default=0)
    total_matches = db.Column(db.Integer, nullable=False, default=0)
    last_updated = db.Column(db.DateTime, default=datetime.utcnow)
    
    def record_result(self, new_rating: int, won: bool):
        self.elo = max(0, new_rating)
        if won:
            self.wins += 1
        else:
            self.losses += 1
        self.total_matches += 1
        self.last_updated = datetime.utcnow()
    
    def rating_dict(self):
        return {
            'elo': self.elo,
            'wins': self.wins,
            'losses': self.losses,
            'total_matches': self.total_matches,
            'last_updated': self.last_updated.isoformat() if self.last_updated else None,
        }


class User(UserMixin, RatedMixin, db.Model):
    __tablename__ = 'users'
    
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(100), unique=True, nullable=False, index=True)
    email = db.Column(db.String(200), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=True)
    profile_picture = db.Column(db.String(200), default='/images/default-profile.png')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    
    songs = db.relationship('Song', back_populates='artist', cascade='all, delete-orphan')
    
    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)
    
    def to_dict(self):
        data = {
            'id': self.id,
            'username': self.username,
            'profile_picture': self.profile_picture,
        }
        data.update(self.rating_dict())
        return data


class Song(RatedMixin, db.Model):
    __tablename__ = 'songs'
    
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    genre = db.Column(db.String(50), nullable=False, index=True)
    url = db.Column(db.String(500), nullable=False)
    artist_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    upload_date = db.Column(db.DateTime, default=datetime.utcnow)
    
    artist = db.relationship('User', back_populates='songs')
    
    def to_dict(self):
        data = {
            'id': self.id,
            'title': self.title,
            'genre': self.genre,
            'url': self.url,
            'artist': self.artist.username if self.artist else None,
        }
        data.update(self.rating_dict())
        return data


class RatingHistory(db.Model):
    __tablename__ = 'rating_history'
    
    id = db.Column(db.Integer, primary_key=True)
    entity_type = db.Column(db.String(10), nullable=False)  # 'user' or 'song'
    entity_id = db.Column(db.Integer, nullable=False, index=True)
    old_rating = db.Column(db.Integer, nullable=False)
    new_rating = db.Column(db.Integer, nullable=False)
    rating_change = db.Column(db.Integer, nullable=False)
    opponent_rating = db.Column(db.Integer, nullable=True)
    result = db.Column(db.String(10), nullable=False)  # 'win' or 'loss'
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    
    def to_dict(self):
        return {
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'old_rating': self.old_rating,
            'new_rating': self.new_rating,
            'rating_change': self.rating_change,
            'opponent_rating': self.opponent_rating,
            'result': self.result,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
