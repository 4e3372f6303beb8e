#!/usr/bin/env python3
"""
Database management script.

    python manage_db.py init     # Create tables
    python manage_db.py seed     # Create tables and add demo artists and songs
"""
import os
import sys

# Add current directory to path so we can import songwars
sys.path.append(os.getcwd())

from songwars.app import create_app
from songwars.models import db, Song, User

DEMO_SONGS = [
    ('demo_artist_1', 'Neon Tides', 'Electronic'),
    ('demo_artist_1', 'Glass Horizon', 'Electronic'),
    ('demo_artist_2', 'Copper Road', 'Rock'),
    ('demo_artist_2', 'Low Ceiling', 'Rock'),
    ('demo_artist_3', 'Night Market', 'Electronic'),
    ('demo_artist_3', 'Paper Crowns', 'Rock'),
]


def seed():
    users = {}
    for username, title, genre in DEMO_SONGS:
        user = users.get(username) or User.query.filter_by(username=username).first()
        if user is None:
            user = User(username=username, email=f'{username}@example.com')
            user.set_password(os.getenv('DEMO_PASSWORD', 'change-me'))
            db.session.add(user)
        users[username] = user
        
        if not Song.query.filter_by(title=title).first():
            db.session.add(Song(
                title=title,
                genre=genre,
                url=f'/uploads/songs/{title.lower().replace(" ", "-")}.mp3',
                artist=user
            ))
    db.session.commit()
    print(f"✓ Seeded {len(users)} artists and {len(DEMO_SONGS)} songs.")


def main():
    mode = sys.argv[1] if len(sys.argv) > 1 else 'init'
    app = create_app()
    with app.app_context():
        db.create_all()
        print("✓ Database tables created.")
        if mode == 'seed':
            seed()
        elif mode != 'init':
            print(f"Unknown mode: {mode}")
            sys.exit(1)


if __name__ == '__main__':
    main()
