"""
SongWars Service - real-time song battle rooms

Responsibilities:
- Socket.IO gateway for game rooms
- Game room HTTP API
- Ranked head-to-head song voting (ELO)
- Leaderboards
"""
