"""
In-memory game rooms for SongWars.

Responsibilities:
- Room registry (create, lookup, delete)
- Room lifecycle state machine
- Submission window timers
- Bracket construction and vote tallying
"""
