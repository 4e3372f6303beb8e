import random
import string
import uuid

from rooms.errors import CodeCollisionError

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6
HTTP_PLAYER_PREFIX = "http-"


def generate_game_code(length: int = CODE_LENGTH) -> str:
    """Generate a room code like 'K7Q2ZD'"""
    return ''.join(random.choices(CODE_ALPHABET, k=length))


def generate_player_id(prefix: str = HTTP_PLAYER_PREFIX) -> str:
    """Generate an id for players joining over HTTP rather than a socket"""
    return f"{prefix}{uuid.uuid4().hex[:12]}"


def create_room_with_code(registry, time_limit: int = None, attempts: int = 10, generator=generate_game_code):
    """Create a room under a fresh code, retrying on collisions."""
    for _ in range(attempts):
        code = generator()
        if code in registry:
            continue
        try:
            return registry.create_room(code, time_limit=time_limit)
        except CodeCollisionError:
            continue
    raise CodeCollisionError("Game code already exists")
