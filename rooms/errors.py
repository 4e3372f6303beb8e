class RoomError(Exception):
    """Base class for every error reported back to a player."""
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(RoomError):
    pass


class NotFoundError(RoomError):
    status_code = 404


class CapacityError(RoomError):
    pass


class StateError(RoomError):
    pass


class InsufficientDataError(RoomError):
    pass


class CodeCollisionError(RoomError):
    status_code = 409


class PersistenceError(RoomError):
    status_code = 500
