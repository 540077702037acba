"""Error kinds raised by the game services.

Every error is raised synchronously to the caller of a mutating operation and
carries the HTTP status the API layer renders it with.
"""


class GameError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self):
        return {'error': self.message, 'kind': self.kind}


class NotFound(GameError):
    """Room, player or round state is absent."""
    status_code = 404


class InvalidState(GameError):
    """Operation attempted outside its valid machine state."""
    status_code = 409


class Forbidden(GameError):
    """Non-host attempting a host-only action."""
    status_code = 403


class RoomFull(GameError):
    status_code = 409


class InvalidArgument(GameError):
    status_code = 400
