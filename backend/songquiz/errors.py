class SongQuizError(Exception):
    """Base class for errors surfaced to clients as ``error{code}`` events."""

    code = 'SONGQUIZ_ERROR'

    def to_dict(self):
        return {'code': self.code}


class RoomUnavailable(SongQuizError):
    # Deliberately does not say whether the room is missing or already started
    code = 'ROOM_NOT_FOUND_OR_STARTED'


class ProviderFailure(SongQuizError):
    code = 'TRACK_FETCH_FAILED'


class InvalidInput(SongQuizError):
    code = 'INVALID_INPUT'
