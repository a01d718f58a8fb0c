class RoundError(Exception):
    """Base class for failures surfaced to the caller of a round operation."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'error': self.message}


class NotFound(RoundError):
    status_code = 404


class InvalidState(RoundError):
    """The round is not in the status the operation requires."""


class InvalidInput(RoundError):
    """The submission is malformed or inconsistent with the round."""


class Conflict(RoundError):
    """Another request changed the round first; reload and retry."""

    status_code = 409
