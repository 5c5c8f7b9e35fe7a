"""Failures raised by the game core.

Every error is recoverable by the caller; socket handlers turn them into an
``error`` event for the originating connection.
"""


class GameError(Exception):
    kind = 'game_error'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'message': self.message, 'kind': self.kind}


class NotFound(GameError):
    kind = 'not_found'


class InvalidState(GameError):
    kind = 'invalid_state'


class ValidationError(GameError):
    kind = 'validation'


class Conflict(GameError):
    kind = 'conflict'


class QuestionSupplyError(GameError):
    kind = 'question_supply'
