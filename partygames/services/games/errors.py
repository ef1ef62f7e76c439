"""Error taxonomy for the public play flow.

Every error carries the HTTP status, a stable machine-readable code and an
optional payload so the client can render something better than a bare
message (prior score on already-played, current status on not-playable).
"""


class GameAccessError(Exception):
    status_code = 400
    code = 'GAME_ERROR'
    message = 'Request rejected'

    def __init__(self, message=None, data=None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.data = data

    def to_dict(self):
        payload = {'error': self.message, 'code': self.code}
        if self.data is not None:
            payload['data'] = self.data
        return payload


class CredentialMissing(GameAccessError):
    status_code = 401
    code = 'CREDENTIAL_MISSING'
    message = 'Access token or QR code is required'


class CredentialInvalid(GameAccessError):
    status_code = 403
    code = 'CREDENTIAL_INVALID'
    message = 'Invalid access token or QR code'


class EventMismatch(GameAccessError):
    status_code = 403
    code = 'EVENT_MISMATCH'
    message = 'This game is not part of your event'


class GameNotFound(GameAccessError):
    status_code = 404
    code = 'GAME_NOT_FOUND'
    message = 'Game not found or inactive'


class GameNotPlayable(GameAccessError):
    status_code = 403
    code = 'GAME_NOT_ACTIVE'

    def __init__(self, status):
        super().__init__(f'Game is {status}. Cannot play at this time.', data={'status': status})
        self.status = status


class AlreadyPlayed(GameAccessError):
    status_code = 403
    code = 'ALREADY_PLAYED'
    message = 'You have already completed this game'

    def __init__(self, participation=None, message=None):
        data = None
        if participation is not None:
            data = {'score': participation.total_score, 'rank': participation.rank}
        super().__init__(message, data=data)
        self.participation = participation


class AlreadyPlayedByOrigin(AlreadyPlayed):
    code = 'ALREADY_PLAYED_IP'
    message = 'This game has already been played from this device'

    def __init__(self, message=None):
        # the earlier play from this origin may belong to someone else
        super().__init__(None, message)


class MalformedSubmission(GameAccessError):
    status_code = 400
    code = 'MALFORMED_SUBMISSION'
    message = 'No answers provided'


class NotPlayedYet(GameAccessError):
    status_code = 404
    code = 'NOT_PLAYED'
    message = 'You have not played this game yet'


class InvalidTransition(GameAccessError):
    status_code = 400
    code = 'INVALID_TRANSITION'


class AccessDenied(GameAccessError):
    status_code = 403
    code = 'ACCESS_DENIED'
    message = 'Access denied'


class InvalidPayload(GameAccessError):
    status_code = 400
    code = 'VALIDATION_ERROR'
    message = 'Invalid request body'


class EventNotFound(GameAccessError):
    status_code = 404
    code = 'EVENT_NOT_FOUND'
    message = 'Event not found'


class QuestionNotFound(GameAccessError):
    status_code = 404
    code = 'QUESTION_NOT_FOUND'
    message = 'Question not found'
