"""
Domain exceptions for the score ledger.

Each error carries a stable machine code and the HTTP status the API layer
should answer with, so a locked day is never reported as a generic failure.
"""


class ScoreboardError(Exception):
    """Base exception for ledger, snapshot and undo failures."""
    code = 'scoreboard_error'
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'error': self.message, 'code': self.code}


class ValidationError(ScoreboardError):
    """Raised when a request fails the award policy checks."""
    code = 'invalid_request'
    status_code = 400


class NotFoundError(ScoreboardError):
    code = 'not_found'
    status_code = 404

    def __init__(self, kind: str, identifier):
        super().__init__(f"{kind} {identifier} not found")
        self.identifier = identifier


class RoundNotFoundError(NotFoundError):
    def __init__(self, round_id):
        super().__init__('Round', round_id)


class TeamNotFoundError(NotFoundError):
    def __init__(self, team_id):
        super().__init__('Team', team_id)


class PlayerNotFoundError(NotFoundError):
    def __init__(self, player_id):
        super().__init__('Player', player_id)


class GameNotFoundError(NotFoundError):
    def __init__(self, game_id):
        super().__init__('Game', game_id)


class EntryNotFoundError(NotFoundError):
    def __init__(self, entry_id):
        super().__init__('Score entry', entry_id)


class SnapshotNotFoundError(NotFoundError):
    def __init__(self, day):
        super().__init__('Snapshot for day', day)


class DayLockedError(ScoreboardError):
    """Raised when a write targets a day that already has a snapshot."""
    code = 'day_locked'
    status_code = 409

    def __init__(self, day):
        super().__init__(f"Day {day} is locked; points can no longer be changed")
        self.day = day


class AlreadyLockedError(ScoreboardError):
    """Raised when a day is revealed a second time."""
    code = 'already_locked'
    status_code = 409

    def __init__(self, day):
        super().__init__(f"Day {day} has already been locked and revealed")
        self.day = day


class AlreadyUndoneError(ScoreboardError):
    code = 'already_undone'
    status_code = 409

    def __init__(self, entry_id):
        super().__init__(f"Score entry {entry_id} has already been undone")
        self.entry_id = entry_id


class AggregateInconsistencyError(ScoreboardError):
    """The team total could not be updated to match the ledger.

    Needs manual reconciliation (see the ``reconcile-aggregates`` command).
    """
    code = 'aggregate_inconsistency'
    status_code = 500

    def __init__(self, team_id, delta: int, details: str = None):
        message = f"Aggregate for team {team_id} could not be updated by {delta}"
        if details:
            message = f"{message}: {details}"
        super().__init__(message)
        self.team_id = team_id
        self.delta = delta
