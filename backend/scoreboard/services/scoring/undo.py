from typing import Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from scoreboard import db
from scoreboard.errors import AlreadyUndoneError, EntryNotFoundError
from scoreboard.models import ScoreEntry
from .ledger import LedgerWrite, append_entries


def undo_reason(entry: ScoreEntry) -> str:
    # Display text only; reversals are tracked by reversal_of_id
    return f"UNDO: {entry.id} - {entry.reason or 'points awarded'}"


def find_reversal(entry_id: int) -> Optional[ScoreEntry]:
    return ScoreEntry.query.filter_by(reversal_of_id=entry_id).first()


def undo_score(entry_id: int, created_by: Optional[str] = None) -> LedgerWrite:
    """Reverse a ledger entry by appending a compensating entry.

    The compensating entry has the same round, team and player, negated
    points and ``reversal_of_id`` set to the original. Nothing is deleted.
    A compensating entry can itself be undone, which re-applies its original.
    Raises ``EntryNotFoundError``, ``AlreadyUndoneError`` or ``DayLockedError``.
    """
    entry = db.session.get(ScoreEntry, entry_id)
    if entry is None:
        raise EntryNotFoundError(entry_id)
    if find_reversal(entry.id) is not None:
        current_app.logger.warning(f"[undo-rejected] entry={entry_id} already undone")
        raise AlreadyUndoneError(entry_id)

    row = {
        'points': -entry.points,
        'player_id': entry.player_id,
        'reason': undo_reason(entry),
        'reversal_of_id': entry.id,
    }
    try:
        result = append_entries(entry.round, entry.team_id, [row], -entry.points, created_by=created_by)
    except IntegrityError as exc:
        # unique reversal_of_id: a concurrent undo committed first
        current_app.logger.warning(f"[undo-rejected] entry={entry_id} concurrent undo")
        raise AlreadyUndoneError(entry_id) from exc

    current_app.logger.info(f"[undo] entry={entry_id} reversal={result.entries[0].id} total={result.new_total}")
    return result
