"""Append-only score ledger and team aggregate maintenance.

Every accepted write inserts one or more immutable ``ScoreEntry`` rows and
bumps the team's ``TeamAggregate`` in the same transaction. The bump is a
single ``UPDATE ... SET total_points = total_points + :delta`` so concurrent
judges awarding the same team never lose an update. There is no
read-modify-write fallback: if the increment cannot be applied the whole
write is rolled back and ``AggregateInconsistencyError`` is raised.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from flask import current_app
from sqlalchemy import select, text, update
from sqlalchemy.exc import SQLAlchemyError

from scoreboard import db
from scoreboard.errors import (
    AggregateInconsistencyError,
    DayLockedError,
    PlayerNotFoundError,
    RoundNotFoundError,
    TeamNotFoundError,
    ValidationError,
)
from scoreboard.models import DailySnapshot, Player, Round, ScoreEntry, Team, TeamAggregate, utcnow
from .validation import parse_day, validate_distribution


@dataclass
class LedgerWrite:
    """Result of one committed ledger write."""
    team_id: int
    new_total: int
    entries: List[ScoreEntry] = field(default_factory=list)

    def to_dict(self):
        return {
            'team_id': self.team_id,
            'new_total': self.new_total,
            'entries': [e.to_dict() for e in self.entries],
        }


def day_lock_statement(day, exclusive: bool, dialect: str):
    """Advisory lock taken before a day's lock check, or None where not needed.

    Writers hold it shared and a reveal holds it exclusive, so a write cannot
    land on a day between the reveal's ledger read and its commit. The lock
    is transaction-scoped and released on commit or rollback.
    """
    if dialect != 'postgresql':
        return None
    fn = 'pg_advisory_xact_lock' if exclusive else 'pg_advisory_xact_lock_shared'
    return text(f"SELECT {fn}(:key)").bindparams(key=parse_day(day).toordinal())


def lock_day(day, exclusive: bool = False) -> None:
    stmt = day_lock_statement(day, exclusive, db.session.get_bind().dialect.name)
    if stmt is not None:
        db.session.execute(stmt)


def is_day_locked(day) -> bool:
    day = parse_day(day)
    return DailySnapshot.query.filter_by(day=day).first() is not None


def ensure_day_unlocked(day) -> None:
    if is_day_locked(day):
        raise DayLockedError(day.isoformat())


def get_round(round_id: int) -> Round:
    round_ = db.session.get(Round, round_id)
    if round_ is None:
        raise RoundNotFoundError(round_id)
    return round_


def get_team(team_id: int) -> Team:
    team = db.session.get(Team, team_id)
    if team is None:
        raise TeamNotFoundError(team_id)
    return team


def get_team_player(player_id: int, team_id: int) -> Player:
    """Load a player and require membership of ``team_id``."""
    player = db.session.get(Player, player_id)
    if player is None:
        raise PlayerNotFoundError(player_id)
    if player.team_id != team_id:
        raise ValidationError(f"Player {player_id} does not belong to team {team_id}")
    return player


def increment_team_total(team_id: int, delta: int) -> int:
    """Atomically add ``delta`` to a team aggregate and return the new total.

    Runs inside the caller's transaction; does not commit.
    """
    stmt = (
        update(TeamAggregate)
        .where(TeamAggregate.team_id == team_id)
        .values(total_points=TeamAggregate.total_points + delta, last_updated=utcnow())
        .execution_options(synchronize_session=False)
    )
    try:
        result = db.session.execute(stmt)
    except SQLAlchemyError as exc:
        current_app.logger.exception(f"[aggregate-fatal] team={team_id} delta={delta} increment failed")
        raise AggregateInconsistencyError(team_id, delta, str(exc)) from exc

    if result.rowcount != 1:
        current_app.logger.error(
            f"[aggregate-fatal] team={team_id} delta={delta} updated_rows={result.rowcount} needs reconciliation"
        )
        raise AggregateInconsistencyError(team_id, delta, 'aggregate row missing')

    return db.session.execute(
        select(TeamAggregate.total_points).where(TeamAggregate.team_id == team_id)
    ).scalar_one()


def append_entries(round_: Round, team_id: int, rows: List[Dict], delta: int,
                   created_by: Optional[str] = None) -> LedgerWrite:
    """Insert ``rows`` as ledger entries and increment the team by ``delta``.

    All rows and the increment commit together or not at all. Each row is a
    dict of ``points`` plus optional ``player_id``, ``reason`` and
    ``reversal_of_id``.
    """
    try:
        lock_day(round_.day)
        ensure_day_unlocked(round_.day)
        entries = [
            ScoreEntry(round_id=round_.id, team_id=team_id, created_by=created_by, **row)
            for row in rows
        ]
        db.session.add_all(entries)
        db.session.flush()
        new_total = increment_team_total(team_id, delta)
        db.session.commit()
    except DayLockedError:
        db.session.rollback()
        current_app.logger.warning(f"[score-rejected] team={team_id} round={round_.id} day={round_.day} locked")
        raise
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        f"[score-add] entries={[e.id for e in entries]} team={team_id} round={round_.id} "
        f"delta={delta} total={new_total} by={created_by}"
    )
    return LedgerWrite(team_id=team_id, new_total=new_total, entries=entries)


def add_score(round_id: int, team_id: int, points: int, player_id: Optional[int] = None,
              reason: Optional[str] = None, created_by: Optional[str] = None) -> LedgerWrite:
    """Record one entry (team-level when ``player_id`` is None) and bump the aggregate.

    Fails with ``DayLockedError`` if the round's day has a snapshot.
    """
    round_ = get_round(round_id)
    get_team(team_id)
    if player_id is not None:
        get_team_player(player_id, team_id)
    row = {'points': int(points), 'player_id': player_id, 'reason': reason}
    return append_entries(round_, team_id, [row], int(points), created_by=created_by)


def add_team_score(round_id: int, team_id: int, total_points: int, distribution: Dict[int, int],
                   reason: Optional[str] = None, created_by: Optional[str] = None) -> LedgerWrite:
    """Split a team award into one entry per player and bump the aggregate once.

    The split must sum to ``total_points`` and name only players of the team;
    otherwise nothing is written.
    """
    round_ = get_round(round_id)
    get_team(team_id)
    split = validate_distribution(int(total_points), distribution)
    for player_id in split:
        get_team_player(player_id, team_id)

    reason = reason or f"Team distribution: {total_points} points"
    rows = [
        {'points': points, 'player_id': player_id, 'reason': reason}
        for player_id, points in split.items()
    ]
    return append_entries(round_, team_id, rows, int(total_points), created_by=created_by)
