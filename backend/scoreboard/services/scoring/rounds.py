from flask import current_app
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from scoreboard import db
from scoreboard.errors import GameNotFoundError
from scoreboard.models import Game, Round
from .validation import parse_day


DEFAULT_ROUND_NUMBER = 1

_UPSERT_INSERTS = {
    'postgresql': pg_insert,
    'sqlite': sqlite_insert,
}


def _find_round(game_id: int, day, round_number: int):
    return Round.query.filter_by(game_id=game_id, day=day, round_number=round_number).first()


def resolve_round(game_id: int, day=None, round_number: int = DEFAULT_ROUND_NUMBER) -> Round:
    """Return the round for ``(game_id, day)``, creating it on first use.

    Creation is a single ``INSERT ... ON CONFLICT DO NOTHING`` against the
    ``(game_id, day, round_number)`` unique constraint followed by a select,
    so concurrent first callers all end up with the same row. The insert is
    not committed here; it commits with the caller's ledger write.
    """
    day = parse_day(day)
    existing = _find_round(game_id, day, round_number)
    if existing:
        return existing

    if db.session.get(Game, game_id) is None:
        raise GameNotFoundError(game_id)

    dialect = db.session.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"Round upsert is not supported on the {dialect} dialect")

    stmt = insert(Round).values(game_id=game_id, day=day, round_number=round_number)
    stmt = stmt.on_conflict_do_nothing(index_elements=['game_id', 'day', 'round_number'])
    result = db.session.execute(stmt)

    round_ = _find_round(game_id, day, round_number)
    if result.rowcount:
        current_app.logger.info(f"[round-create] round={round_.id} game={game_id} day={day} round_number={round_number}")
    else:
        current_app.logger.info(f"[round-race] game={game_id} day={day} round_number={round_number} reusing round={round_.id}")
    return round_
