"""Day lock and reveal snapshots.

Revealing a day recomputes every team's standing from the full ledger up to
and including that day, rather than reading the live aggregates, so the
snapshot is an independent audit of the ledger. The snapshot row's existence
is the lock: once committed, no ledger write may target that day.
"""

import json
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from scoreboard import db
from scoreboard.errors import AlreadyLockedError, SnapshotNotFoundError
from scoreboard.models import DailySnapshot, Player, Round, ScoreEntry, Team, utcnow
from .ledger import lock_day
from .validation import parse_day


def team_sort_key(total: int, team: Team):
    """Highest total first, then team name, then creation order (id)."""
    return (-total, team.name, team.id)


def _top_players(player_points: Dict[int, int], limit: int) -> List[dict]:
    players = {p.id: p for p in Player.query.filter(Player.id.in_(list(player_points))).all()} if player_points else {}
    ranked = sorted(
        ({'name': players[pid].name if pid in players else f'Player {pid}', 'points': pts}
         for pid, pts in player_points.items()),
        key=lambda p: (-p['points'], p['name']),
    )
    return ranked[:limit]


def build_day_ranking(day: date, top_players_limit: Optional[int] = None) -> List[dict]:
    """Rank every team by cumulative points after ``day``.

    ``day_points`` counts only entries whose round falls on ``day``;
    ``total_points_after_day`` counts every entry with ``round.day <= day``.
    Top players are ranked by same-day points.
    """
    if top_players_limit is None:
        top_players_limit = int(current_app.config.get('TOP_PLAYERS_LIMIT', 3))

    teams = Team.query.order_by(Team.name, Team.id).all()
    rows = (
        db.session.query(ScoreEntry.team_id, ScoreEntry.player_id, ScoreEntry.points, Round.day)
        .join(Round, ScoreEntry.round_id == Round.id)
        .filter(Round.day <= day)
        .all()
    )

    cumulative = defaultdict(int)
    day_totals = defaultdict(int)
    player_day_points = defaultdict(lambda: defaultdict(int))
    for team_id, player_id, points, entry_day in rows:
        cumulative[team_id] += points
        if entry_day == day:
            day_totals[team_id] += points
            if player_id is not None:
                player_day_points[team_id][player_id] += points

    ordered = sorted(teams, key=lambda t: team_sort_key(cumulative[t.id], t))
    return [
        {
            'team_id': team.id,
            'name': team.name,
            'color': team.color,
            'avatar_url': team.avatar_url,
            'day_points': day_totals[team.id],
            'total_points_after_day': cumulative[team.id],
            'top_players': _top_players(player_day_points[team.id], top_players_limit),
        }
        for team in ordered
    ]


def reveal_day(day, locked_by: Optional[str] = None) -> DailySnapshot:
    """Freeze ``day``: compute its ranking and persist it as the day's snapshot.

    Raises ``AlreadyLockedError`` if the day already has a snapshot, including
    when a concurrent reveal commits first (unique constraint on ``day``).
    """
    day = parse_day(day)
    # Held until commit so no write for this day lands mid-reveal
    lock_day(day, exclusive=True)
    if DailySnapshot.query.filter_by(day=day).first() is not None:
        db.session.rollback()
        current_app.logger.warning(f"[reveal-rejected] day={day} already locked")
        raise AlreadyLockedError(day.isoformat())

    created_at = utcnow()
    payload = {
        'day': day.isoformat(),
        'ordered_teams': build_day_ranking(day),
        'created_at': created_at.isoformat(),
    }
    snapshot = DailySnapshot(day=day, snapshot=json.dumps(payload), locked_by=locked_by, created_at=created_at)
    try:
        db.session.add(snapshot)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        current_app.logger.warning(f"[reveal-rejected] day={day} lost race to concurrent reveal")
        raise AlreadyLockedError(day.isoformat()) from exc
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        f"[reveal] day={day} teams={len(payload['ordered_teams'])} locked_by={locked_by}"
    )
    return snapshot


def get_snapshot(day) -> DailySnapshot:
    day = parse_day(day)
    snapshot = DailySnapshot.query.filter_by(day=day).first()
    if snapshot is None:
        raise SnapshotNotFoundError(day.isoformat())
    return snapshot


def list_snapshots() -> List[DailySnapshot]:
    return DailySnapshot.query.order_by(DailySnapshot.day).all()
