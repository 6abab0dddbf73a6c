"""Read models for the live leaderboards and the admin audit feed."""

from typing import List, Optional

from flask import current_app
from sqlalchemy import func

from scoreboard import db
from scoreboard.errors import GameNotFoundError
from scoreboard.models import Game, Player, Round, ScoreEntry, Team, TeamAggregate
from .ledger import get_team
from .snapshots import team_sort_key


def _ranked(rows):
    return [dict(row, rank=rank) for rank, row in enumerate(rows, 1)]


def live_leaderboard() -> List[dict]:
    """Every team with its current aggregate, ranked by total points.

    Reads the committed aggregate rows directly, so a read issued after a
    committed write sees that write.
    """
    rows = (
        db.session.query(Team, TeamAggregate.total_points)
        .outerjoin(TeamAggregate, TeamAggregate.team_id == Team.id)
        .all()
    )
    ordered = sorted(((team, total or 0) for team, total in rows), key=lambda r: team_sort_key(r[1], r[0]))
    return _ranked(dict(team.to_dict(), total_points=total) for team, total in ordered)


def game_standings(game_id: int) -> dict:
    """Team totals for one game, summed from the entries of its rounds."""
    game = db.session.get(Game, game_id)
    if game is None:
        raise GameNotFoundError(game_id)

    sums = dict(
        db.session.query(ScoreEntry.team_id, func.sum(ScoreEntry.points))
        .join(Round, ScoreEntry.round_id == Round.id)
        .filter(Round.game_id == game_id)
        .group_by(ScoreEntry.team_id)
        .all()
    )
    teams = Team.query.all()
    ordered = sorted(teams, key=lambda t: team_sort_key(int(sums.get(t.id) or 0), t))
    return {
        'game': game.to_dict(),
        'teams': _ranked(dict(t.to_dict(), total_points=int(sums.get(t.id) or 0)) for t in ordered),
    }


def team_player_totals(team_id: int) -> List[dict]:
    """All-time points per player of a team, highest first."""
    team = get_team(team_id)
    sums = dict(
        db.session.query(ScoreEntry.player_id, func.sum(ScoreEntry.points))
        .filter(ScoreEntry.team_id == team.id, ScoreEntry.player_id.isnot(None))
        .group_by(ScoreEntry.player_id)
        .all()
    )
    players = [dict(p.to_dict(), points=int(sums.get(p.id) or 0)) for p in team.players]
    return sorted(players, key=lambda p: (-p['points'], p['name']))


def recent_entries(limit: Optional[int] = None) -> List[dict]:
    """Most recent ledger entries, newest first, with team and player names."""
    if limit is None:
        limit = int(current_app.config.get('RECENT_ENTRIES_LIMIT', 10))
    rows = (
        db.session.query(ScoreEntry, Team.name, Team.color, Player.name)
        .join(Team, ScoreEntry.team_id == Team.id)
        .outerjoin(Player, ScoreEntry.player_id == Player.id)
        .order_by(ScoreEntry.created_at.desc(), ScoreEntry.id.desc())
        .limit(limit)
        .all()
    )
    feed = []
    for entry, team_name, team_color, player_name in rows:
        item = entry.to_dict()
        item['team'] = {'name': team_name, 'color': team_color}
        item['player'] = {'name': player_name} if player_name else None
        feed.append(item)
    return feed
