"""Judge-facing award operations.

These resolve the round for a ``(game, day)`` pair, apply the award policy
and hand the validated write to the ledger.
"""

from typing import Dict, Optional

from scoreboard.errors import ValidationError
from .ledger import LedgerWrite, add_team_score, append_entries, get_team, get_team_player
from .rounds import resolve_round
from .validation import (
    clean_reason,
    parse_int,
    validate_distribution,
    validate_individual_points,
    validate_team_points,
)

MVP_REASON = 'MVP award'


def award_points(game_id, team_id, points, day=None, player_id=None, reason: Optional[str] = None,
                 created_by: Optional[str] = None, mvp_player_id=None, mvp_points=None) -> LedgerWrite:
    """Add points for a team (or one of its players) in the day's round of a game.

    An optional MVP bonus is written as a second entry for ``mvp_player_id``;
    the aggregate moves by the sum of both entries.
    """
    game_id = parse_int(game_id, 'game_id')
    team_id = parse_int(team_id, 'team_id')
    points = validate_individual_points(points)
    reason = clean_reason(reason)

    get_team(team_id)
    if player_id is not None:
        player_id = parse_int(player_id, 'player_id')
        get_team_player(player_id, team_id)

    rows = [{'points': points, 'player_id': player_id, 'reason': reason}]
    if mvp_player_id is not None or mvp_points is not None:
        if mvp_player_id is None or mvp_points is None:
            raise ValidationError('mvp_player_id and mvp_points must be given together')
        mvp_player_id = parse_int(mvp_player_id, 'mvp_player_id')
        mvp_points = validate_individual_points(mvp_points, 'mvp_points')
        get_team_player(mvp_player_id, team_id)
        rows.append({'points': mvp_points, 'player_id': mvp_player_id, 'reason': MVP_REASON})

    round_ = resolve_round(game_id, day)
    return append_entries(round_, team_id, rows, sum(r['points'] for r in rows), created_by=created_by)


def award_team_points(game_id, team_id, total_points, per_player_distribution: Dict,
                      day=None, reason: Optional[str] = None, created_by: Optional[str] = None) -> LedgerWrite:
    """Record a team award split across its players; the split must sum to the total."""
    game_id = parse_int(game_id, 'game_id')
    team_id = parse_int(team_id, 'team_id')
    total_points = validate_team_points(total_points)
    reason = clean_reason(reason)

    get_team(team_id)
    split = validate_distribution(total_points, per_player_distribution)
    for player_id in split:
        get_team_player(player_id, team_id)

    round_ = resolve_round(game_id, day)
    return add_team_score(round_.id, team_id, total_points, split,
                          reason=reason, created_by=created_by)
