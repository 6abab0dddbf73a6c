"""Award policy applied at the request edge.

The ledger accepts any integer; these checks keep judges from recording
zero, out-of-range or malformed awards.
"""

from datetime import date, datetime, timezone
from typing import Dict, Optional

from flask import current_app

from scoreboard.errors import ValidationError


def current_day() -> date:
    return datetime.now(timezone.utc).date()


def parse_day(value) -> date:
    """Accept a ``date`` or an ISO ``YYYY-MM-DD`` string; ``None`` means today (UTC)."""
    if value is None or value == '':
        return current_day()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid day {value!r}; expected YYYY-MM-DD")


def parse_int(value, field: str) -> int:
    # bool is an int subclass but never a valid id or point value
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{field} must be a whole number")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")


def validate_points(points, limit: int, field: str = 'points') -> int:
    points = parse_int(points, field)
    if points == 0:
        raise ValidationError(f"{field} must not be zero")
    if abs(points) > limit:
        raise ValidationError(f"{field} must be between -{limit} and {limit}")
    return points


def validate_individual_points(points, field: str = 'points') -> int:
    return validate_points(points, int(current_app.config.get('MAX_INDIVIDUAL_POINTS', 1000)), field)


def validate_team_points(points, field: str = 'total_points') -> int:
    return validate_points(points, int(current_app.config.get('MAX_TEAM_POINTS', 10000)), field)


def clean_reason(reason: Optional[str]) -> Optional[str]:
    """Strip and truncate free text; blank reasons become ``None``."""
    if reason is None:
        return None
    reason = str(reason).strip()
    if not reason:
        return None
    max_len = int(current_app.config.get('MAX_REASON_LENGTH', 500))
    return reason[:max_len]


def validate_distribution(total_points: int, distribution) -> Dict[int, int]:
    """Normalise a ``{player_id: points}`` split and check it sums to the team total."""
    if not isinstance(distribution, dict) or not distribution:
        raise ValidationError('per_player_distribution must be a non-empty mapping of player id to points')
    split = {}
    for player_id, points in distribution.items():
        split[parse_int(player_id, 'player id')] = parse_int(points, f'points for player {player_id}')
    allocated = sum(split.values())
    if allocated != total_points:
        raise ValidationError(
            f"Distribution sums to {allocated} but the team award is {total_points}"
        )
    return split
