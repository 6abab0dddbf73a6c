from typing import List

from flask import current_app
from sqlalchemy import func, update

from scoreboard import db
from scoreboard.models import ScoreEntry, Team, TeamAggregate, utcnow


def ledger_totals() -> dict:
    return dict(
        db.session.query(ScoreEntry.team_id, func.sum(ScoreEntry.points))
        .group_by(ScoreEntry.team_id)
        .all()
    )


def reconcile_aggregates(apply: bool = False) -> List[dict]:
    """Compare each team aggregate with ``SUM(points)`` from the ledger.

    With ``apply=True`` drifted aggregates are overwritten with the ledger sum
    (creating missing aggregate rows). Meant to be run explicitly, e.g. from
    the ``reconcile-aggregates`` CLI command, never as a write-path fallback.
    """
    sums = ledger_totals()
    report = []
    for team in Team.query.order_by(Team.id).all():
        ledger = int(sums.get(team.id) or 0)
        aggregate = team.aggregate.total_points if team.aggregate is not None else None
        drift = aggregate != ledger
        report.append({'team_id': team.id, 'aggregate': aggregate, 'ledger': ledger, 'drift': drift})
        if not drift:
            continue

        current_app.logger.warning(f"[reconcile] team={team.id} aggregate={aggregate} ledger={ledger}")
        if apply:
            if team.aggregate is None:
                db.session.add(TeamAggregate(team_id=team.id, total_points=ledger))
            else:
                db.session.execute(
                    update(TeamAggregate)
                    .where(TeamAggregate.team_id == team.id)
                    .values(total_points=ledger, last_updated=utcnow())
                    .execution_options(synchronize_session=False)
                )

    if apply:
        db.session.commit()
        current_app.logger.info(f"[reconcile] repaired={sum(1 for r in report if r['drift'])}")
    return report
