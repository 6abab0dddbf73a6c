from flask import current_app, jsonify, request
from flask_login import current_user

from scoreboard import db
from scoreboard.errors import ScoreboardError


def request_actor(data: dict):
    """Explicit ``created_by`` from the body, else the logged-in judge, else None."""
    actor = (data or {}).get('created_by')
    if actor:
        return str(actor)[:64]
    if current_user and current_user.is_authenticated:
        return current_user.username
    return None


def register_error_handlers(flask_app) -> None:
    @flask_app.errorhandler(ScoreboardError)
    def handle_scoreboard_error(exc):
        db.session.rollback()
        if exc.status_code >= 500:
            current_app.logger.error(f"[api-error] code={exc.code} {exc.message}")
        else:
            current_app.logger.warning(
                f"[api-rejected] {request.method} {request.path} status={exc.status_code} code={exc.code} {exc.message}"
            )
        return jsonify(exc.to_dict()), exc.status_code
