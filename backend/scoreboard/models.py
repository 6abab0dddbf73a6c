from datetime import datetime, timezone
from scoreboard import db
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
import json


def utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
        }


class Team(db.Model):
    __tablename__ = 'team'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    color = db.Column(db.String(32), nullable=False)
    avatar_url = db.Column(db.String(512), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    players = db.relationship('Player', back_populates='team', order_by='Player.name')
    aggregate = db.relationship('TeamAggregate', back_populates='team', uselist=False)

    def __init__(self, **kwargs):
        super(Team, self).__init__(**kwargs)
        # Every team owns exactly one zero-initialised aggregate row
        if self.aggregate is None:
            self.aggregate = TeamAggregate(total_points=0)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'color': self.color,
            'avatar_url': self.avatar_url,
        }


class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    team = db.relationship('Team', back_populates='players')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'team_id': self.team_id,
        }


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    rounds = db.relationship('Round', back_populates='game', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
        }


class Round(db.Model):
    __tablename__ = 'round'
    __table_args__ = (
        db.UniqueConstraint('game_id', 'day', 'round_number', name='uq_round_game_day_number'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False)
    day = db.Column(db.Date, nullable=False, index=True)
    round_number = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    game = db.relationship('Game', back_populates='rounds')

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'day': self.day.isoformat(),
            'round_number': self.round_number,
        }


class ScoreEntry(db.Model):
    """One immutable ledger row. Corrections are new rows, never edits."""
    __tablename__ = 'score_entry'
    id = db.Column(db.Integer, primary_key=True)
    round_id = db.Column(db.Integer, db.ForeignKey('round.id'), nullable=False, index=True)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False, index=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=True)
    points = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, index=True)
    # Set only on compensating entries; unique so an entry is reversed at most once
    reversal_of_id = db.Column(
        db.Integer,
        db.ForeignKey('score_entry.id', name='fk_score_entry_reversal_of_id'),
        nullable=True,
        unique=True,
    )

    round = db.relationship('Round')
    team = db.relationship('Team')
    player = db.relationship('Player')
    reversal_of = db.relationship('ScoreEntry', remote_side=[id])

    def to_dict(self):
        return {
            'id': self.id,
            'round_id': self.round_id,
            'team_id': self.team_id,
            'player_id': self.player_id,
            'points': self.points,
            'reason': self.reason,
            'created_by': self.created_by,
            'created_at': _iso(self.created_at),
            'reversal_of_id': self.reversal_of_id,
        }


class TeamAggregate(db.Model):
    __tablename__ = 'team_aggregate'
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), primary_key=True)
    total_points = db.Column(db.Integer, nullable=False, default=0)
    last_updated = db.Column(db.DateTime(timezone=True), default=utcnow)
    team = db.relationship('Team', back_populates='aggregate')

    def to_dict(self):
        return {
            'team_id': self.team_id,
            'total_points': self.total_points,
            'last_updated': _iso(self.last_updated),
        }


class DailySnapshot(db.Model):
    """Frozen ranking for a calendar day. Its existence locks the day."""
    __tablename__ = 'daily_snapshot'
    id = db.Column(db.Integer, primary_key=True)
    day = db.Column(db.Date, nullable=False, unique=True)
    snapshot = db.Column(db.Text, nullable=False)  # JSON-encoded ranking payload
    locked_by = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    @property
    def payload(self):
        return json.loads(self.snapshot)

    def to_dict(self):
        return {
            'id': self.id,
            'day': self.day.isoformat(),
            'locked_by': self.locked_by,
            'created_at': _iso(self.created_at),
            'snapshot': self.payload,
        }
