from flask import Blueprint, current_app, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from scoreboard import db
from scoreboard.errors import ValidationError
from scoreboard.models import User

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the camp scoreboard server!'})

@main.route('/users/add', methods=['POST'])
def add_judge():
    """Register a judge account; its username is recorded as ``created_by``."""
    data = request.get_json(silent=True) or {}
    username = str(data.get('username') or '').strip()
    password = data.get('password')
    if not username or not password:
        raise ValidationError('username and password are required')
    if len(username) > 64:
        raise ValidationError('username must be at most 64 characters')
    if User.query.filter_by(username=username).first():
        raise ValidationError(f"Judge {username!r} already exists")

    judge = User(username=username)
    judge.set_password(password)
    db.session.add(judge)
    db.session.commit()
    current_app.logger.info(f"[judge-add] user={judge.id} username={username}")
    return jsonify(judge.to_dict()), 201

@main.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    user = User.query.filter_by(username=data.get('username')).first()
    if user and user.check_password(data.get('password')):
        login_user(user, remember=True)
        return jsonify({'message': 'Logged in successfully.', 'user': user.to_dict()})
    return jsonify({'error': 'Invalid username or password'}), 401

@main.route('/me')
@login_required
def me():
    return jsonify(current_user.to_dict())

@main.route('/logout')
@login_required
def logout():
    judge = current_user.to_dict()
    logout_user()
    return jsonify({'logged_out': judge})
