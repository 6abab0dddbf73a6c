from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from scoreboard.main import main
    flask_app.register_blueprint(main)

    from scoreboard.api import register_error_handlers
    from scoreboard.api.scores import scores
    from scoreboard.api.days import days
    from scoreboard.api.leaderboard import leaderboard
    flask_app.register_blueprint(scores, url_prefix='/api/scores')
    flask_app.register_blueprint(days, url_prefix='/api/days')
    flask_app.register_blueprint(leaderboard, url_prefix='/api')
    register_error_handlers(flask_app)

    # Importing here ensures the handlers bind to the initialized socketio instance
    from scoreboard.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Flask-Login user loader
    from scoreboard.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from scoreboard.models import Game, Player, Team
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            judge = User(username='judge')
            judge.set_password('password')
            db.session.add(judge)

            seed_teams = [('Blue', '#1d4ed8'), ('Red', '#dc2626'), ('Green', '#16a34a'), ('Yellow', '#ca8a04')]
            for name, color in seed_teams:
                team = Team(name=name, color=color)
                db.session.add(team)
                for i in range(1, 4):
                    team.players.append(Player(name=f'{name} Camper {i}'))

            for title in ['Capture the Flag', 'Night Game', 'Talent Show']:
                db.session.add(Game(title=title))

            db.session.commit()
            print('Database has been reset and seeded!')

    @click.command('reconcile-aggregates')
    @click.option('--apply', 'apply_fix', is_flag=True, help='Overwrite drifted aggregates with the ledger sum.')
    def reconcile_aggregates_command(apply_fix):
        """Compares every team aggregate with its ledger sum."""
        from scoreboard.services.scoring.reconcile import reconcile_aggregates
        with flask_app.app_context():
            report = reconcile_aggregates(apply=apply_fix)
            drifted = [row for row in report if row['drift']]
            for row in report:
                marker = 'DRIFT' if row['drift'] else 'ok'
                print(f"team={row['team_id']} aggregate={row['aggregate']} ledger={row['ledger']} {marker}")
            if not drifted:
                print('All aggregates match the ledger.')
            elif apply_fix:
                print(f'Repaired {len(drifted)} aggregate(s).')
            else:
                print(f'{len(drifted)} aggregate(s) drifted; rerun with --apply to repair.')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(reconcile_aggregates_command)

    return flask_app
