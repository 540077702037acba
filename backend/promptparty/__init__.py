from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config, scoring_oracle=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # The scoring oracle is configured once; a missing credential fails startup
    if scoring_oracle is None:
        api_key = flask_app.config.get('OPENAI_API_KEY')
        if not api_key:
            raise RuntimeError(
                'OPENAI_API_KEY is not set. Export it before starting the server.'
            )
        from promptparty.services.games.oracle import OpenAIScoringOracle
        scoring_oracle = OpenAIScoringOracle(
            api_key=api_key,
            model=flask_app.config.get('OPENAI_MODEL', 'gpt-4o-mini'),
            temperature=flask_app.config.get('OPENAI_TEMPERATURE', 0.7),
            logger=flask_app.logger,
        )
    flask_app.extensions['scoring_oracle'] = scoring_oracle

    # Import and register blueprints here
    from promptparty.main import main
    flask_app.register_blueprint(main)

    from promptparty.api import register_error_handlers
    from promptparty.api.players import players
    from promptparty.api.rooms import rooms
    flask_app.register_blueprint(players, url_prefix='/api/players')
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')
    register_error_handlers(flask_app)

    # Register Socket.IO event handlers
    from promptparty.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from promptparty.services.games.scenarios import ensure_seeded
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            inserted = ensure_seeded()
            print(f'Database has been reset and seeded with {inserted} scenarios!')

    @click.command('seed-scenarios')
    def seed_scenarios_command():
        """Inserts the default scenarios if the bank is empty."""
        from promptparty.services.games.scenarios import ensure_seeded
        with flask_app.app_context():
            inserted = ensure_seeded()
            if inserted:
                print(f'Seeded {inserted} scenarios')
            else:
                print('Scenarios already seeded')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(seed_scenarios_command)

    return flask_app
