from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Round timers: background tasks in production, fired by hand under test
    from reaction_game.services.rounds.timers import BackgroundScheduler, ManualScheduler
    if flask_app.config.get('REACTION_MANUAL_TIMERS'):
        flask_app.extensions['reaction_scheduler'] = ManualScheduler()
    else:
        flask_app.extensions['reaction_scheduler'] = BackgroundScheduler(
            socketio, poll_ms=int(flask_app.config.get('REACTION_TIMER_POLL_MS', 50))
        )

    from reaction_game.main import main
    flask_app.register_blueprint(main)

    from reaction_game.api.reaction import reaction
    flask_app.register_blueprint(reaction, url_prefix='/api/reaction')

    # Register Socket.IO event handlers
    from reaction_game.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('init-db')
    def init_db_command():
        """Creates all tables."""
        import reaction_game.models  # noqa: F401
        with flask_app.app_context():
            db.create_all()
            print('Database tables created.')

    @click.command('clear-best')
    @click.option('--client-id', default=None, help='Storage namespace of the client.')
    def clear_best_command(client_id):
        """Removes the persisted best time."""
        from reaction_game.services.rounds.best_store import BestTimeStore, DatabaseStorage
        store = BestTimeStore(
            DatabaseStorage(flask_app, client_id),
            key=flask_app.config.get('REACTION_BEST_KEY', 'rg_best_ms_v1'),
            logger=flask_app.logger,
        )
        store.clear()
        print('Best time cleared.')

    flask_app.cli.add_command(init_db_command)
    flask_app.cli.add_command(clear_best_command)

    return flask_app
