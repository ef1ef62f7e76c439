from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from partygames.main import main
    flask_app.register_blueprint(main)

    from partygames.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from partygames.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from partygames.models import Organizer

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(Organizer, int(user_id))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from partygames.seed import seed_demo_data
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            game = seed_demo_data()
            print(f'Database has been reset and seeded! Demo game id={game.id}')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
