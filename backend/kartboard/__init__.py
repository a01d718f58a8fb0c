from flask import Flask, jsonify
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
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Points curves are fixed for the lifetime of the app
    from kartboard.services.rounds.points import PointsTable
    flask_app.extensions['points_table'] = PointsTable(flask_app.config['POINTS_CURVES'])

    # Import and register blueprints here
    from kartboard.main import main
    flask_app.register_blueprint(main)

    from kartboard.api.rounds import rounds
    flask_app.register_blueprint(rounds, url_prefix='/api/rounds')

    from kartboard.api.players import players
    flask_app.register_blueprint(players, url_prefix='/api')

    from kartboard.api.admin import admin
    flask_app.register_blueprint(admin, url_prefix='/api/admin')

    # Register Socket.IO event handlers
    from kartboard.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Admin access: the configured passcode is only kept as a bcrypt hash
    from kartboard.auth import AdminUser, admin_code_hash

    flask_app.extensions['admin_code_hash'] = admin_code_hash(flask_app.config.get('ADMIN_CODE'))

    @login_manager.request_loader
    def load_admin_from_request(request):
        return AdminUser.from_request(request)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Unauthorized'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from kartboard.seed import seed_reference_data
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            players_added, tracks_added = seed_reference_data()
            print(f'Database has been reset and seeded ({players_added} players, {tracks_added} tracks)!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
