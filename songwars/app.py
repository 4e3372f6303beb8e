import os
from flask import Flask, jsonify
from flask_login import LoginManager
from flask_socketio import SocketIO

from rooms.registry import RoomRegistry
from rooms.room import RoomSettings
from .config import config
from .elo_calculator import EloCalculator
from .gateway import GameGateway, SocketIOBroadcaster, make_scheduler
from .models import db, User
from .ranked_engine import RankedMatchEngine

login_manager = LoginManager()


@login_manager.user_loader
def load_user(user_id: str):
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'error': 'Authentication required'}), 401


def create_app(config_name: str = None, schedule=None) -> Flask:
    """Application factory for the SongWars service.
    
    ``schedule`` replaces the phase timer factory, mainly for tests.
    """
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')
    
    app = Flask(__name__)
    app.config.from_object(config[config_name])
    
    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    socketio = SocketIO(
        app,
        async_mode=app.config['SOCKETIO_ASYNC_MODE'],
        cors_allowed_origins=app.config['CORS_ALLOWED_ORIGINS']
    )
    
    # Initialize services
    registry = RoomRegistry(
        settings=RoomSettings.from_config(app.config),
        broadcaster=SocketIOBroadcaster(socketio),
        schedule=schedule or make_scheduler(socketio)
    )
    ranked = RankedMatchEngine(EloCalculator(k_factor=app.config['ELO_K_FACTOR']))
    
    # Create tables
    with app.app_context():
        db.create_all()
    
    # Store services on app for access in routes
    app.socketio = socketio
    app.rooms = registry
    app.ranked = ranked
    
    GameGateway(socketio, registry).register()
    
    from .routes import games, ranked as ranked_routes
    app.register_blueprint(games.bp)
    app.register_blueprint(ranked_routes.bp)
    register_health_route(app)
    
    return app


def register_health_route(app: Flask):
    
    @app.route('/health')
    def health_check():
        """Health check endpoint."""
        try:
            db.session.execute(db.text('SELECT 1'))
            db_ok = True
        except Exception:
            db_ok = False
        
        status = 'healthy' if db_ok else 'unhealthy'
        code = 200 if db_ok else 503
        
        return jsonify({
            'status': status,
            'database': 'connected' if db_ok else 'disconnected',
            'games': len(app.rooms)
        }), code
